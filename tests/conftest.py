import os
import zipfile
from pathlib import Path

import json5
import py7zr
import pytest

from stardew_mod_manager.game import GameData


@pytest.fixture()
def game(tmp_path) -> GameData:
    data = GameData.from_game_dir(tmp_path / "Stardew Valley")
    data.installation_path.mkdir()
    data.bootstrap()
    return data


def manifest_payload(unique_id: str, name: str | None = None, **extra) -> dict:
    payload = {
        "Name": name or unique_id,
        "Author": "Tester",
        "Version": "1.0.0",
        "UniqueID": unique_id,
    }
    payload.update(extra)
    return payload


def write_manifest(dir_path: Path, payload: dict, mtime: float | None = None) -> Path:
    dir_path.mkdir(parents=True, exist_ok=True)
    path = dir_path / "manifest.json"
    path.write_text(json5.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def write_zip(path: Path, files: dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def write_7z(path: Path, files: dict[str, str]) -> Path:
    staging = path.parent / f".{path.stem}-files"
    path.parent.mkdir(parents=True, exist_ok=True)
    with py7zr.SevenZipFile(path, "w") as szf:
        for name, content in files.items():
            source = staging / name
            source.parent.mkdir(parents=True, exist_ok=True)
            source.write_text(content, encoding="utf-8")
            szf.write(source, arcname=name)
    return path
