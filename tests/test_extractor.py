import json

import pytest

from conftest import manifest_payload, write_7z, write_zip
from stardew_mod_manager.extractor import (
    ExtractionError,
    delete_archive,
    detect_archive_type,
    find_archives_with_manifests,
    has_root_manifest,
    inspect_archive,
    install_archive,
)


def _manifest(unique_id: str) -> str:
    return json.dumps(manifest_payload(unique_id))


def test_root_manifest_extracts_into_named_folder(tmp_path):
    mods_dir = tmp_path / "Mods"
    mods_dir.mkdir()
    archive = write_zip(
        tmp_path / "downloads" / "MyMod.zip",
        {"manifest.json": _manifest("my.mod"), "assets/a.png": "png"},
    )

    target = install_archive(archive, mods_dir)

    assert target == mods_dir / "MyMod"
    assert (mods_dir / "MyMod" / "manifest.json").exists()
    assert (mods_dir / "MyMod" / "assets" / "a.png").exists()
    assert sorted(p.name for p in mods_dir.iterdir()) == ["MyMod"]


def test_nested_archive_extracts_into_mods_root(tmp_path):
    mods_dir = tmp_path / "Mods"
    archive = write_zip(
        tmp_path / "Bundle-1-2.zip",
        {
            "ModA/manifest.json": _manifest("a"),
            "ModB/manifest.json": _manifest("b"),
        },
    )

    target = install_archive(archive, mods_dir)

    assert target == mods_dir
    assert sorted(p.name for p in mods_dir.iterdir()) == ["ModA", "ModB"]


def test_has_root_manifest():
    assert has_root_manifest(["manifest.json", "x/y"])
    assert has_root_manifest(["./manifest.json"])
    assert not has_root_manifest(["Mod/manifest.json"])
    assert not has_root_manifest(["notmanifest.json"])


def test_corrupt_archive_raises(tmp_path):
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"PK\x03\x04 this is not really a zip")
    with pytest.raises(ExtractionError):
        install_archive(archive, tmp_path / "Mods")


def test_unknown_archive_type_raises(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    assert detect_archive_type(path) is None
    with pytest.raises(ExtractionError, match="Unknown archive type"):
        install_archive(path, tmp_path / "Mods")


def test_inspect_archive_finds_every_manifest(tmp_path):
    archive = write_zip(
        tmp_path / "Bundle.zip",
        {
            "Pack/ModA/manifest.json": _manifest("a"),
            "Pack/ModB/manifest.json": _manifest("b"),
            "Pack/readme.txt": "hi",
        },
    )

    candidate = inspect_archive(archive)

    assert candidate.path == archive
    assert [m.manifest_path for m in candidate.manifests] == [
        "Pack/ModA/manifest.json",
        "Pack/ModB/manifest.json",
    ]
    assert [m.manifest.unique_id for m in candidate.manifests] == ["a", "b"]


def test_inspect_archive_without_manifest(tmp_path):
    archive = write_zip(tmp_path / "Other.zip", {"file.txt": "x"})
    with pytest.raises(ExtractionError, match="No manifest"):
        inspect_archive(archive)


def test_find_archives_skips_unusable_files(tmp_path):
    downloads = tmp_path / "Downloads"
    write_zip(downloads / "Good.zip", {"manifest.json": _manifest("good")})
    write_zip(downloads / "sub" / "Nested.zip", {"Mod/manifest.json": _manifest("nested")})
    write_zip(downloads / "sub" / "deeper" / "TooDeep.zip", {"manifest.json": _manifest("deep")})
    write_zip(downloads / "NoManifest.zip", {"file.txt": "x"})
    write_zip(downloads / "BadManifest.zip", {"manifest.json": "{oops"})
    (downloads / "notes.txt").write_text("x")

    candidates = find_archives_with_manifests(downloads)

    assert sorted(c.path.name for c in candidates) == ["Good.zip", "Nested.zip"]


def test_find_archives_missing_dir(tmp_path):
    assert find_archives_with_manifests(tmp_path / "missing") == []


def test_delete_archive(tmp_path):
    archive = write_zip(tmp_path / "Good.zip", {"manifest.json": _manifest("good")})
    delete_archive(archive)
    assert not archive.exists()
    with pytest.raises(ExtractionError):
        delete_archive(archive)


def test_existing_mod_folder_is_not_overwritten(tmp_path):
    mods_dir = tmp_path / "Mods"
    (mods_dir / "MyMod").mkdir(parents=True)
    (mods_dir / "MyMod" / "config.json").write_text("mine")
    archive = write_zip(
        tmp_path / "MyMod.zip",
        {"manifest.json": _manifest("my.mod"), "config.json": "theirs"},
    )

    with pytest.raises(ExtractionError, match="already exists"):
        install_archive(archive, mods_dir)

    assert (mods_dir / "MyMod" / "config.json").read_text() == "mine"
    assert not (mods_dir / "MyMod" / "manifest.json").exists()


def test_nested_archive_refuses_existing_folders(tmp_path):
    mods_dir = tmp_path / "Mods"
    (mods_dir / "ModA").mkdir(parents=True)
    archive = write_zip(
        tmp_path / "Bundle.zip",
        {"ModA/manifest.json": _manifest("a"), "ModB/manifest.json": _manifest("b")},
    )

    with pytest.raises(ExtractionError, match="ModA"):
        install_archive(archive, mods_dir)

    assert not (mods_dir / "ModB").exists()


def test_7z_root_manifest_install(tmp_path):
    mods_dir = tmp_path / "Mods"
    archive = write_7z(
        tmp_path / "downloads" / "SevenMod.7z",
        {"manifest.json": _manifest("seven.mod"), "assets/a.txt": "data"},
    )

    assert detect_archive_type(archive) == "7z"
    assert inspect_archive(archive).manifests[0].manifest.unique_id == "seven.mod"

    target = install_archive(archive, mods_dir)

    assert target == mods_dir / "SevenMod"
    assert (target / "manifest.json").exists()
    assert (target / "assets" / "a.txt").read_text() == "data"


def test_7z_bundle_manifests(tmp_path):
    archive = write_7z(
        tmp_path / "Bundle.7z",
        {
            "Pack/ModA/manifest.json": _manifest("a"),
            "Pack/ModB/manifest.json": _manifest("b"),
        },
    )

    candidate = inspect_archive(archive)

    assert sorted(m.manifest.unique_id for m in candidate.manifests) == ["a", "b"]


def test_detect_archive_type_falls_back_to_suffix(tmp_path):
    path = tmp_path / "Empty.RAR"
    path.write_bytes(b"")
    assert detect_archive_type(path) == "rar"
    assert detect_archive_type(tmp_path / "missing.7z") == "7z"
