"""Install mods from downloaded archives and inspect archives for manifests."""

import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import py7zr
import rarfile

from .manifest import MANIFEST_FILENAME, ManifestError, ModManifest, parse_manifest

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = (".zip", ".7z", ".rar")
# (type, leading bytes) checked before the file extension
ARCHIVE_MAGIC = (
    ("zip", b"PK"),
    ("7z", b"7z\xbc\xaf'\x1c"),
    ("rar", b"Rar!"),
)
# Download folders are searched this deep for archives
DOWNLOAD_SCAN_DEPTH = 2


class ExtractionError(Exception):
    """Raised when archive inspection or extraction fails."""

    pass


@dataclass
class ArchiveManifest:
    """A manifest found inside an archive."""

    manifest_path: str  # path inside the archive
    manifest: ModManifest


@dataclass
class ArchiveCandidate:
    """A downloaded archive and the mods bundled in it."""

    path: Path
    created_at: float
    manifests: list[ArchiveManifest] = field(default_factory=list)


def detect_archive_type(filepath: Path) -> str | None:
    """
    Detect archive type by magic bytes, then fall back to extension.

    Returns: 'zip', '7z', 'rar', or None if not an archive.
    """
    try:
        with open(filepath, "rb") as f:
            header = f.read(8)
    except OSError:
        header = b""

    for archive_type, magic in ARCHIVE_MAGIC:
        if header.startswith(magic):
            return archive_type

    suffix = filepath.suffix.lower()
    if suffix in ARCHIVE_SUFFIXES:
        return suffix[1:]
    return None


def list_archive_names(archive_path: Path) -> list[str]:
    """List member names of an archive (directories included for some formats)."""
    archive_type = _require_type(archive_path)
    try:
        if archive_type == "zip":
            with zipfile.ZipFile(archive_path, "r") as zf:
                return zf.namelist()
        elif archive_type == "7z":
            with py7zr.SevenZipFile(archive_path, "r") as szf:
                return szf.getnames()
        else:
            with rarfile.RarFile(archive_path, "r") as rf:
                return rf.namelist()
    except Exception as e:
        raise ExtractionError(f"Failed to read {archive_path}: {e}")


def has_root_manifest(names: list[str]) -> bool:
    """True when manifest.json sits at the top of the archive."""
    return any(_normalize(name) == MANIFEST_FILENAME for name in names)


def install_archive(archive_path: Path, mods_dir: Path) -> Path:
    """
    Extract a mod archive into the Mods folder.

    An archive with manifest.json at its root is extracted into a new folder
    named after the archive, so every mod keeps its own top-level directory.
    Otherwise the archive's own folders are extracted straight into Mods.
    Existing mod folders are never extracted over; remove the old copy first.

    Returns the directory that was extracted into. Nothing is cleaned up on
    failure; rescan to see what ended up on disk.
    """
    archive_path = Path(archive_path)
    names = list_archive_names(archive_path)

    target_dir = Path(mods_dir)
    if has_root_manifest(names):
        target_dir = target_dir / archive_path.stem
        logger.debug("Mod not in a subdirectory, extracting to %s", target_dir)
        if target_dir.exists():
            raise ExtractionError(f"{target_dir} already exists")
    else:
        top_level = {_normalize(name).split("/")[0] for name in names} - {""}
        existing = sorted(name for name in top_level if (target_dir / name).exists())
        if existing:
            raise ExtractionError(f"Already in {target_dir}: {', '.join(existing)}")

    logger.info("Extracting %s to %s", archive_path.name, target_dir)
    extract_archive(archive_path, target_dir)
    logger.info("Extraction of %s complete", archive_path.name)
    return target_dir


def extract_archive(archive_path: Path, target_dir: Path) -> None:
    """Extract an archive to the target directory."""
    archive_type = _require_type(archive_path)

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        if archive_type == "zip":
            with zipfile.ZipFile(archive_path, "r") as zf:
                zf.extractall(target_dir)
        elif archive_type == "7z":
            with py7zr.SevenZipFile(archive_path, "r") as szf:
                szf.extractall(target_dir)
        else:
            with rarfile.RarFile(archive_path, "r") as rf:
                rf.extractall(target_dir)
    except Exception as e:
        raise ExtractionError(f"Failed to extract {archive_path}: {e}")


def read_archive_manifests(archive_path: Path) -> list[ArchiveManifest]:
    """Parse every member whose name ends with manifest.json."""
    names = [
        name for name in list_archive_names(archive_path)
        if name.endswith(MANIFEST_FILENAME)
    ]
    if not names:
        return []

    contents = _read_members(archive_path, names)
    manifests = []
    for name in names:
        try:
            text = contents[name].decode("utf-8-sig")
            manifests.append(ArchiveManifest(manifest_path=name, manifest=parse_manifest(text)))
        except (KeyError, UnicodeDecodeError, ManifestError) as e:
            raise ExtractionError(f"Bad manifest {name} in {archive_path}: {e}")
    return manifests


def inspect_archive(archive_path: Path) -> ArchiveCandidate:
    """Build an ArchiveCandidate. Raises ExtractionError if no manifest is found."""
    archive_path = Path(archive_path)
    manifests = read_archive_manifests(archive_path)
    if not manifests:
        raise ExtractionError(f"No manifest found in {archive_path}")

    stat = archive_path.stat()
    return ArchiveCandidate(
        path=archive_path,
        created_at=getattr(stat, "st_birthtime", stat.st_mtime),
        manifests=manifests,
    )


def find_archives_with_manifests(base_dir: Path) -> list[ArchiveCandidate]:
    """
    Search a downloads folder for mod archives.

    Archives that cannot be read or hold no manifest are skipped.
    """
    base_dir = Path(base_dir)
    if not base_dir.is_dir():
        return []

    candidates = []
    for dirpath, dirnames, filenames in os.walk(base_dir):
        depth = len(Path(dirpath).relative_to(base_dir).parts)
        if depth >= DOWNLOAD_SCAN_DEPTH - 1:
            dirnames.clear()
        else:
            dirnames.sort()

        for filename in sorted(filenames):
            if not filename.lower().endswith(ARCHIVE_SUFFIXES):
                continue
            path = Path(dirpath) / filename
            try:
                candidates.append(inspect_archive(path))
            except (ExtractionError, OSError) as e:
                logger.debug("Skipping %s: %s", path, e)

    return candidates


def delete_archive(archive_path: Path) -> None:
    """Remove a downloaded archive."""
    try:
        Path(archive_path).unlink()
    except OSError as e:
        raise ExtractionError(f"Failed to delete {archive_path}: {e}")


def _require_type(archive_path: Path) -> str:
    archive_type = detect_archive_type(Path(archive_path))
    if archive_type is None:
        raise ExtractionError(f"Unknown archive type: {archive_path}")
    return archive_type


def _normalize(name: str) -> str:
    name = name.replace("\\", "/")
    while name.startswith("./"):
        name = name[2:]
    return name


def _read_members(archive_path: Path, names: list[str]) -> dict[str, bytes]:
    """Read the given members into memory."""
    archive_type = _require_type(archive_path)
    try:
        if archive_type == "zip":
            with zipfile.ZipFile(archive_path, "r") as zf:
                return {name: zf.read(name) for name in names}
        elif archive_type == "rar":
            with rarfile.RarFile(archive_path, "r") as rf:
                return {name: rf.read(name) for name in names}
        # py7zr reads members by extracting them
        with tempfile.TemporaryDirectory(prefix="svmm-7z-") as tmp_dir:
            with py7zr.SevenZipFile(archive_path, "r") as szf:
                szf.extract(path=tmp_dir, targets=names)
            return {name: (Path(tmp_dir) / name).read_bytes() for name in names}
    except Exception as e:
        raise ExtractionError(f"Failed to read {archive_path}: {e}")
