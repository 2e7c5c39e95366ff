"""Discover installed mods by walking a directory for manifest files."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .manifest import MANIFEST_FILENAME, ModManifest, load_manifest

logger = logging.getLogger(__name__)

# Manifests are looked for at most this many levels below the scan root
MAX_SCAN_DEPTH = 3


@dataclass
class InstalledMod:
    """A mod found on disk."""

    path: Path  # directory holding manifest.json
    active: bool
    modified: float  # manifest mtime, only used for ordering
    manifest: ModManifest

    @property
    def unique_id(self) -> str:
        return self.manifest.id


def load_mods_from_dir(root: Path, active: bool) -> list[InstalledMod]:
    """
    Find every manifest.json up to MAX_SCAN_DEPTH below root.

    Any manifest that fails to parse aborts the scan with ManifestError.
    Results are ordered by manifest modification time, oldest first.
    """
    root = Path(root)
    if not root.is_dir():
        logger.debug("Scan root %s does not exist", root)
        return []

    def _raise(error: OSError) -> None:
        raise error

    mods = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)
        if depth >= MAX_SCAN_DEPTH - 1:
            dirnames.clear()
        else:
            dirnames.sort()

        if MANIFEST_FILENAME not in filenames:
            continue

        manifest_path = current / MANIFEST_FILENAME
        manifest = load_manifest(manifest_path)
        logger.debug("Found mod %s id: %s", manifest.name, manifest.unique_id)
        mods.append(
            InstalledMod(
                path=current,
                active=active,
                modified=manifest_path.stat().st_mtime,
                manifest=manifest,
            )
        )

    mods.sort(key=lambda m: m.modified)
    return mods


def find_in(mods: list[InstalledMod], unique_id: str) -> InstalledMod | None:
    """Return the first mod whose unique ID matches, ignoring surrounding whitespace."""
    wanted = unique_id.strip()
    for mod in mods:
        if mod.unique_id == wanted:
            return mod
    return None
