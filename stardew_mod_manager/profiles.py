"""Profiles and moving mods between the live Mods folder and profile storage."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .game import GameData
from .scanner import InstalledMod, find_in, load_mods_from_dir

logger = logging.getLogger(__name__)


class ProfileError(Exception):
    """Base exception for profile and mod move failures."""

    pass


class ProfileNotFoundError(ProfileError):
    """Raised when a profile does not exist or no profiles exist at all."""

    pass


class ModNotFoundError(ProfileError):
    """Raised when no installed mod has the requested unique ID."""

    pass


class AmbiguousModStateError(ProfileError):
    """Raised when a mod is both in the Mods folder and the disabled folder."""

    def __init__(self, unique_id: str):
        self.unique_id = unique_id
        super().__init__(
            f"Mod {unique_id} is present in both the active and inactive directories."
        )


class ModMoveError(ProfileError):
    """Raised when a mod directory cannot be moved."""

    pass


class ProfileSwitchError(ProfileError):
    """Raised when a profile switch fails partway through."""

    pass


@dataclass
class ProfileSwitch:
    """Outcome of a profile switch."""

    previous: str
    current: str
    stashed: int  # directories moved out of Mods
    restored: int  # directories moved into Mods


class ProfileManager:
    """Owns the profile list, the active profile and mod activation."""

    def __init__(self, game: GameData):
        self.game = game

    def list_profiles(self) -> list[str]:
        """Names of all profile directories, sorted."""
        if not self.game.profile_path.is_dir():
            return []
        return sorted(p.name for p in self.game.profile_path.iterdir() if p.is_dir())

    def get_active_profile(self) -> str:
        """
        Read the active profile from the marker file in the Mods folder.

        Falls back to the first listed profile if the marker is missing,
        unreadable or names a profile that no longer exists.
        """
        profiles = self.list_profiles()
        try:
            name = self.game.profile_marker.read_text(encoding="utf-8").strip()
        except OSError:
            name = ""

        if name and name in profiles:
            return name
        if name:
            logger.warning("Profile marker names unknown profile %r", name)

        if not profiles:
            raise ProfileNotFoundError(f"No profiles found in {self.game.profile_path}")
        logger.debug("No active profile recorded, using %s", profiles[0])
        return profiles[0]

    def set_active_profile(self, name: str) -> None:
        try:
            self.game.mods_path.mkdir(parents=True, exist_ok=True)
            self.game.profile_marker.write_text(name, encoding="utf-8")
        except OSError as e:
            raise ProfileSwitchError(f"Cannot record active profile {name}: {e}") from e

    def disabled_dir(self, profile: str | None = None) -> Path:
        return self.game.disabled_dir(profile or self.get_active_profile())

    def load_mods(self) -> tuple[list[InstalledMod], list[InstalledMod]]:
        """Scan (active, inactive) mods for the active profile."""
        active = load_mods_from_dir(self.game.mods_path, True)
        inactive = load_mods_from_dir(self.disabled_dir(), False)
        return active, inactive

    def toggle(self, unique_id: str) -> InstalledMod:
        """
        Move a mod between the Mods folder and the active profile's disabled folder.

        The directory keeps its path relative to the root it came from.
        Returns the mod as it is after the move.
        """
        mods_dir = self.game.mods_path
        disabled_dir = self.disabled_dir()
        active, inactive = self.load_mods()

        active_mod = find_in(active, unique_id)
        inactive_mod = find_in(inactive, unique_id)

        if active_mod and inactive_mod:
            logger.info("Mod is present in both active and inactive dirs: %s", unique_id)
            raise AmbiguousModStateError(unique_id)
        if active_mod:
            logger.info("Making mod %s inactive", unique_id)
            target = _move_mod(active_mod.path, mods_dir, disabled_dir)
            return InstalledMod(target, False, active_mod.modified, active_mod.manifest)
        if inactive_mod:
            logger.info("Making mod %s active", unique_id)
            target = _move_mod(inactive_mod.path, disabled_dir, mods_dir)
            return InstalledMod(target, True, inactive_mod.modified, inactive_mod.manifest)

        logger.info("Mod not found: %s", unique_id)
        raise ModNotFoundError(f"Mod not found: {unique_id}")

    def select(self, profile: str) -> ProfileSwitch:
        """
        Switch to another profile.

        Every directory in Mods is stashed in the current profile's enabled
        folder, then the new profile's enabled folder is moved into Mods.
        Nothing is rolled back if a move fails.
        """
        if profile not in self.list_profiles():
            raise ProfileNotFoundError(f"Profile not found: {profile}")

        current = self.get_active_profile()
        if profile == current:
            logger.info("Profile %s is already active", profile)
            self.set_active_profile(profile)
            return ProfileSwitch(current, profile, 0, 0)

        logger.info("Changing profile from %s to %s", current, profile)
        stash_dir = self.game.enabled_dir(current)
        try:
            stash_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProfileSwitchError(f"Cannot create {stash_dir}: {e}") from e
        stashed = _move_children(self.game.mods_path, stash_dir, "stashing", current)

        restore_dir = self.game.enabled_dir(profile)
        restored = 0
        if restore_dir.is_dir():
            restored = _move_children(restore_dir, self.game.mods_path, "restoring", profile)

        self.set_active_profile(profile)
        logger.info("Profile %s loaded (%d stashed, %d restored)", profile, stashed, restored)
        return ProfileSwitch(current, profile, stashed, restored)

    def remove(self, unique_id: str) -> Path:
        """
        Soft delete a mod by moving its directory into the deleted folder.

        The directory is renamed <name>-<epoch ms>. Returns the new location.
        """
        active, inactive = self.load_mods()
        mod = find_in(active, unique_id) or find_in(inactive, unique_id)
        if mod is None:
            raise ModNotFoundError(f"Mod not found: {unique_id}")
        if mod.path in (self.game.mods_path, self.disabled_dir()):
            raise ModMoveError(f"Refusing to delete {mod.path}: manifest is at the root")

        self.game.deleted_path.mkdir(parents=True, exist_ok=True)
        location = self.game.deleted_path / f"{mod.path.name}-{int(time.time() * 1000)}"
        try:
            mod.path.rename(location)
        except OSError as e:
            raise ModMoveError(f"Failed to delete {mod.path}: {e}") from e

        logger.info("Moved mod %s to %s", unique_id, location)
        return location


def _move_mod(path: Path, source_root: Path, target_root: Path) -> Path:
    """Move a mod directory from one root to another, keeping its relative path."""
    if path == source_root:
        raise ModMoveError(f"Refusing to move {path}: manifest is at the root")

    target = target_root / path.relative_to(source_root)
    if target.exists():
        raise ModMoveError(f"Cannot move {path}: {target} already exists")

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        path.rename(target)
    except OSError as e:
        raise ModMoveError(f"Failed to move {path} to {target}: {e}") from e

    logger.info("Moved %s to %s", path, target)
    return target


def _move_children(source: Path, target: Path, phase: str, profile: str) -> int:
    """Move every top-level directory of source into target. Files stay put."""
    moved = 0
    try:
        entries = sorted(source.iterdir())
    except OSError as e:
        raise ProfileSwitchError(f"Profile switch failed while {phase} {profile}: {e}") from e
    for entry in entries:
        if not entry.is_dir():
            continue
        dest = target / entry.name
        failed = f"Profile switch failed while {phase} {profile} after moving {moved} directories"
        if dest.exists():
            raise ProfileSwitchError(f"{failed}: {dest} already exists")
        try:
            entry.rename(dest)
        except OSError as e:
            raise ProfileSwitchError(f"{failed}: {e}") from e
        moved += 1
    return moved
