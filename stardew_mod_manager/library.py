"""Snapshot of installed mods for the active profile."""

from .game import GameData
from .profiles import ModNotFoundError, ProfileManager
from .scanner import InstalledMod, find_in


class ModLibrary:
    """Active and inactive mods, rescanned from disk on every call."""

    def __init__(self, game: GameData, profiles: ProfileManager | None = None):
        self.game = game
        self.profiles = profiles or ProfileManager(game)

    def load_mods(self) -> tuple[list[InstalledMod], list[InstalledMod]]:
        """Return (active, inactive) mods, each ordered by manifest mtime."""
        return self.profiles.load_mods()

    def find_mod(self, unique_id: str) -> InstalledMod:
        """Find a mod by unique ID, preferring the active copy."""
        active, inactive = self.load_mods()
        mod = find_in(active, unique_id) or find_in(inactive, unique_id)
        if mod is None:
            raise ModNotFoundError(f"Mod not found: {unique_id}")
        return mod
