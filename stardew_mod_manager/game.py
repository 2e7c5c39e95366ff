"""Game directory detection and the on-disk layout of the manager."""

import logging
import platform
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

GAME_NAME = "Stardew Valley"
SVMM = "SVMM"
PROFILE_MARKER = ".profile"
DEFAULT_PROFILE_COUNT = 3

# Steam install locations per platform.system()
STEAM_PATHS = {
    "Linux": [
        Path.home() / ".steam" / "steam",
        Path.home() / ".steam" / "debian-installation",
        Path.home() / ".local" / "share" / "Steam",
    ],
    "Darwin": [Path.home() / "Library" / "Application Support" / "Steam"],
    "Windows": [
        Path.home() / "AppData" / "Local" / "Steam",
        Path("C:/Program Files (x86)/Steam"),
    ],
}


class GameNotFoundError(Exception):
    """Raised when the game installation cannot be located."""

    pass


@dataclass(frozen=True)
class GameData:
    """
    Resolved paths of a game installation.

    Built once at startup and handed to every component; nothing in here
    changes after construction.
    """

    installation_path: Path
    svmm_path: Path
    profile_path: Path
    mods_path: Path
    deleted_path: Path

    @classmethod
    def from_game_dir(cls, game_dir: Path) -> "GameData":
        game_dir = Path(game_dir)
        svmm_dir = game_dir / SVMM
        return cls(
            installation_path=game_dir,
            svmm_path=svmm_dir,
            profile_path=svmm_dir / "profiles",
            mods_path=game_dir / "Mods",
            deleted_path=svmm_dir / "deleted",
        )

    @property
    def profile_marker(self) -> Path:
        return self.mods_path / PROFILE_MARKER

    def enabled_dir(self, profile: str) -> Path:
        return self.profile_path / profile / "enabled"

    def disabled_dir(self, profile: str) -> Path:
        return self.profile_path / profile / "disabled"

    def bootstrap(self) -> None:
        """Create the manager directories and the default profiles on first run."""
        if not self.profile_path.exists():
            logger.info("Creating svmm directories in %s", self.svmm_path)
        self.profile_path.mkdir(parents=True, exist_ok=True)
        self.deleted_path.mkdir(parents=True, exist_ok=True)
        self.mods_path.mkdir(parents=True, exist_ok=True)

        if not any(self.profile_path.iterdir()):
            logger.info("Creating default profiles")
            for i in range(1, DEFAULT_PROFILE_COUNT + 1):
                name = f"Profile {i}"
                self.enabled_dir(name).mkdir(parents=True, exist_ok=True)
                self.disabled_dir(name).mkdir(parents=True, exist_ok=True)


def load_game_data(game_dir: Path | None = None) -> GameData:
    """
    Resolve the game directory and prepare the manager layout inside it.

    Falls back to searching Steam libraries when no directory is given.
    """
    if game_dir is None:
        game_dir = find_game_dir()
        if game_dir is None:
            raise GameNotFoundError(
                f"Could not find a {GAME_NAME} installation. "
                "Pass --game-dir or set SVMM_GAME_DIR."
            )
    game_dir = Path(game_dir)
    if not game_dir.is_dir():
        raise GameNotFoundError(f"Game directory does not exist: {game_dir}")

    logger.info("Using game dir: %s", game_dir)
    game = GameData.from_game_dir(game_dir)
    game.bootstrap()
    return game


def find_steam_root() -> Path | None:
    """Find the Steam installation root directory."""
    for path in STEAM_PATHS.get(platform.system(), []):
        if (path / "steamapps").is_dir():
            return path
    return None


def parse_library_folders(steam_root: Path) -> list[Path]:
    """Parse libraryfolders.vdf to get all Steam library paths."""
    paths = []
    for vdf_path in (
        steam_root / "steamapps" / "libraryfolders.vdf",
        steam_root / "config" / "libraryfolders.vdf",
    ):
        if not vdf_path.exists():
            continue
        text = vdf_path.read_text(errors="replace")
        # Match "path" values in Valve KV1 format
        for match in re.finditer(r'"path"\s+"([^"]+)"', text):
            lib_path = Path(match.group(1).replace("\\\\", "\\"))
            if lib_path.exists() and lib_path not in paths:
                paths.append(lib_path)
    return paths


def find_game_dir(name: str = GAME_NAME) -> Path | None:
    """Find the game install directory by searching Steam libraries."""
    steam_root = find_steam_root()
    if not steam_root:
        return None

    libraries = parse_library_folders(steam_root)
    if steam_root not in libraries:
        libraries.append(steam_root)

    for lib_path in libraries:
        common = lib_path / "steamapps" / "common"
        if not common.is_dir():
            continue
        for entry in common.iterdir():
            if entry.is_dir() and entry.name.lower() == name.lower():
                logger.debug("Found game directory: %s", entry)
                return entry

    return None
