"""User configuration stored as JSON."""

import json
import os
from pathlib import Path
from typing import Any

from .api import DEFAULT_TIMEOUT, SMAPI_API_URL

CONFIG_FILENAME = "config.json"


class ConfigError(Exception):
    """Raised when config file operations fail."""

    pass


def default_config_dir() -> Path:
    """$SVMM_CONFIG_DIR, else $XDG_CONFIG_HOME/svmm, else ~/.config/svmm."""
    if os.environ.get("SVMM_CONFIG_DIR"):
        return Path(os.environ["SVMM_CONFIG_DIR"])
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "svmm"


class ManagerConfig:
    """Manages the config file."""

    def __init__(self, config_dir: Path | None = None):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config_file = self.config_dir / CONFIG_FILENAME
        self.installation_path: str = ""
        self.downloads_dir: str = ""
        self.registry_url: str = SMAPI_API_URL
        self.request_timeout: float = DEFAULT_TIMEOUT

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_file.exists()

    def load(self) -> None:
        """Load config from file. A missing file leaves the defaults in place."""
        if not self.config_file.exists():
            return

        try:
            with open(self.config_file) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Invalid config file {self.config_file}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config file {self.config_file}: expected an object")

        self.installation_path = data.get("installation_path", "")
        self.downloads_dir = data.get("downloads_dir", "")
        self.registry_url = data.get("registry_url") or SMAPI_API_URL
        try:
            self.request_timeout = float(data.get("request_timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid request_timeout in {self.config_file}")

    def save(self) -> None:
        """Save config to file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "installation_path": self.installation_path,
            "downloads_dir": self.downloads_dir,
            "registry_url": self.registry_url,
            "request_timeout": self.request_timeout,
        }

    @property
    def game_dir(self) -> Path | None:
        return Path(self.installation_path) if self.installation_path else None

    @property
    def downloads_path(self) -> Path:
        if self.downloads_dir:
            return Path(self.downloads_dir)
        return Path.home() / "Downloads"


def load_config(config_dir: Path | None = None) -> ManagerConfig:
    config = ManagerConfig(config_dir)
    config.load()
    return config
