"""Client for the SMAPI mod registry web API."""

import logging
import platform
from dataclasses import dataclass
from typing import Any

import requests

from . import __version__

logger = logging.getLogger(__name__)

SMAPI_API_URL = "https://smapi.io/api/v3.0/mods"
DEFAULT_TIMEOUT = 30.0

# platform.system() -> platform name understood by the API
PLATFORMS = {
    "Linux": "Linux",
    "Darwin": "Mac",
    "Windows": "Windows",
    "Android": "Android",
}


class RegistryError(Exception):
    """Raised when the registry request fails."""

    pass


@dataclass
class RegistryMod:
    """Registry metadata for one mod ID."""

    id: str
    name: str = ""
    url: str = ""
    nexus_id: int = 0
    found: bool = True  # False when the registry had no metadata

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RegistryMod":
        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            return cls(id=str(data.get("id", "")), found=False)
        main = metadata.get("main")
        if not isinstance(main, dict):
            main = {}
        nexus_id = metadata.get("nexusID")
        return cls(
            id=str(data.get("id", "")),
            name=_text(metadata.get("name")),
            url=_text(main.get("url")),
            nexus_id=nexus_id if isinstance(nexus_id, int) else 0,
        )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def current_platform() -> str | None:
    return PLATFORMS.get(platform.system())


class SmapiAPI:
    """Looks up mod IDs in the SMAPI registry."""

    def __init__(self, url: str = SMAPI_API_URL, timeout: float = DEFAULT_TIMEOUT):
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": f"stardew-mod-manager/{__version__}",
            }
        )

    def _handle_response(self, response: requests.Response) -> Any:
        """Handle API response and raise appropriate errors."""
        if response.status_code >= 400:
            raise RegistryError(
                f"Registry request failed with HTTP {response.status_code}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise RegistryError(f"Invalid registry response: {e}")

    def resolve_mods(self, ids: list[str]) -> list[RegistryMod]:
        """
        Fetch registry metadata for the given mod IDs.

        The registry may return fewer entries than requested; missing IDs
        are simply absent from the result.
        """
        if not ids:
            return []

        body: dict[str, Any] = {
            "mods": [{"id": mod_id} for mod_id in ids],
            "includeExtendedMetadata": True,
        }
        os_name = current_platform()
        if os_name:
            body["platform"] = os_name

        logger.debug("Resolving %d mods against %s", len(ids), self.url)
        try:
            response = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryError(f"Registry unavailable: {e}")

        data = self._handle_response(response)
        if not isinstance(data, list):
            raise RegistryError(f"Unexpected registry response: {data!r}")

        return [RegistryMod.from_dict(entry) for entry in data if isinstance(entry, dict)]
