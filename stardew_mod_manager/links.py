"""Update key parsing and mod page URLs."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Provider (lowercased) -> mod page URL template
PROVIDER_URLS = {
    "nexus": "https://nexusmods.com/stardewvalley/mods/{}",
    "github": "https://github.com/{}",
    "moddrop": "https://www.moddrop.com/stardew-valley/mods/{}",
}


@dataclass
class UpdateKey:
    """Parsed update key: Provider:Value[@Suffix]."""

    provider: str
    value: str
    suffix: str | None = None

    @property
    def url(self) -> str | None:
        template = PROVIDER_URLS.get(self.provider.lower())
        if template is None:
            return None
        return template.format(self.value)


def parse_update_key(raw: str) -> UpdateKey | None:
    """
    Parse an update key string.

    Supported formats:
        - Nexus:1234
        - GitHub:owner/repo
        - Nexus:1234@optional-file-suffix

    Returns None if the string has no provider separator.
    """
    provider, sep, rest = raw.partition(":")
    if not sep:
        return None

    value, at, suffix = rest.partition("@")
    return UpdateKey(
        provider=provider.strip(),
        value=value.strip(),
        suffix=suffix.strip() if at else None,
    )


def mod_links(update_keys: list[str]) -> dict[str, str]:
    """
    Map update keys to mod page URLs, keyed by lowercased provider.

    Unknown providers and malformed keys are logged and skipped.
    """
    links: dict[str, str] = {}
    for raw in update_keys:
        key = parse_update_key(raw)
        if key is None:
            logger.debug("Malformed update key %r", raw)
            continue
        url = key.url
        if url is None:
            logger.debug("Unknown update key provider %s (%s)", key.provider, key.value)
            continue
        links[key.provider.lower()] = url
    return links
