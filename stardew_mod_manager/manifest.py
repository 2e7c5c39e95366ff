"""Parse SMAPI mod manifests (manifest.json) into typed records."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import json5

MANIFEST_FILENAME = "manifest.json"

# Lowercased spellings accepted for each field: canonical first, then aliases.
MANIFEST_FIELDS = {
    "name": ("name",),
    "author": ("author",),
    "version": ("version",),
    "description": ("description",),
    "unique_id": ("uniqueid", "unique_id"),
    "dependencies": ("dependencies",),
    "update_keys": ("updatekeys", "update_keys"),
}

DEPENDENCY_FIELDS = {
    "unique_id": ("uniqueid", "unique_id"),
    "version": ("version", "minimumversion"),
    "required": ("isrequired", "is_required"),
}


class ManifestError(Exception):
    """Raised when a manifest cannot be parsed."""

    pass


@dataclass
class ModDependency:
    """A dependency declared by a mod."""

    unique_id: str
    version: str | None = None
    required: bool = False
    # Unrecognized keys, kept as-is
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModDependency":
        if not isinstance(data, dict):
            raise ManifestError(f"Dependency must be an object, got {type(data).__name__}")

        values, extra = _match_fields(data, DEPENDENCY_FIELDS)

        required = values.get("required", False)
        if not isinstance(required, bool):
            raise ManifestError(f"Dependency IsRequired must be a boolean, got {required!r}")

        return cls(
            unique_id=_require_str(values, "unique_id", "Dependency UniqueID"),
            version=_optional_str(values, "version", "Dependency Version"),
            required=required,
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data["UniqueID"] = self.unique_id
        if self.version is not None:
            data["MinimumVersion"] = self.version
        data["IsRequired"] = self.required
        return data


@dataclass
class ModManifest:
    """Parsed manifest.json of a mod."""

    name: str
    author: str
    version: str
    unique_id: str
    description: str | None = None
    dependencies: list[ModDependency] = field(default_factory=list)
    update_keys: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        """Unique ID as used for comparisons (surrounding whitespace removed)."""
        return self.unique_id.strip()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModManifest":
        """Build a manifest from decoded JSON, accepting canonical and aliased keys."""
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest must be an object, got {type(data).__name__}")

        values, _ = _match_fields(data, MANIFEST_FIELDS)

        dependencies = values.get("dependencies") or []
        if not isinstance(dependencies, list):
            raise ManifestError("Dependencies must be an array")

        update_keys = values.get("update_keys") or []
        if not isinstance(update_keys, list) or not all(
            isinstance(key, str) for key in update_keys
        ):
            raise ManifestError("UpdateKeys must be an array of strings")

        return cls(
            name=_require_str(values, "name", "Name"),
            author=_require_str(values, "author", "Author"),
            version=_require_str(values, "version", "Version"),
            unique_id=_require_str(values, "unique_id", "UniqueID"),
            description=_optional_str(values, "description", "Description"),
            dependencies=[ModDependency.from_dict(dep) for dep in dependencies],
            update_keys=list(update_keys),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the canonical key spelling."""
        data: dict[str, Any] = {
            "Name": self.name,
            "Author": self.author,
            "Version": self.version,
            "UniqueID": self.unique_id,
        }
        if self.description is not None:
            data["Description"] = self.description
        data["Dependencies"] = [dep.to_dict() for dep in self.dependencies]
        data["UpdateKeys"] = list(self.update_keys)
        return data


def parse_manifest(text: str) -> ModManifest:
    """
    Parse manifest text.

    The format is lenient JSON: comments, trailing commas and unquoted keys
    are accepted.
    """
    try:
        data = json5.loads(text)
    except ValueError as e:
        raise ManifestError(f"Invalid manifest JSON: {e}")
    return ModManifest.from_dict(data)


def load_manifest(path: Path) -> ModManifest:
    """Read and parse a manifest file. Errors mention the file path."""
    try:
        # SMAPI manifests are frequently saved with a BOM
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Failed to read {path}: {e}")

    try:
        return parse_manifest(text)
    except ManifestError as e:
        raise ManifestError(f"{path}: {e}")


def _match_fields(
    data: dict[str, Any], fields: dict[str, tuple[str, ...]]
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split raw keys into recognized fields and leftovers (case-insensitive)."""
    lookup = {}
    for attr, spellings in fields.items():
        for spelling in spellings:
            lookup[spelling] = attr

    values: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in data.items():
        attr = lookup.get(str(key).lower())
        if attr is None:
            extra[key] = value
        elif attr not in values:
            values[attr] = value
    return values, extra


def _require_str(values: dict[str, Any], attr: str, label: str) -> str:
    value = values.get(attr)
    if value is None:
        raise ManifestError(f"Missing required field: {label}")
    if not isinstance(value, str):
        raise ManifestError(f"{label} must be a string, got {value!r}")
    return value


def _optional_str(values: dict[str, Any], attr: str, label: str) -> str | None:
    value = values.get(attr)
    if value is not None and not isinstance(value, str):
        raise ManifestError(f"{label} must be a string, got {value!r}")
    return value
