"""Find dependencies that installed mods need but that are not installed."""

import logging
from dataclasses import dataclass, field

from .api import RegistryError, RegistryMod, SmapiAPI
from .scanner import InstalledMod

logger = logging.getLogger(__name__)


@dataclass
class MissingDependency:
    """A dependency ID no installed mod provides."""

    unique_id: str
    required_by: list[str] = field(default_factory=list)
    required: bool = False


@dataclass
class ResolvedMissingDependency:
    """A missing dependency joined with its registry metadata."""

    mod: RegistryMod
    required_by: list[str]
    required: bool


@dataclass
class DependencyReport:
    """
    Result of a dependency check.

    resolved holds gaps the registry knew about, unresolved the rest. When
    the registry could not be reached every gap is unresolved and error is set.
    """

    resolved: list[ResolvedMissingDependency]
    unresolved: list[MissingDependency]
    error: str | None = None

    @property
    def count(self) -> int:
        return len(self.resolved) + len(self.unresolved)


def find_missing_dependencies(mods: list[InstalledMod]) -> list[MissingDependency]:
    """
    Aggregate dependencies not satisfied by any mod in mods.

    Each gap lists the distinct mods declaring it; required is true if any
    declaration marks it required.
    """
    installed_ids = {mod.unique_id for mod in mods}
    missing: dict[str, MissingDependency] = {}

    for mod in mods:
        for dependency in mod.manifest.dependencies:
            dep_id = dependency.unique_id.strip()
            if dep_id in installed_ids:
                continue

            entry = missing.setdefault(dep_id, MissingDependency(unique_id=dep_id))
            if mod.unique_id not in entry.required_by:
                entry.required_by.append(mod.unique_id)
            entry.required = entry.required or dependency.required

    return list(missing.values())


def resolve_missing_dependencies(mods: list[InstalledMod], api: SmapiAPI) -> DependencyReport:
    """Find missing dependencies and look them up in the registry, required first."""
    missing = find_missing_dependencies(mods)
    logger.debug("Missing dependencies count: %d", len(missing))
    if not missing:
        return DependencyReport(resolved=[], unresolved=[])

    try:
        registry_mods = api.resolve_mods([gap.unique_id for gap in missing])
    except RegistryError as e:
        logger.warning("Could not resolve missing dependencies: %s", e)
        return DependencyReport(resolved=[], unresolved=_sorted_gaps(missing), error=str(e))

    by_id = {gap.unique_id: gap for gap in missing}
    resolved = []
    resolved_ids: set[str] = set()
    for registry_mod in registry_mods:
        gap = by_id.get(registry_mod.id.strip())
        if gap is None:
            logger.debug("Registry returned unrequested mod %s", registry_mod.id)
            continue
        if not registry_mod.found or gap.unique_id in resolved_ids:
            continue
        resolved_ids.add(gap.unique_id)
        resolved.append(
            ResolvedMissingDependency(
                mod=registry_mod,
                required_by=list(gap.required_by),
                required=gap.required,
            )
        )

    unresolved = [gap for gap in missing if gap.unique_id not in resolved_ids]

    resolved.sort(key=lambda item: (not item.required, item.mod.id))
    return DependencyReport(resolved=resolved, unresolved=_sorted_gaps(unresolved))


def _sorted_gaps(gaps: list[MissingDependency]) -> list[MissingDependency]:
    return sorted(gaps, key=lambda gap: (not gap.required, gap.unique_id))
