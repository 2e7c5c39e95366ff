"""Service layer - the operations the command line (or any other front end) calls."""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from .api import SmapiAPI
from .config import ManagerConfig
from .dependencies import (
    DependencyReport,
    MissingDependency,
    ResolvedMissingDependency,
    resolve_missing_dependencies,
)
from .extractor import (
    ArchiveCandidate,
    delete_archive,
    find_archives_with_manifests,
    install_archive,
)
from .game import GameData
from .library import ModLibrary
from .links import mod_links
from .profiles import ProfileManager, ProfileSwitch
from .scanner import InstalledMod

logger = logging.getLogger(__name__)


@dataclass
class ModView:
    id: str
    name: str
    author: str
    version: str
    description: str
    path: str
    active: bool
    nexus: str = ""
    github: str = ""
    moddrop: str = ""


@dataclass
class MissingDependencyView:
    id: str
    name: str
    url: str
    required_by: list[str]
    required: bool


@dataclass
class ArchiveView:
    name: str
    path: str
    created_at: float
    mods: list[ModView]


@dataclass
class ModListResult:
    profile: str
    profiles: list[str]
    active: list[ModView]
    inactive: list[ModView]


@dataclass
class ToggleResult:
    mod: ModView

    @property
    def active(self) -> bool:
        return self.mod.active


@dataclass
class InstallResult:
    archive: str
    target_dir: str
    mods: list[ModView] = field(default_factory=list)


def mod_to_view(mod: InstalledMod) -> ModView:
    links = mod_links(mod.manifest.update_keys)
    return ModView(
        id=mod.manifest.unique_id,
        name=mod.manifest.name,
        author=mod.manifest.author,
        version=mod.manifest.version,
        description=mod.manifest.description or "",
        path=str(mod.path),
        active=mod.active,
        nexus=links.get("nexus", ""),
        github=links.get("github", ""),
        moddrop=links.get("moddrop", ""),
    )


def resolved_to_view(dependency: ResolvedMissingDependency) -> MissingDependencyView:
    return MissingDependencyView(
        id=dependency.mod.id,
        name=dependency.mod.name,
        url=dependency.mod.url,
        required_by=list(dependency.required_by),
        required=dependency.required,
    )


def missing_to_view(dependency: MissingDependency) -> MissingDependencyView:
    """View for a gap the registry had no data for."""
    return MissingDependencyView(
        id=dependency.unique_id,
        name="",
        url="",
        required_by=list(dependency.required_by),
        required=dependency.required,
    )


def archive_to_view(candidate: ArchiveCandidate) -> ArchiveView:
    mods = [
        mod_to_view(InstalledMod(
            path=Path(entry.manifest_path),
            active=False,
            modified=candidate.created_at,
            manifest=entry.manifest,
        ))
        for entry in candidate.manifests
    ]
    return ArchiveView(
        name=candidate.path.name,
        path=str(candidate.path),
        created_at=candidate.created_at,
        mods=mods,
    )


class ModManagerService:
    """
    Mod management for one game installation.

    Mutating operations (toggle, switch, remove, install) are serialized
    within the process. Reads always rescan the disk.
    """

    def __init__(
        self,
        game: GameData,
        config: ManagerConfig | None = None,
        api: SmapiAPI | None = None,
    ):
        self.game = game
        self.config = config or ManagerConfig()
        self._api = api
        self.profiles = ProfileManager(game)
        self.library = ModLibrary(game, self.profiles)
        self._mutation_lock = threading.Lock()

    @property
    def api(self) -> SmapiAPI:
        if self._api is None:
            self._api = SmapiAPI(self.config.registry_url, self.config.request_timeout)
        return self._api

    def list_mods(self) -> ModListResult:
        active, inactive = self.library.load_mods()
        return ModListResult(
            profile=self.profiles.get_active_profile(),
            profiles=self.profiles.list_profiles(),
            active=[mod_to_view(m) for m in active],
            inactive=[mod_to_view(m) for m in inactive],
        )

    def get_mod(self, unique_id: str) -> ModView:
        return mod_to_view(self.library.find_mod(unique_id))

    def toggle_mod(self, unique_id: str) -> ToggleResult:
        with self._mutation_lock:
            mod = self.profiles.toggle(unique_id)
        return ToggleResult(mod=mod_to_view(mod))

    def switch_profile(self, profile: str) -> ProfileSwitch:
        with self._mutation_lock:
            return self.profiles.select(profile)

    def remove_mod(self, unique_id: str) -> Path:
        with self._mutation_lock:
            return self.profiles.remove(unique_id)

    def install(self, archive_path: Path) -> InstallResult:
        """Install an archive, then rescan to report which mods appeared."""
        with self._mutation_lock:
            before = self._active_paths()
            target_dir = install_archive(Path(archive_path), self.game.mods_path)
            active, _ = self.library.load_mods()

        new_mods = [mod_to_view(m) for m in active if m.path not in before]
        if not new_mods:
            logger.warning("No new mods found after installing %s", archive_path)
        return InstallResult(
            archive=str(archive_path),
            target_dir=str(target_dir),
            mods=new_mods,
        )

    def find_downloads(self, downloads_dir: Path | None = None) -> list[ArchiveView]:
        base_dir = downloads_dir or self.config.downloads_path
        candidates = find_archives_with_manifests(base_dir)
        candidates.sort(key=lambda c: c.created_at, reverse=True)
        return [archive_to_view(c) for c in candidates]

    def delete_download(self, archive_path: Path) -> None:
        delete_archive(archive_path)

    def missing_dependencies(self) -> DependencyReport:
        active, _ = self.library.load_mods()
        return resolve_missing_dependencies(active, self.api)

    def missing_dependency_views(self) -> tuple[list[MissingDependencyView], str | None]:
        """Resolved gaps first, then gaps without registry data."""
        report = self.missing_dependencies()
        views = [resolved_to_view(d) for d in report.resolved]
        views.extend(missing_to_view(d) for d in report.unresolved)
        return views, report.error

    def _active_paths(self) -> set[Path]:
        active, _ = self.library.load_mods()
        return {m.path for m in active}
