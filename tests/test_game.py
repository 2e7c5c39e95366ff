import pytest

from stardew_mod_manager import game as game_module
from stardew_mod_manager.game import GameData, GameNotFoundError, find_game_dir, load_game_data


def test_layout_paths(tmp_path):
    data = GameData.from_game_dir(tmp_path)
    assert data.mods_path == tmp_path / "Mods"
    assert data.profile_path == tmp_path / "SVMM" / "profiles"
    assert data.deleted_path == tmp_path / "SVMM" / "deleted"
    assert data.profile_marker == tmp_path / "Mods" / ".profile"
    assert data.disabled_dir("P") == tmp_path / "SVMM" / "profiles" / "P" / "disabled"


def test_load_game_data_bootstraps(tmp_path):
    data = load_game_data(tmp_path)
    assert data.mods_path.is_dir()
    assert sorted(p.name for p in data.profile_path.iterdir()) == [
        "Profile 1",
        "Profile 2",
        "Profile 3",
    ]


def test_load_game_data_missing_dir(tmp_path):
    with pytest.raises(GameNotFoundError):
        load_game_data(tmp_path / "nope")


def test_load_game_data_without_steam(monkeypatch):
    monkeypatch.setattr(game_module, "find_game_dir", lambda: None)
    with pytest.raises(GameNotFoundError):
        load_game_data()


def test_find_game_dir_in_steam_library(monkeypatch, tmp_path):
    steam_root = tmp_path / "steam"
    library = tmp_path / "library"
    (steam_root / "steamapps").mkdir(parents=True)
    (library / "steamapps" / "common" / "stardew valley").mkdir(parents=True)
    (steam_root / "steamapps" / "libraryfolders.vdf").write_text(
        '"libraryfolders"\n{\n\t"1"\n\t{\n\t\t"path"\t\t"%s"\n\t}\n}\n' % library
    )
    monkeypatch.setattr(game_module, "find_steam_root", lambda: steam_root)

    assert find_game_dir() == library / "steamapps" / "common" / "stardew valley"


def test_find_game_dir_without_steam(monkeypatch):
    monkeypatch.setattr(game_module, "find_steam_root", lambda: None)
    assert find_game_dir() is None
