import json

from click.testing import CliRunner

from conftest import manifest_payload, write_manifest, write_zip
from stardew_mod_manager import profiles as profiles_module
from stardew_mod_manager.cli import main


def invoke(game, tmp_path, *args, input=None):
    runner = CliRunner()
    return runner.invoke(
        main,
        ["--game-dir", str(game.installation_path), "--config-dir", str(tmp_path / "cfg"), *args],
        input=input,
    )


def test_list_shows_mods(game, tmp_path):
    write_manifest(game.mods_path / "Mod1", manifest_payload("a.b", name="Alpha"))

    result = invoke(game, tmp_path, "list")

    assert result.exit_code == 0, result.output
    assert "Profile 1" in result.output
    assert "a.b" in result.output


def test_toggle_then_list(game, tmp_path):
    write_manifest(game.mods_path / "Mod1", manifest_payload("a.b", name="Alpha"))

    result = invoke(game, tmp_path, "toggle", "a.b")

    assert result.exit_code == 0, result.output
    assert "disabled" in result.output
    assert (game.disabled_dir("Profile 1") / "Mod1").is_dir()


def test_toggle_unknown_mod_fails(game, tmp_path):
    result = invoke(game, tmp_path, "toggle", "missing.mod")
    assert result.exit_code == 1
    assert "Mod not found" in result.output


def test_switch_profile(game, tmp_path):
    write_manifest(game.mods_path / "Mod1", manifest_payload("a.b"))

    result = invoke(game, tmp_path, "switch", "Profile 2")

    assert result.exit_code == 0, result.output
    assert (game.enabled_dir("Profile 1") / "Mod1").is_dir()
    profiles = invoke(game, tmp_path, "profiles")
    assert "* Profile 2" in profiles.output


def test_remove_asks_for_confirmation(game, tmp_path):
    write_manifest(game.mods_path / "Mod1", manifest_payload("a.b"))

    aborted = invoke(game, tmp_path, "remove", "a.b", input="n\n")
    assert aborted.exit_code == 1
    assert (game.mods_path / "Mod1").is_dir()

    result = invoke(game, tmp_path, "remove", "a.b", "--yes")
    assert result.exit_code == 0, result.output
    assert not (game.mods_path / "Mod1").exists()


def test_install_archive(game, tmp_path):
    archive = write_zip(
        tmp_path / "MyMod.zip", {"manifest.json": json.dumps(manifest_payload("my.mod"))}
    )

    result = invoke(game, tmp_path, "install", str(archive))

    assert result.exit_code == 0, result.output
    assert "my.mod" in result.output
    assert (game.mods_path / "MyMod" / "manifest.json").exists()


def test_configure_saves_settings(game, tmp_path):
    result = invoke(game, tmp_path, "configure", "--downloads-dir", str(tmp_path / "dl"))

    assert result.exit_code == 0, result.output
    saved = json.loads((tmp_path / "cfg" / "config.json").read_text())
    assert saved["downloads_dir"] == str(tmp_path / "dl")


def test_filesystem_errors_are_reported(game, tmp_path, monkeypatch):
    def denied(root, active):
        raise PermissionError(13, "Permission denied", str(root))

    monkeypatch.setattr(profiles_module, "load_mods_from_dir", denied)

    result = invoke(game, tmp_path, "list")

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Permission denied" in result.output
