import pytest

from conftest import manifest_payload, write_manifest
from stardew_mod_manager.manifest import ManifestError
from stardew_mod_manager.scanner import find_in, load_mods_from_dir


def test_scan_finds_manifests_up_to_depth_three(tmp_path):
    write_manifest(tmp_path / "A", manifest_payload("a"))
    write_manifest(tmp_path / "Pack" / "B", manifest_payload("b"))
    write_manifest(tmp_path / "Pack" / "Deep" / "C", manifest_payload("c"))

    mods = load_mods_from_dir(tmp_path, True)

    assert sorted(m.unique_id for m in mods) == ["a", "b"]
    assert all(m.active for m in mods)


def test_mod_path_is_manifest_parent(tmp_path):
    write_manifest(tmp_path / "Pack" / "B", manifest_payload("b"))
    (mod,) = load_mods_from_dir(tmp_path, False)
    assert mod.path == tmp_path / "Pack" / "B"
    assert mod.active is False


def test_scan_orders_by_manifest_mtime(tmp_path):
    write_manifest(tmp_path / "A", manifest_payload("newest"), mtime=3000)
    write_manifest(tmp_path / "B", manifest_payload("oldest"), mtime=1000)
    write_manifest(tmp_path / "C", manifest_payload("middle"), mtime=2000)

    mods = load_mods_from_dir(tmp_path, True)

    assert [m.unique_id for m in mods] == ["oldest", "middle", "newest"]


def test_bad_manifest_aborts_scan(tmp_path):
    write_manifest(tmp_path / "Good", manifest_payload("good"))
    bad = tmp_path / "Bad"
    bad.mkdir()
    (bad / "manifest.json").write_text("{ nope", encoding="utf-8")

    with pytest.raises(ManifestError):
        load_mods_from_dir(tmp_path, True)


def test_missing_root_scans_empty(tmp_path):
    assert load_mods_from_dir(tmp_path / "missing", True) == []


def test_find_in_trims_whitespace(tmp_path):
    write_manifest(tmp_path / "A", manifest_payload(" a.b  "))
    mods = load_mods_from_dir(tmp_path, True)
    assert find_in(mods, "a.b") is mods[0]
    assert find_in(mods, "  a.b") is mods[0]
    assert find_in(mods, "A.B") is None
