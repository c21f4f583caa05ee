from __future__ import annotations

from pathlib import Path

from savescan.config import Config
from savescan.core.path_resolver import ResolverEnv
from savescan.core.synthesizer import generate_save_units, synthesize_save_units
from savescan.models.game import GameInfo, SaveRule
from savescan.models.save_unit import SaveUnitType
from savescan.models.scan import SaveMatchResult


def _match(rule_id: str, path: Path, confidence: float, exists: bool = True) -> SaveMatchResult:
    return SaveMatchResult(rule_id=rule_id, resolved_path=path, exists=exists, confidence=confidence)


def test_only_existing_paths_become_units(tmp_path: Path) -> None:
    folder = tmp_path / "Saves"
    folder.mkdir()
    units = synthesize_save_units([
        _match("a", folder, 0.9),
        _match("b", tmp_path / "missing", 0.4, exists=False),
    ], device_id="dev1")
    assert len(units) == 1
    assert units[0].unit_type is SaveUnitType.FOLDER
    assert units[0].get_path_for_device("dev1") == str(folder)
    assert units[0].get_path_for_device("other") is None
    assert units[0].delete_before_apply is False


def test_duplicate_paths_collapse(tmp_path: Path) -> None:
    folder = tmp_path / "Saves"
    folder.mkdir()
    units = synthesize_save_units([
        _match("low", folder, 0.5),
        _match("high", folder, 0.9),
    ], device_id="dev1")
    assert len(units) == 1


def test_files_are_classified(tmp_path: Path) -> None:
    save_file = tmp_path / "profile.sav"
    save_file.write_bytes(b"x")
    [unit] = synthesize_save_units([_match("f", save_file, 0.7)], device_id="dev1")
    assert unit.unit_type is SaveUnitType.FILE


def test_default_device_comes_from_config(tmp_path: Path, isolated_config: Config) -> None:
    folder = tmp_path / "Saves"
    folder.mkdir()
    [unit] = synthesize_save_units([_match("a", folder, 0.9)])
    assert list(unit.paths) == [isolated_config.machine_id]


def test_generate_save_units(tmp_path: Path) -> None:
    saves = tmp_path / "home" / ".factorio" / "saves"
    saves.mkdir(parents=True)
    env = ResolverEnv(variables={"home": str(tmp_path / "home")}, environ={}, target="linux")
    game = GameInfo(name="Factorio", save_rules=(
        SaveRule(id="f", path_template="<home>/.factorio/saves", confidence=0.95),
        SaveRule(id="g", path_template="<home>/.factorio/other", confidence=0.95),
    ))
    units = generate_save_units(game, None, env=env, device_id="pc")
    assert [u.paths for u in units] == [{"pc": str(saves)}]
