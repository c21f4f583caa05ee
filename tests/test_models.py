from __future__ import annotations

from pathlib import Path

from savescan.models.game import DetectedGame, DetectionSource, GameInfo, SaveRule
from savescan.models.scan import ScanOptions, current_platform


def test_game_info_equality_ignores_case_and_alias_order() -> None:
    a = GameInfo(name="Stardew Valley", aliases=("SV", "Stardew"))
    b = GameInfo(name="stardew valley", aliases=("stardew", "sv"))
    assert a == b
    assert hash(a) == hash(b)
    assert a != GameInfo(name="Stardew Valley")


def test_game_info_matches_name_and_aliases() -> None:
    game = GameInfo(name="Dark Souls III", aliases=("DS3",))
    assert game.matches(" dark souls iii ")
    assert game.matches("ds3")
    assert not game.matches("Dark Souls")


def test_save_rule_confidence_is_clamped() -> None:
    assert SaveRule(id="a", path_template="x", confidence=1.7).confidence == 1.0
    assert SaveRule(id="b", path_template="x", confidence=-0.2).confidence == 0.0


def test_save_rule_supports_platform() -> None:
    rule = SaveRule(id="a", path_template="x", platforms=("Windows",))
    assert rule.supports("windows")
    assert not rule.supports("linux")


def test_detected_game_dict_conversion() -> None:
    game = DetectedGame.from_name("Celeste", Path("/games/Celeste"), DetectionSource.STEAM)
    data = game.to_dict()
    assert data["source"] == "Steam"
    assert DetectedGame.from_dict(data).install_path == Path("/games/Celeste")


def test_scan_options_from_dict_ignores_unknown_keys() -> None:
    options = ScanOptions.from_dict({"search_steam": 0, "bogus": True, "platform": "linux"})
    assert options.platform == "linux"
    assert not options.is_enabled("search_steam")
    assert options.is_enabled("search_epic")
    assert not options.is_enabled("search_processes")


def test_scan_options_for_current_platform() -> None:
    options = ScanOptions.for_current_platform(search_epic=False)
    assert options.platform == current_platform()
    assert not options.search_epic
    assert options.search_steam
