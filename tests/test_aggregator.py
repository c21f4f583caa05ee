from __future__ import annotations

from pathlib import Path

from savescan.core.aggregator import aggregate, dedup_key, install_path_key
from savescan.models.game import DetectedGame, DetectionSource


def test_paths_differing_in_separators_collapse() -> None:
    a = DetectedGame.from_name("X", Path("C:\\Games\\X"), DetectionSource.STEAM)
    b = DetectedGame.from_name("X (copy)", Path("C:/Games/X/"), DetectionSource.COMMON_DIR)
    merged = aggregate([[a], [b]])
    assert merged == [a]


def test_first_occurrence_wins_across_batches(tmp_path: Path) -> None:
    install = tmp_path / "Game"
    install.mkdir()
    first = DetectedGame.from_name("Game", install, DetectionSource.EPIC)
    second = DetectedGame.from_name("game", Path(str(install) + "/"), DetectionSource.STEAM)
    merged = aggregate([[first], [second]])
    assert len(merged) == 1
    assert merged[0].source is DetectionSource.EPIC


def test_symlinked_install_dirs_collapse(tmp_path: Path) -> None:
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    try:
        link.symlink_to(real, target_is_directory=True)
    except (OSError, NotImplementedError):
        return
    assert install_path_key(link) == install_path_key(real)


def test_entries_without_path_key_on_name_and_source() -> None:
    a = DetectedGame.from_name("Portal", None, DetectionSource.MANUAL)
    b = DetectedGame.from_name("PORTAL", None, DetectionSource.MANUAL)
    c = DetectedGame.from_name("Portal", None, DetectionSource.PROCESS)
    assert dedup_key(a) == "portal::Manual"
    assert aggregate([[a, b, c]]) == [a, c]


def test_distinct_paths_are_kept_in_order() -> None:
    games = [
        DetectedGame.from_name(n, Path(f"/games/{n}"), DetectionSource.STEAM)
        for n in ("b", "a", "c")
    ]
    assert [g.info.name for g in aggregate([games])] == ["b", "a", "c"]
