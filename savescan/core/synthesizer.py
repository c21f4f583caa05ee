"""Turn existing save matches into per-device save units."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from savescan.core.device import get_current_device_id
from savescan.core.matcher import is_plausible_save_dir, match_save_paths
from savescan.core.path_resolver import ResolverEnv
from savescan.models.game import GameInfo
from savescan.models.save_unit import SaveUnit, SaveUnitType
from savescan.models.scan import SaveMatchResult

PLAUSIBLE_BONUS = 0.1


def synthesize_save_units(
    matches: Iterable[SaveMatchResult],
    device_id: str | None = None,
) -> list[SaveUnit]:
    """One unit per distinct existing path, mapped to *device_id*.

    When several matches share a path, the one with the highest
    ``confidence`` (plus a bonus for plausible save folders) is kept.
    """
    if device_id is None:
        device_id = get_current_device_id()

    best: dict[str, tuple[float, SaveMatchResult]] = {}
    for m in matches:
        if not m.exists:
            continue
        key = str(m.resolved_path)
        score = m.confidence + (PLAUSIBLE_BONUS if is_plausible_save_dir(Path(m.resolved_path)) else 0.0)
        prev = best.get(key)
        if prev is None or score > prev[0]:
            best[key] = (score, m)

    units: list[SaveUnit] = []
    for key, (_, m) in best.items():
        unit_type = SaveUnitType.FILE if Path(m.resolved_path).is_file() else SaveUnitType.FOLDER
        units.append(SaveUnit(unit_type=unit_type, paths={device_id: key}))
    return units


def generate_save_units(
    game: GameInfo,
    install_path: Path | None,
    env: ResolverEnv | None = None,
    device_id: str | None = None,
) -> list[SaveUnit]:
    return synthesize_save_units(match_save_paths(game, install_path, env=env), device_id)
