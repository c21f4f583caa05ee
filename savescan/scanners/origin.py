"""Origin / EA app scanner.

EA Desktop writes ``installedGames.json`` whose layout has changed
between releases, so the document is walked generically: every object
carrying both a name-like and an install-like string counts.  The
classic ``Origin Games`` folders are enumerated as well.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from savescan.models.game import DetectedGame, DetectionSource
from savescan.models.scan import ScanOptions
from savescan.scanners.base import (
    SourceScanner,
    list_child_dirs,
    program_data_root,
    program_files_roots,
)

INSTALLED_GAMES_JSON = Path("Electronic Arts") / "EA Desktop" / "installedGames.json"

_NAME_KEYS = ("displayName", "productName", "title")
_INSTALL_KEYS = ("installLocation", "installationPath", "path")


def _pick(obj: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return None


def extract_installed_games(value: Any, out: list[tuple[str, Path]] | None = None) -> list[tuple[str, Path]]:
    """Collect ``(name, install_path)`` pairs from an arbitrary JSON value."""
    if out is None:
        out = []
    if isinstance(value, list):
        for item in value:
            extract_installed_games(item, out)
    elif isinstance(value, dict):
        name = _pick(value, _NAME_KEYS)
        install = _pick(value, _INSTALL_KEYS)
        if name is not None and install is not None:
            out.append((name, Path(install)))
            return out
        for child in value.values():
            extract_installed_games(child, out)
    return out


def read_installed_games(path: Path) -> list[tuple[str, Path]]:
    """Pairs found in *path*; an unreadable or malformed file yields none."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
        return extract_installed_games(document)
    except (OSError, ValueError, RecursionError) as e:
        logger.warning("Failed to read {}: {}", path, e)
        return []


def scan_origin_games(options: ScanOptions) -> list[DetectedGame]:
    detected: list[DetectedGame] = []

    ea_json = program_data_root() / INSTALLED_GAMES_JSON
    if ea_json.is_file():
        for name, install_path in read_installed_games(ea_json):
            detected.append(DetectedGame.from_name(name, install_path, DetectionSource.ORIGIN))
    else:
        logger.debug("EA Desktop manifest not found: {}", ea_json)

    for pf in program_files_roots():
        detected.extend(list_child_dirs(pf / "Origin Games", DetectionSource.ORIGIN))
    return detected


SCANNER = SourceScanner(
    source=DetectionSource.ORIGIN,
    option="search_origin",
    platforms=("windows",),
    scan=scan_origin_games,
)
