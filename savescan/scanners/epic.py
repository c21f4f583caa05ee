"""Epic Games Launcher scanner (JSON manifests under ProgramData)."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from savescan.errors import ScanError
from savescan.models.game import DetectedGame, DetectionSource
from savescan.models.scan import ScanOptions
from savescan.scanners.base import SourceScanner, program_data_root

MANIFEST_SUBDIRS = (
    Path("Epic") / "EpicGamesLauncher" / "Data" / "Manifests",
    Path("EpicGamesLauncher") / "Data" / "Manifests",
)
MANIFEST_SUFFIXES = {".item", ".manifest"}


def _first_str(data: dict, *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_manifest(path: Path) -> tuple[str, Path] | None:
    """Return ``(name, install_dir)`` for a manifest whose install dir exists."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError, RecursionError) as e:
        logger.warning("Skipping malformed Epic manifest {}: {}", path, e)
        return None
    if not isinstance(data, dict):
        return None

    name = _first_str(data, "DisplayName", "AppName")
    install = _first_str(data, "InstallLocation", "installLocation")
    if name is None or install is None:
        return None
    install_path = Path(install)
    if not install_path.exists():
        logger.debug("Epic install dir missing for {}: {}", name, install_path)
        return None
    return name, install_path


def manifest_dirs() -> list[Path]:
    root = program_data_root()
    return [root / sub for sub in MANIFEST_SUBDIRS]


def scan_epic_games(options: ScanOptions) -> list[DetectedGame]:
    detected: list[DetectedGame] = []
    seen: set[str] = set()
    for directory in manifest_dirs():
        if not directory.is_dir():
            continue
        try:
            files = sorted(directory.iterdir())
        except OSError as e:
            raise ScanError(f"Cannot enumerate {directory}: {e}") from e
        for f in files:
            if f.suffix.lower() not in MANIFEST_SUFFIXES:
                continue
            parsed = parse_manifest(f)
            if parsed is None:
                continue
            name, install_path = parsed
            key = str(install_path)
            if key in seen:
                continue
            seen.add(key)
            detected.append(DetectedGame.from_name(name, install_path, DetectionSource.EPIC))

    if not detected:
        logger.info("No Epic manifests found")
    return detected


SCANNER = SourceScanner(
    source=DetectionSource.EPIC,
    option="search_epic",
    platforms=("windows",),
    scan=scan_epic_games,
)
