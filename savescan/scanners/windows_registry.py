"""Installed programs from the Windows uninstall registry keys."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from savescan.models.game import DetectedGame, DetectionSource
from savescan.models.scan import ScanOptions
from savescan.scanners.base import SourceScanner

UNINSTALL_KEYS = (
    ("HKEY_LOCAL_MACHINE", "SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\Uninstall"),
    ("HKEY_LOCAL_MACHINE", "SOFTWARE\\WOW6432Node\\Microsoft\\Windows\\CurrentVersion\\Uninstall"),
    ("HKEY_CURRENT_USER", "SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\Uninstall"),
)


def scan_registry_games(options: ScanOptions) -> list[DetectedGame]:
    """Entries with a ``DisplayName`` and an existing ``InstallLocation``."""
    detected: list[DetectedGame] = []
    try:
        import winreg
    except ImportError:
        logger.debug("winreg unavailable, skipping registry scan")
        return detected

    for hive_name, sub in UNINSTALL_KEYS:
        try:
            root = winreg.OpenKey(getattr(winreg, hive_name), sub)
        except OSError:
            logger.debug("Registry key not found: {}\\{}", hive_name, sub)
            continue
        with root:
            index = 0
            while True:
                try:
                    child_name = winreg.EnumKey(root, index)
                except OSError:
                    break
                index += 1
                try:
                    with winreg.OpenKey(root, child_name) as child:
                        name, _ = winreg.QueryValueEx(child, "DisplayName")
                        location, _ = winreg.QueryValueEx(child, "InstallLocation")
                except OSError:
                    continue
                if not isinstance(name, str) or not isinstance(location, str):
                    continue
                name, location = name.strip(), location.strip().strip('"')
                if not name or not location:
                    continue
                p = Path(location)
                if p.is_dir():
                    detected.append(DetectedGame.from_name(name, p, DetectionSource.REGISTRY))

    logger.info("Registry: {} installed programs with an install location", len(detected))
    return detected


SCANNER = SourceScanner(
    source=DetectionSource.REGISTRY,
    option="search_registry",
    platforms=("windows",),
    scan=scan_registry_games,
)
