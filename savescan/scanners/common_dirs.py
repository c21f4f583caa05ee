"""Fallback scan of well-known launcher install roots under Program Files."""

from __future__ import annotations

from pathlib import Path

from savescan.models.game import DetectedGame, DetectionSource
from savescan.models.scan import ScanOptions
from savescan.scanners.base import SourceScanner, list_child_dirs, program_files_roots

VENDOR_ROOTS = (
    Path("Steam") / "steamapps" / "common",
    Path("Epic Games"),
    Path("Origin Games"),
    Path("GOG Galaxy") / "Games",
    Path("Ubisoft") / "Ubisoft Game Launcher" / "games",
)


def common_game_roots() -> list[Path]:
    return [pf / vendor for pf in program_files_roots() for vendor in VENDOR_ROOTS]


def scan_common_dirs(options: ScanOptions) -> list[DetectedGame]:
    detected: list[DetectedGame] = []
    for root in common_game_roots():
        detected.extend(list_child_dirs(root, DetectionSource.COMMON_DIR))
    return detected


SCANNER = SourceScanner(
    source=DetectionSource.COMMON_DIR,
    option="search_common_dirs",
    platforms=("windows",),
    scan=scan_common_dirs,
)
