"""Steam library scanner.

Steam keeps a list of library folders in
``<steam>/steamapps/libraryfolders.vdf``; every directory under
``<library>/steamapps/common`` is one installed game.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from loguru import logger

from savescan.models.game import DetectedGame, DetectionSource
from savescan.models.scan import ScanOptions
from savescan.scanners.base import SourceScanner, list_child_dirs, program_files_roots

STEAM_OVERRIDE_ENV = "SAVESCAN_STEAM_PATH_OVERRIDE"

# Permissive: matches both the old flat and the new nested KeyValues layout.
_LIBRARY_PATH_RE = re.compile(r'"path"\s*"([^"]+)"')

_REGISTRY_LOCATIONS = (
    ("HKEY_CURRENT_USER", "Software\\Valve\\Steam"),
    ("HKEY_LOCAL_MACHINE", "Software\\WOW6432Node\\Valve\\Steam"),
)


def _steam_path_from_registry() -> Path | None:
    try:
        import winreg
        for hive_name, sub in _REGISTRY_LOCATIONS:
            try:
                with winreg.OpenKey(getattr(winreg, hive_name), sub) as key:
                    for value_name in ("SteamPath", "InstallPath"):
                        try:
                            value, _ = winreg.QueryValueEx(key, value_name)
                        except OSError:
                            continue
                        p = Path(value)
                        if p.exists():
                            return p
            except OSError:
                continue
    except ImportError:
        pass
    return None


def find_steam_root() -> Path | None:
    """Locate the Steam installation.

    Order: ``SAVESCAN_STEAM_PATH_OVERRIDE``, the registry (Windows), then
    the usual default locations.
    """
    override = os.environ.get(STEAM_OVERRIDE_ENV)
    if override and Path(override).exists():
        return Path(override)

    p = _steam_path_from_registry()
    if p is not None:
        return p

    home = Path.home()
    candidates = [pf / "Steam" for pf in program_files_roots()]
    candidates += [
        home / ".local" / "share" / "Steam",
        home / ".steam" / "steam",
        home / "Library" / "Application Support" / "Steam",
    ]
    for c in candidates:
        if c.exists():
            return c
    return None


def parse_library_folders(content: str) -> list[str]:
    """Every ``"path"`` value in a ``libraryfolders.vdf`` document."""
    paths = []
    for m in _LIBRARY_PATH_RE.finditer(content):
        raw = m.group(1).strip()
        if raw:
            paths.append(raw.replace("\\\\", "\\"))
    return paths


def read_library_folders(steam_root: Path) -> list[Path]:
    """Existing library folders plus the Steam root itself."""
    vdf = steam_root / "steamapps" / "libraryfolders.vdf"
    libraries: list[Path] = []
    try:
        content = vdf.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Failed to read {}: {}", vdf, e)
    else:
        for raw in parse_library_folders(content):
            p = Path(raw)
            if p.exists() and p not in libraries:
                libraries.append(p)
    if steam_root not in libraries:
        libraries.append(steam_root)
    return libraries


def scan_steam_games(options: ScanOptions) -> list[DetectedGame]:
    steam_root = find_steam_root()
    if steam_root is None:
        logger.warning("Steam installation not found")
        return []
    logger.info("Steam path: {}", steam_root)

    detected: list[DetectedGame] = []
    for lib in read_library_folders(steam_root):
        detected.extend(list_child_dirs(lib / "steamapps" / "common", DetectionSource.STEAM))
    return detected


SCANNER = SourceScanner(
    source=DetectionSource.STEAM,
    option="search_steam",
    platforms=("windows", "linux", "macos"),
    scan=scan_steam_games,
)
