"""Shared pieces of the installation-source scanners.

Every scanner is a plain function ``scan(options) -> list[DetectedGame]``
wrapped in a :class:`SourceScanner` record that says which source it
reports, which :class:`ScanOptions` toggle enables it and on which
platforms it can run.

Scanners are best-effort: a launcher that is not installed, a missing
manifest directory or a malformed file is logged and yields fewer (or
no) results.  Only an I/O failure while listing a directory that does
exist is raised, as :class:`ScanError`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from loguru import logger

from savescan.errors import ScanError
from savescan.models.game import DetectedGame, DetectionSource
from savescan.models.scan import ScanOptions

PROGRAMDATA_OVERRIDE_ENV = "SAVESCAN_PROGRAMDATA_OVERRIDE"


@dataclass(frozen=True)
class SourceScanner:
    source: DetectionSource
    option: str
    """Name of the :class:`ScanOptions` flag that enables this scanner."""
    platforms: tuple[str, ...]
    scan: Callable[[ScanOptions], list[DetectedGame]]

    @property
    def name(self) -> str:
        return self.source.value.lower()

    def supports(self, platform: str) -> bool:
        return not self.platforms or platform in self.platforms


# ---------------------------------------------------------------------------
# Well-known roots
# ---------------------------------------------------------------------------

def program_files_roots() -> list[Path]:
    """``Program Files`` and ``Program Files (x86)``, honouring the env vars."""
    roots: list[Path] = []
    for var, default in (
        ("PROGRAMFILES", "C:/Program Files"),
        ("PROGRAMFILES(X86)", "C:/Program Files (x86)"),
    ):
        p = Path(os.environ.get(var) or default)
        if p not in roots:
            roots.append(p)
    return roots


def program_data_root() -> Path:
    """ProgramData directory: override env -> ``PROGRAMDATA`` -> default."""
    for var in (PROGRAMDATA_OVERRIDE_ENV, "PROGRAMDATA"):
        value = os.environ.get(var)
        if value and Path(value).exists():
            return Path(value)
    return Path("C:/ProgramData")


# ---------------------------------------------------------------------------
# Directory enumeration
# ---------------------------------------------------------------------------

def list_child_dirs(root: Path, source: DetectionSource) -> list[DetectedGame]:
    """One candidate per immediate sub-directory of *root*.

    A missing *root* yields nothing; failing to list an existing one
    raises :class:`ScanError`.
    """
    if not root.is_dir():
        return []
    try:
        children = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError as e:
        raise ScanError(f"Cannot enumerate {root}: {e}") from e
    logger.debug("{}: {} entries under {}", source.value, len(children), root)
    return [DetectedGame.from_name(p.name, p, source) for p in children]
