"""Data model for scan options, progress and results."""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass, field, fields
from pathlib import Path

from savescan.models.game import DetectedGame


def current_platform() -> str:
    """Return the platform tag of this host (``windows``/``linux``/``macos``)."""
    system = _platform.system()
    if system == "Windows":
        return "windows"
    if system == "Darwin":
        return "macos"
    return "linux"


@dataclass
class ScanOptions:
    """Which installation sources to consult during one scan."""

    platform: str = field(default_factory=current_platform)
    search_steam: bool = True
    search_epic: bool = True
    search_origin: bool = True
    search_registry: bool = True
    search_common_dirs: bool = True
    search_processes: bool = False

    def is_enabled(self, option: str) -> bool:
        return bool(getattr(self, option, False))

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def for_current_platform(cls, **toggles: bool) -> ScanOptions:
        return cls.from_dict({**toggles, "platform": current_platform()})

    @classmethod
    def from_dict(cls, data: dict) -> ScanOptions:
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for k, v in kwargs.items():
            if k != "platform":
                kwargs[k] = bool(v)
        return cls(**kwargs)


@dataclass
class SaveMatchResult:
    """Outcome of resolving one save rule against one candidate."""

    rule_id: str
    resolved_path: Path
    exists: bool
    confidence: float

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "resolved_path": str(self.resolved_path),
            "exists": self.exists,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ScanProgressEvent:
    """Payload of the ``scan_progress`` event."""

    step: str
    current: int
    total: int
    message: str | None = None

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "current": self.current,
            "total": self.total,
            "message": self.message,
        }


@dataclass
class ScanResult:
    """Everything one scan produced.  Owned by the caller once returned."""

    detected: list[DetectedGame] = field(default_factory=list)
    matches: list[SaveMatchResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "detected": [d.to_dict() for d in self.detected],
            "matches": [m.to_dict() for m in self.matches],
            "errors": list(self.errors),
        }
