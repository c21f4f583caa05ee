"""Data model for catalog games and scan observations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class DetectionSource(str, Enum):
    """Mechanism that produced a detection."""

    STEAM = "Steam"
    EPIC = "Epic"
    ORIGIN = "Origin"
    REGISTRY = "Registry"
    COMMON_DIR = "CommonDir"
    PROCESS = "Process"
    MANUAL = "Manual"


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class InstallRule:
    """Install-path lookup rule (carried through, not evaluated yet)."""

    id: str
    description: str | None = None
    patterns: tuple[str, ...] = ()
    registry_keys: tuple[str, ...] | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "patterns": list(self.patterns),
            "registry_keys": list(self.registry_keys) if self.registry_keys is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> InstallRule:
        keys = data.get("registry_keys")
        return cls(
            id=str(data.get("id", "")),
            description=data.get("description"),
            patterns=_as_tuple(data.get("patterns")),
            registry_keys=_as_tuple(keys) if keys is not None else None,
        )


@dataclass(frozen=True)
class SaveRule:
    """One plausible save location, expressed as a path template."""

    id: str
    path_template: str
    description: str | None = None
    requires: tuple[str, ...] | None = None
    platforms: tuple[str, ...] = ()
    confidence: float = 0.5
    """Author-assigned prior in [0, 1] that the template is correct."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))

    def supports(self, platform: str) -> bool:
        pl = platform.lower()
        return any(p.lower() == pl for p in self.platforms)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "path_template": self.path_template,
            "requires": list(self.requires) if self.requires is not None else None,
            "platforms": list(self.platforms),
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SaveRule:
        requires = data.get("requires")
        return cls(
            id=str(data.get("id", "")),
            path_template=str(data.get("path_template", "")),
            description=data.get("description"),
            requires=_as_tuple(requires) if requires is not None else None,
            platforms=_as_tuple(data.get("platforms")),
            confidence=data.get("confidence", 0.5),
        )


@dataclass(frozen=True, eq=False)
class GameInfo:
    """Canonical footprint of a game.

    Two ``GameInfo`` compare equal when their names match case-insensitively
    and they carry the same set of aliases (again case-insensitively, order
    ignored).  Rules do not take part in equality.
    """

    name: str
    aliases: tuple[str, ...] = ()
    external_id: str | None = None
    install_rules: tuple[InstallRule, ...] = ()
    save_rules: tuple[SaveRule, ...] = ()

    def _key(self) -> tuple[str, frozenset[str]]:
        return (
            self.name.strip().lower(),
            frozenset(a.strip().lower() for a in self.aliases),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameInfo):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def matches(self, name: str) -> bool:
        """Trimmed, case-insensitive test against the name and every alias."""
        q = name.strip().lower()
        if self.name.strip().lower() == q:
            return True
        return any(a.strip().lower() == q for a in self.aliases)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "aliases": list(self.aliases),
            "external_id": self.external_id,
            "install_rules": [r.to_dict() for r in self.install_rules],
            "save_rules": [r.to_dict() for r in self.save_rules],
        }

    @classmethod
    def from_dict(cls, data: dict) -> GameInfo:
        return cls(
            name=str(data.get("name", "")),
            aliases=_as_tuple(data.get("aliases")),
            external_id=data.get("external_id", data.get("pcgw_id")),
            install_rules=tuple(InstallRule.from_dict(r) for r in data.get("install_rules") or []),
            save_rules=tuple(SaveRule.from_dict(r) for r in data.get("save_rules") or []),
        )


@dataclass
class DetectedGame:
    """One scan observation of a (possibly) installed game."""

    info: GameInfo
    """Best-effort info; replaced by the catalog entry on enrichment."""

    install_path: Path | None = None
    """Absolute install directory, if the source reported one."""

    source: DetectionSource = DetectionSource.MANUAL
    """Mechanism that produced this detection."""

    @classmethod
    def from_name(
        cls,
        name: str,
        install_path: Path | None,
        source: DetectionSource,
    ) -> DetectedGame:
        """Build a raw candidate that only knows its observed name."""
        return cls(info=GameInfo(name=name), install_path=install_path, source=source)

    def to_dict(self) -> dict:
        return {
            "info": self.info.to_dict(),
            "install_path": str(self.install_path) if self.install_path is not None else None,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DetectedGame:
        p = data.get("install_path")
        return cls(
            info=GameInfo.from_dict(data.get("info", {})),
            install_path=Path(p) if p else None,
            source=DetectionSource(data.get("source", DetectionSource.MANUAL.value)),
        )
