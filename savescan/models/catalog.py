"""Data model for the reference catalog."""

from __future__ import annotations

from dataclasses import dataclass, field

from savescan.models.game import GameInfo


@dataclass(frozen=True)
class Catalog:
    """Reference database of known games.  Read-only during a scan."""

    version: str
    entries: tuple[GameInfo, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict:
        return {"version": self.version, "games": [g.to_dict() for g in self.entries]}

    @classmethod
    def from_dict(cls, data: dict) -> Catalog:
        """Build from the ``{version, games}`` form; nameless games are skipped."""
        return cls(
            version=str(data.get("version", "")),
            entries=tuple(
                GameInfo.from_dict(g) for g in data.get("games", [])
                if str(g.get("name", "")).strip()
            ),
        )


@dataclass(frozen=True)
class CatalogMeta:
    """Version and size of a catalog, reported after refresh/import."""

    version: str | None
    count: int


@dataclass(frozen=True)
class QueryItem:
    """One ranked hit of a catalog search."""

    info: GameInfo
    score: float
    matched_by: str
    """``name``, ``alias`` or ``fuzzy``."""

    def to_dict(self) -> dict:
        return {"info": self.info.to_dict(), "score": self.score, "matched_by": self.matched_by}
