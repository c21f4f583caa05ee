"""Data model for save units handed over to the backup engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SaveUnitType(str, Enum):
    """Whether a save unit is a single file or a whole folder."""

    FILE = "File"
    FOLDER = "Folder"


@dataclass
class SaveUnit:
    """One file or folder that should be backed up for a game."""

    unit_type: SaveUnitType
    paths: dict[str, str] = field(default_factory=dict)
    """Device id -> absolute path on that device."""

    delete_before_apply: bool = False

    def get_path_for_device(self, device_id: str) -> str | None:
        return self.paths.get(device_id)

    def to_dict(self) -> dict:
        return {
            "unit_type": self.unit_type.value,
            "paths": dict(self.paths),
            "delete_before_apply": self.delete_before_apply,
        }
