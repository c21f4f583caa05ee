"""Application configuration management."""

import json
import os
import platform
import uuid
from pathlib import Path
from typing import Any, Optional

from loguru import logger


def _default_data_dir() -> Path:
    """Return the default data directory for the application."""
    override = os.environ.get("SAVESCAN_DATA_DIR")
    if override:
        return Path(override)
    if platform.system() == "Windows":
        return Path.home() / "Documents" / "GameSaveScanner"
    elif platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / "GameSaveScanner"
    else:
        return Path.home() / ".config" / "GameSaveScanner"


_DEFAULT_CONFIG: dict[str, Any] = {
    "backup_path": "",
    "machine_id": "",
    "catalog_path": "",
    "progress_interval_ms": 250,
    "scan": {
        "search_steam": True,
        "search_epic": True,
        "search_origin": True,
        "search_registry": True,
        "search_common_dirs": True,
        "search_processes": False,
    },
}


class Config:
    """Singleton application configuration."""

    _instance: Optional["Config"] = None
    _data: dict[str, Any]
    _path: Path
    _data_dir: Path

    def __new__(cls, config_path: Optional[Path] = None) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        if self._initialized:  # type: ignore[has-type]
            return
        self._initialized = True
        self._data_dir = _default_data_dir()
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._path = config_path or (self._data_dir / "config.json")
        self._data = json.loads(json.dumps(_DEFAULT_CONFIG))
        self._load()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def backup_path(self) -> Path:
        p = self._data.get("backup_path", "")
        if p:
            return Path(p)
        return self._data_dir / "backups"

    @property
    def machine_id(self) -> str:
        return self._data["machine_id"]

    @property
    def catalog_path(self) -> Path | None:
        """User-configured primary catalog store, if any."""
        p = self._data.get("catalog_path", "")
        return Path(p) if p else None

    @property
    def catalog_cache_path(self) -> Path:
        return self._data_dir / "catalog_cache.json"

    @property
    def progress_interval(self) -> float:
        """Minimum seconds between two progress events of the same step."""
        return int(self._data.get("progress_interval_ms", 250)) / 1000.0

    def get_scan_toggles(self) -> dict[str, bool]:
        """Per-source toggles used when the caller does not pass options."""
        toggles = dict(_DEFAULT_CONFIG["scan"])
        toggles.update(self._data.get("scan", {}))
        return {k: bool(v) for k, v in toggles.items()}

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self._path.exists():
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    saved = json.load(f)
                self._data.update(saved)
                logger.info("Configuration loaded from {}", self._path)
            except Exception as e:
                logger.warning("Failed to load config, using defaults: {}", e)
        # Ensure machine_id is set
        if not self._data.get("machine_id"):
            self._data["machine_id"] = uuid.uuid4().hex[:12]
            self._save()

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=4, ensure_ascii=False)
        except Exception as e:
            logger.error("Failed to save config: {}", e)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None
