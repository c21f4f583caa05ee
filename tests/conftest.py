from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from savescan.config import Config  # noqa: E402
from savescan.core import path_resolver  # noqa: E402
from savescan.core.device import get_current_device_id  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the config singleton at a throwaway data directory."""
    data_dir = tmp_path / "data"
    monkeypatch.setenv("SAVESCAN_DATA_DIR", str(data_dir))
    Config.reset()
    get_current_device_id.cache_clear()
    path_resolver.clear_cache()
    yield Config()
    Config.reset()
    get_current_device_id.cache_clear()
    path_resolver.clear_cache()


@pytest.fixture
def qapp():
    from PySide6.QtCore import QCoreApplication

    return QCoreApplication.instance() or QCoreApplication([])
