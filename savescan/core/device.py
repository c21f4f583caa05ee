"""Identity of the machine the scan runs on."""

from __future__ import annotations

import functools

from loguru import logger

from savescan.config import Config


@functools.lru_cache(maxsize=None)
def get_current_device_id() -> str:
    """Return the stable id of this machine.

    Read once from the configuration (which generates and persists it on
    first start) and memoized for the rest of the process.
    """
    device_id = Config().machine_id
    logger.debug("Current device id: {}", device_id)
    return device_id
