"""Merge per-source detections and collapse duplicates."""

from __future__ import annotations

import os
from typing import Iterable

from loguru import logger

from savescan.models.game import DetectedGame


def install_path_key(path: os.PathLike | str) -> str:
    """Normalized identity of an install directory.

    The path is resolved when it exists; separators become ``/``, the
    trailing separator is stripped and the result is lower-cased.
    """
    raw = str(path)
    try:
        if os.path.exists(raw):
            raw = os.path.realpath(raw)
    except OSError as e:
        logger.debug("Cannot canonicalize {}: {}", raw, e)
    key = raw.replace("\\", "/").rstrip("/")
    return key.lower()


def dedup_key(game: DetectedGame) -> str:
    if game.install_path is not None:
        return install_path_key(game.install_path)
    return f"{game.info.name.lower()}::{game.source.value}"


def aggregate(batches: Iterable[Iterable[DetectedGame]]) -> list[DetectedGame]:
    """Concatenate *batches* in order; the first occurrence of a key wins."""
    seen: set[str] = set()
    merged: list[DetectedGame] = []
    for batch in batches:
        for game in batch:
            key = dedup_key(game)
            if key in seen:
                logger.debug("Dropping duplicate {} ({})", game.info.name, game.source.value)
                continue
            seen.add(key)
            merged.append(game)
    return merged
