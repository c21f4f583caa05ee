"""Match raw detections against the reference catalog.

Each candidate is tried, in order, by exact name/alias, by normalized
token containment over the whole catalog, and finally by an exact lookup
of its own first alias.  A hit replaces the candidate's info with the
catalog entry; install path and source are kept.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from loguru import logger

from savescan.core.catalog import find_exact
from savescan.models.catalog import Catalog
from savescan.models.game import DetectedGame, GameInfo

NAME_BASE_SCORE = 0.80
NAME_RATIO_WEIGHT = 0.20
ALIAS_BASE_SCORE = 0.75
ALIAS_RATIO_WEIGHT = 0.25


def normalize_token(text: str) -> str:
    """Lower-case *text* and drop everything that is not alphanumeric."""
    return "".join(ch for ch in text.lower() if ch.isalnum())


def fuzzy_score(a: str, b: str, alias: bool = False) -> float | None:
    """Containment score of two names, or ``None`` when they do not match.

    Equal normalized forms score 1.0.  Otherwise the shorter normalized
    form must be a substring of the longer one and the score grows with
    ``len(shorter) / len(longer)``.
    """
    na, nb = normalize_token(a), normalize_token(b)
    if not na or not nb:
        return None
    if na == nb:
        return 1.0
    shorter, longer = (na, nb) if len(na) <= len(nb) else (nb, na)
    if shorter not in longer:
        return None
    ratio = len(shorter) / len(longer)
    if alias:
        return ALIAS_BASE_SCORE + ALIAS_RATIO_WEIGHT * ratio
    return NAME_BASE_SCORE + NAME_RATIO_WEIGHT * ratio


def find_fuzzy(catalog: Catalog, name: str) -> GameInfo | None:
    """Best containment match for *name* over the whole catalog."""
    best: GameInfo | None = None
    best_score = 0.0
    for entry in catalog.entries:
        score = fuzzy_score(name, entry.name)
        if score == 1.0:
            return entry
        if score is not None and score > best_score:
            best, best_score = entry, score
        for alias in entry.aliases:
            score = fuzzy_score(name, alias, alias=True)
            if score == 1.0:
                return entry
            if score is not None and score > best_score:
                best, best_score = entry, score
    if best is not None:
        logger.debug("Fuzzy match {!r} -> {!r} ({:.3f})", name, best.name, best_score)
    return best


def match_entry(info: GameInfo, catalog: Catalog) -> GameInfo | None:
    hit = find_exact(catalog, info.name)
    if hit is None:
        hit = find_fuzzy(catalog, info.name)
    if hit is None and info.aliases:
        hit = find_exact(catalog, info.aliases[0])
    return hit


def enrich_one(game: DetectedGame, catalog: Catalog) -> DetectedGame:
    hit = match_entry(game.info, catalog)
    if hit is None:
        return game
    return replace(game, info=hit)


def enrich(detected: Iterable[DetectedGame], catalog: Catalog) -> list[DetectedGame]:
    """Return a new list where every matched candidate carries catalog info."""
    out: list[DetectedGame] = []
    matched = 0
    for game in detected:
        enriched = enrich_one(game, catalog)
        if enriched is not game:
            matched += 1
        out.append(enriched)
    logger.info("Enriched {}/{} detected games from catalog", matched, len(out))
    return out
