"""Ranked catalog search for manual lookups."""

from __future__ import annotations

from savescan.models.catalog import Catalog, QueryItem
from savescan.models.game import GameInfo

EXACT_NAME_SCORE = 1.0
EXACT_ALIAS_SCORE = 0.95
FUZZY_NAME_BASE, FUZZY_NAME_WEIGHT = 0.75, 0.25
FUZZY_ALIAS_BASE, FUZZY_ALIAS_WEIGHT = 0.70, 0.30

DEFAULT_LIMIT = 20


def _score(entry: GameInfo, q: str, fuzzy: bool) -> tuple[float, str] | None:
    name = entry.name.strip().lower()
    aliases = [a.strip().lower() for a in entry.aliases]
    if name == q:
        return EXACT_NAME_SCORE, "name"
    if q in aliases:
        return EXACT_ALIAS_SCORE, "alias"
    if not fuzzy:
        return None
    if q in name:
        return FUZZY_NAME_BASE + FUZZY_NAME_WEIGHT * min(1.0, len(q) / len(name)), "fuzzy"
    alias_scores = [
        FUZZY_ALIAS_BASE + FUZZY_ALIAS_WEIGHT * min(1.0, len(q) / len(a))
        for a in aliases if a and q in a
    ]
    if alias_scores:
        return max(alias_scores), "fuzzy"
    return None


def search(
    catalog: Catalog,
    query: str,
    fuzzy: bool = False,
    platform: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[QueryItem]:
    """Rank catalog entries against *query*.

    Exact name hits score 1.0 and exact alias hits 0.95.  With *fuzzy*,
    substring hits on the name or an alias score by how much of it the
    query covers.  *platform* keeps only entries with a save rule for
    that platform.
    """
    q = query.strip().lower()
    if not q or limit <= 0:
        return []

    items: list[QueryItem] = []
    for entry in catalog.entries:
        if platform and not any(r.supports(platform) for r in entry.save_rules):
            continue
        scored = _score(entry, q, fuzzy)
        if scored is not None:
            items.append(QueryItem(info=entry, score=scored[0], matched_by=scored[1]))

    items.sort(key=lambda item: item.score, reverse=True)
    return items[:limit]
