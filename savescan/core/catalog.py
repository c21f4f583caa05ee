"""Reference catalog loader.

The catalog maps canonical game names (plus aliases) to install and save
rules.  It is read from a bundled primary store shipped inside the
package, with a per-user JSON cache as fallback.  The cache is what
``refresh`` and the importers write.

Lookup priority:
  1. Configured ``catalog_path`` or the bundled ``resources/catalog.json``
  2. Per-user cache ``<data_dir>/catalog_cache.json``

The importers accept exports of unknown shape (a flat JSON document or a
SQLite database) and convert them with column-name heuristics.  They are
a bridge for foreign formats, not validated parsers: whatever cannot be
recognised is silently skipped.
"""

from __future__ import annotations

import contextlib
import json
import re
import sqlite3
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from savescan.config import Config
from savescan.errors import CatalogError, CatalogNotFoundError
from savescan.models.catalog import Catalog, CatalogMeta
from savescan.models.game import GameInfo, SaveRule
from savescan.models.scan import current_platform

BUNDLED_CATALOG = Path(__file__).resolve().parent.parent / "resources" / "catalog.json"

JSON_IMPORT_VERSION = "json-import"
DB_IMPORT_VERSION = "db-import"

_SQLITE_SUFFIXES = {".db", ".sqlite", ".sqlite3"}

_NAME_FIELDS = ("name", "title")
_ALIAS_FIELDS = ("aliases", "alias", "aka")
_EXTERNAL_ID_FIELDS = ("external_id", "pcgw_id", "pcgw", "slug", "wiki_id")
_PATH_HINTS = ("path", "save", "location", "documents")
_LOCALE_CODES = {
    "zh", "zh_cn", "zh-cn", "zh_tw", "zh-tw", "ja", "ja_jp", "ja-jp",
    "ko", "ko_kr", "ko-kr",
}
_LOCALIZED_HINTS = ("name_zh", "name_ja", "name_ko", "localized", "chinese", "japanese", "korean")
_LOCALIZED_RE = re.compile(r"^(name|title)[_-][a-z]{2}([_-][a-z]{2})?$")

IMPORTED_RULE_CONFIDENCE = 0.6

# (pattern, logical variable), matched case-insensitively
_TEMPLATE_REPLACEMENTS: list[tuple[str, str]] = [
    (r"%USERPROFILE%", "<home>"),
    (r"%LOCALAPPDATA%", "<winLocalAppData>"),
    (r"%APPDATA%", "<winAppData>"),
    (r"%PROGRAMDATA%", "<winProgramData>"),
    (r"%PUBLIC%", "<winPublic>"),
    (r"%USERNAME%", "<osUserName>"),
]


class CatalogLoader:
    """Loads, caches and imports the reference catalog."""

    def __init__(self, config: Config, bundled_path: Path | None = None) -> None:
        self._cfg = config
        self._bundled_path = bundled_path or BUNDLED_CATALOG
        self._catalog: Catalog | None = None

    @property
    def primary_path(self) -> Path:
        return self._cfg.catalog_path or self._bundled_path

    @property
    def cache_path(self) -> Path:
        return self._cfg.catalog_cache_path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, reload: bool = False) -> Catalog:
        """Return the catalog (primary store -> cache).

        Raises :class:`CatalogNotFoundError` when neither exists and
        :class:`CatalogError` when the chosen store cannot be read.

        The bundled store always ships, so a cache written by an import is
        only read back by this loader instance (or when the primary store
        is missing).  A later process loads the primary store again.
        """
        if self._catalog is not None and not reload:
            return self._catalog

        for path in (self.primary_path, self.cache_path):
            if path.is_file():
                self._catalog = read_store(path)
                logger.info(
                    "Loaded catalog {} ({} entries) from {}",
                    self._catalog.version, len(self._catalog), path,
                )
                return self._catalog

        raise CatalogNotFoundError(
            f"Catalog not found at {self.primary_path} or {self.cache_path}"
        )

    def refresh(self) -> CatalogMeta:
        """Re-read the primary store and write it to the cache."""
        if not self.primary_path.is_file():
            raise CatalogNotFoundError(f"Catalog not found at {self.primary_path}")
        catalog = read_store(self.primary_path)
        self._save_cache(catalog)
        self._catalog = catalog
        return CatalogMeta(version=catalog.version or None, count=len(catalog))

    def import_from_file(self, src_path: Path) -> CatalogMeta:
        """Import a JSON export of any shape and write it to the cache."""
        try:
            with open(src_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            raise CatalogNotFoundError(f"Catalog source not found: {src_path}") from None
        except (OSError, ValueError, RecursionError) as e:
            raise CatalogError(f"Failed to read catalog source {src_path}: {e}") from e

        catalog = catalog_from_document(document, src_path.stem)
        self._save_cache(catalog)
        self._catalog = catalog
        logger.info("Imported {} catalog entries from {}", len(catalog), src_path)
        return CatalogMeta(version=catalog.version or None, count=len(catalog))

    def import_from_sqlite(self, src_path: Path) -> CatalogMeta:
        """Import a SQLite database of unknown schema and write it to the cache."""
        catalog = read_sqlite(src_path)
        self._save_cache(catalog)
        self._catalog = catalog
        logger.info("Imported {} catalog entries from {}", len(catalog), src_path)
        return CatalogMeta(version=catalog.version or None, count=len(catalog))

    # ------------------------------------------------------------------
    # JSON cache
    # ------------------------------------------------------------------

    def _save_cache(self, catalog: Catalog) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, "w", encoding="utf-8") as f:
                json.dump(catalog.to_dict(), f, ensure_ascii=False, separators=(",", ":"))
            logger.info("Saved catalog cache ({} entries)", len(catalog))
        except OSError as e:
            raise CatalogError(f"Failed to write catalog cache {self.cache_path}: {e}") from e


# ---------------------------------------------------------------------------
# Store readers
# ---------------------------------------------------------------------------

def read_store(path: Path) -> Catalog:
    """Read a catalog store, choosing the reader by file suffix."""
    if path.suffix.lower() in _SQLITE_SUFFIXES:
        return read_sqlite(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, ValueError, RecursionError) as e:
        raise CatalogError(f"Failed to read catalog {path}: {e}") from e
    return catalog_from_document(document, path.stem)


def catalog_from_document(document: Any, label: str = "document") -> Catalog:
    """Turn a parsed JSON document into a catalog.

    A ``{"version": ..., "games": [...]}`` document is taken as-is; any
    other shape goes through the record heuristics.  A field of the wrong
    type in the former raises :class:`CatalogError`.
    """
    if isinstance(document, dict) and isinstance(document.get("games"), list):
        games = document["games"]
        if all(isinstance(g, dict) and "name" in g for g in games):
            try:
                return Catalog.from_dict(document)
            except (TypeError, ValueError, AttributeError) as e:
                raise CatalogError(f"Invalid game entry in {label}: {e}") from e

    found = _find_records(document, label)
    if found is None:
        raise CatalogError("No record type with a name-like field found")
    table, rows = found
    columns = _collect_columns(rows)
    return Catalog(version=JSON_IMPORT_VERSION, entries=tuple(rows_to_games(table, columns, rows)))


def read_sqlite(path: Path) -> Catalog:
    """Read the first table that exposes a ``name``/``title`` column."""
    if not path.is_file():
        raise CatalogNotFoundError(f"SQLite catalog not found: {path}")
    try:
        with contextlib.closing(sqlite3.connect(str(path))) as conn:
            tables = [
                row[0] for row in
                conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            ]
            for table in tables:
                quoted = '"' + table.replace('"', '""') + '"'
                columns = [row[1] for row in conn.execute(f"PRAGMA table_info({quoted})")]
                if _pick_field(columns, _NAME_FIELDS) is None:
                    continue
                cursor = conn.execute(f"SELECT * FROM {quoted}")
                names = [d[0] for d in cursor.description]
                rows = [dict(zip(names, values)) for values in cursor.fetchall()]
                logger.debug("Using table {} with columns {}", table, names)
                return Catalog(
                    version=DB_IMPORT_VERSION,
                    entries=tuple(rows_to_games(table, names, rows)),
                )
    except sqlite3.Error as e:
        raise CatalogError(f"Failed to read SQLite catalog {path}: {e}") from e

    raise CatalogError("No suitable game table found (requires a 'name' column)")


# ---------------------------------------------------------------------------
# Record heuristics
# ---------------------------------------------------------------------------

def _has_name_field(record: Any) -> bool:
    return isinstance(record, dict) and _pick_field(list(record.keys()), _NAME_FIELDS) is not None


def _find_records(document: Any, label: str) -> tuple[str, list[dict]] | None:
    """Depth-first search for the first list/mapping of name-bearing records."""
    if isinstance(document, list):
        rows = [r for r in document if isinstance(r, dict)]
        if any(_has_name_field(r) for r in rows):
            return label, rows
        for item in document:
            found = _find_records(item, label)
            if found is not None:
                return found
        return None

    if isinstance(document, dict):
        values = list(document.values())
        if values and all(isinstance(v, dict) for v in values) and any(_has_name_field(v) for v in values):
            return label, values
        for key, value in document.items():
            if isinstance(value, (list, dict)):
                found = _find_records(value, str(key))
                if found is not None:
                    return found
    return None


def _collect_columns(rows: Iterable[dict]) -> list[str]:
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


def _pick_field(columns: list[str], candidates: Iterable[str]) -> str | None:
    lowered = {c.lower(): c for c in reversed(columns)}
    for cand in candidates:
        if cand in lowered:
            return lowered[cand]
    return None


def _is_localized(column: str) -> bool:
    lc = column.lower()
    return (
        lc in _LOCALE_CODES
        or any(h in lc for h in _LOCALIZED_HINTS)
        or _LOCALIZED_RE.match(lc) is not None
    )


def split_aliases(value: Any) -> list[str]:
    """Split an alias field on ``,`` or ``|``; lists are taken item by item."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        items = re.split(r"[,|]", str(value))
    return [a.strip() for a in items if a.strip()]


def normalize_path_template(raw: str) -> str:
    """Map common Windows environment references onto logical variables."""
    s = raw.strip().replace("\\", "/")
    for pattern, variable in _TEMPLATE_REPLACEMENTS:
        s = re.sub(re.escape(pattern), lambda _m, v=variable: v, s, flags=re.IGNORECASE)
    if s == "~" or s.startswith("~/"):
        s = "<home>" + s[1:]
    return s


def rows_to_games(table: str, columns: list[str], rows: Iterable[dict]) -> list[GameInfo]:
    """Convert generic records into catalog entries."""
    name_col = _pick_field(columns, _NAME_FIELDS)
    if name_col is None:
        return []
    alias_col = _pick_field(columns, _ALIAS_FIELDS)
    ext_col = _pick_field(columns, _EXTERNAL_ID_FIELDS)
    reserved = {c for c in (name_col, alias_col, ext_col) if c}
    localized_cols = [c for c in columns if c not in reserved and _is_localized(c)]
    path_cols = [
        c for c in columns
        if c not in reserved
        and c not in localized_cols
        and any(h in c.lower() for h in _PATH_HINTS)
    ]
    platform_tag = current_platform()

    games: list[GameInfo] = []
    for row in rows:
        name = row.get(name_col)
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip()

        aliases = split_aliases(row.get(alias_col)) if alias_col else []
        for col in localized_cols:
            value = row.get(col)
            if not isinstance(value, str):
                continue
            value = value.strip()
            if value and value.lower() != name.lower() and not any(
                a.lower() == value.lower() for a in aliases
            ):
                aliases.append(value)

        external_id = row.get(ext_col) if ext_col else None

        rules: list[SaveRule] = []
        for col in path_cols:
            value = row.get(col)
            values = value if isinstance(value, list) else [value]
            for idx, item in enumerate(values):
                if not isinstance(item, str) or not item.strip():
                    continue
                rule_id = f"{name.replace(' ', '_')}-{col}"
                if len(values) > 1:
                    rule_id = f"{rule_id}-{idx}"
                rules.append(SaveRule(
                    id=rule_id,
                    description=f"Imported from {table}.{col}",
                    path_template=normalize_path_template(item),
                    platforms=(platform_tag,),
                    confidence=IMPORTED_RULE_CONFIDENCE,
                ))

        games.append(GameInfo(
            name=name,
            aliases=tuple(aliases),
            external_id=str(external_id) if external_id is not None else None,
            save_rules=tuple(rules),
        ))
    return games


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def find_exact(catalog: Catalog | Iterable[GameInfo], name: str) -> GameInfo | None:
    """Trimmed, case-insensitive lookup: canonical names first, then aliases."""
    entries = catalog.entries if isinstance(catalog, Catalog) else tuple(catalog)
    q = name.strip().lower()
    if not q:
        return None
    for gi in entries:
        if gi.name.strip().lower() == q:
            return gi
    for gi in entries:
        if gi.matches(q):
            return gi
    return None
