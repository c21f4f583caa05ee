from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from savescan.config import Config
from savescan.core.catalog import (
    BUNDLED_CATALOG,
    CatalogLoader,
    catalog_from_document,
    find_exact,
    normalize_path_template,
    read_store,
    split_aliases,
)
from savescan.errors import CatalogError, CatalogNotFoundError
from savescan.models.catalog import Catalog
from savescan.models.game import GameInfo
from savescan.models.scan import current_platform


def _write_json(path: Path, data) -> Path:  # noqa: ANN001
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_bundled_catalog_loads(isolated_config: Config) -> None:
    loader = CatalogLoader(isolated_config)
    catalog = loader.load()
    assert BUNDLED_CATALOG.is_file()
    assert len(catalog) > 0
    stardew = find_exact(catalog, "stardew valley")
    assert stardew is not None
    assert "SV" in stardew.aliases


def test_load_is_memoized(isolated_config: Config) -> None:
    loader = CatalogLoader(isolated_config)
    assert loader.load() is loader.load()


def test_load_falls_back_to_cache(isolated_config: Config, tmp_path: Path) -> None:
    _write_json(isolated_config.catalog_cache_path, {
        "version": "cached",
        "games": [{"name": "Cached Game"}],
    })
    loader = CatalogLoader(isolated_config, bundled_path=tmp_path / "missing.json")
    catalog = loader.load()
    assert catalog.version == "cached"
    assert catalog.entries[0].name == "Cached Game"


def test_load_without_any_store_fails(isolated_config: Config, tmp_path: Path) -> None:
    loader = CatalogLoader(isolated_config, bundled_path=tmp_path / "missing.json")
    with pytest.raises(CatalogNotFoundError):
        loader.load()


def test_refresh_writes_cache(isolated_config: Config) -> None:
    loader = CatalogLoader(isolated_config)
    meta = loader.refresh()
    assert meta.count == len(loader.load())
    cached = json.loads(isolated_config.catalog_cache_path.read_text(encoding="utf-8"))
    assert len(cached["games"]) == meta.count


def test_import_flat_json_uses_heuristics(isolated_config: Config, tmp_path: Path) -> None:
    src = _write_json(tmp_path / "export.json", {
        "meta": {"exported": "today"},
        "records": [
            {
                "title": "Hollow Knight",
                "aka": "HK|Hollow",
                "zh_cn": "空洞骑士",
                "slug": "hollow-knight",
                "save_location": "%USERPROFILE%\\AppData\\LocalLow\\Team Cherry\\Hollow Knight",
            },
            {"title": "", "save_location": "ignored"},
        ],
    })
    loader = CatalogLoader(isolated_config)
    meta = loader.import_from_file(src)

    assert meta.version == "json-import"
    assert meta.count == 1
    game = loader.load().entries[0]
    assert game.name == "Hollow Knight"
    assert list(game.aliases) == ["HK", "Hollow", "空洞骑士"]
    assert game.external_id == "hollow-knight"
    rule = game.save_rules[0]
    assert rule.id == "Hollow_Knight-save_location"
    assert rule.description == "Imported from records.save_location"
    assert rule.path_template == "<home>/AppData/LocalLow/Team Cherry/Hollow Knight"
    assert rule.confidence == pytest.approx(0.6)
    assert rule.platforms == (current_platform(),)
    assert isolated_config.catalog_cache_path.is_file()


def test_import_without_name_field_fails(isolated_config: Config, tmp_path: Path) -> None:
    src = _write_json(tmp_path / "bad.json", {"rows": [{"foo": 1}]})
    with pytest.raises(CatalogError):
        CatalogLoader(isolated_config).import_from_file(src)


def test_import_sqlite(isolated_config: Config, tmp_path: Path) -> None:
    db = tmp_path / "games.db"
    conn = sqlite3.connect(str(db))
    conn.execute("CREATE TABLE meta (key TEXT, value TEXT)")
    conn.execute("CREATE TABLE games (name TEXT, aliases TEXT, save_path TEXT)")
    conn.execute(
        "INSERT INTO games VALUES (?, ?, ?)",
        ("Elden Ring", "ER, ELDEN RING", "%APPDATA%\\EldenRing"),
    )
    conn.commit()
    conn.close()

    loader = CatalogLoader(isolated_config)
    meta = loader.import_from_sqlite(db)
    assert meta.version == "db-import"
    assert meta.count == 1
    game = loader.load().entries[0]
    assert game.aliases == ("ER", "ELDEN RING")
    assert game.save_rules[0].path_template == "<winAppData>/EldenRing"
    assert game.save_rules[0].description == "Imported from games.save_path"


def test_sqlite_without_name_table_fails(isolated_config: Config, tmp_path: Path) -> None:
    db = tmp_path / "empty.sqlite"
    conn = sqlite3.connect(str(db))
    conn.execute("CREATE TABLE things (id INTEGER)")
    conn.commit()
    conn.close()
    with pytest.raises(CatalogError):
        CatalogLoader(isolated_config).import_from_sqlite(db)


def test_catalog_document_shape_is_taken_as_is() -> None:
    catalog = catalog_from_document({
        "version": "7",
        "games": [{"name": "Celeste", "save_rules": [
            {"id": "r", "path_template": "<xdgData>/Celeste", "platforms": ["linux"], "confidence": 0.9},
        ]}],
    })
    assert catalog.version == "7"
    assert catalog.entries[0].save_rules[0].platforms == ("linux",)


def test_find_exact_prefers_names_over_aliases() -> None:
    first = GameInfo(name="Portal", aliases=("Portal 2",))
    second = GameInfo(name="Portal 2")
    catalog = Catalog(version="t", entries=(first, second))
    assert find_exact(catalog, "  PORTAL 2 ") is second
    assert find_exact(catalog, "portal") is first
    assert find_exact(catalog, "Half-Life") is None


def test_split_aliases() -> None:
    assert split_aliases("a, b|c") == ["a", "b", "c"]
    assert split_aliases(["x", " ", "y"]) == ["x", "y"]
    assert split_aliases(None) == []


def test_normalize_path_template() -> None:
    assert normalize_path_template("%LocalAppData%\\Game") == "<winLocalAppData>/Game"
    assert normalize_path_template("~/Games/x") == "<home>/Games/x"
    assert normalize_path_template("C:\\Users\\%USERNAME%\\x") == "C:/Users/<osUserName>/x"


def test_catalog_document_skips_nameless_games() -> None:
    catalog = catalog_from_document({"version": "7", "games": [{"name": " "}, {"name": "Celeste"}]})
    assert [g.name for g in catalog.entries] == ["Celeste"]


@pytest.mark.parametrize("game", [
    {"name": "Celeste", "save_rules": [{"id": "r", "path_template": "x", "confidence": "high"}]},
    {"name": "Celeste", "aliases": 5},
])
def test_catalog_document_with_bad_field_raises_catalog_error(game: dict) -> None:
    with pytest.raises(CatalogError):
        catalog_from_document({"version": "7", "games": [game]}, "broken")


def test_deeply_nested_store_raises_catalog_error(tmp_path: Path) -> None:
    path = tmp_path / "nested.json"
    path.write_text("[" * 200_000, encoding="utf-8")
    with pytest.raises(CatalogError):
        read_store(path)


def test_find_exact_falls_back_to_aliases() -> None:
    catalog = Catalog(version="t", entries=(GameInfo(name="Stardew Valley", aliases=("SV",)),))
    assert find_exact(catalog, " sv ") is catalog.entries[0]
