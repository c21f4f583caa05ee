"""Scan pipeline: catalog -> detection -> enrichment -> save matching."""

from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path

from loguru import logger
from PySide6.QtCore import QObject, QThread, Signal

from savescan.config import Config
from savescan.core.aggregator import aggregate
from savescan.core.catalog import CatalogLoader
from savescan.core.enricher import enrich
from savescan.core.matcher import match_save_paths
from savescan.core.path_resolver import ResolverEnv, default_env
from savescan.core.progress import ProgressReporter
from savescan.core.query import search
from savescan.core.synthesizer import synthesize_save_units
from savescan.errors import CatalogError, ScanError
from savescan.models.catalog import Catalog, QueryItem
from savescan.models.game import DetectedGame, GameInfo
from savescan.models.save_unit import SaveUnit
from savescan.models.scan import ScanOptions, ScanResult
from savescan.scanners.scanner_registry import ScannerRegistry

TOTAL_STEPS = 4


class Scanner:
    """Runs one scan at a time; not re-entrant."""

    def __init__(
        self,
        config: Config,
        registry: ScannerRegistry | None = None,
        catalog_loader: CatalogLoader | None = None,
        reporter: ProgressReporter | None = None,
        env: ResolverEnv | None = None,
    ) -> None:
        self._cfg = config
        self._registry = registry
        self._platform_registries: dict[str, ScannerRegistry] = {}
        self._loader = catalog_loader or CatalogLoader(config)
        self._reporter = reporter or ProgressReporter(min_interval=config.progress_interval)
        self._env = env

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def reporter(self) -> ProgressReporter:
        return self._reporter

    @property
    def catalog_loader(self) -> CatalogLoader:
        return self._loader

    def default_options(self) -> ScanOptions:
        return ScanOptions.for_current_platform(**self._cfg.get_scan_toggles())

    def registry_for(self, platform: str) -> ScannerRegistry:
        """The injected registry, else the built-in scanners for *platform*."""
        if self._registry is not None:
            return self._registry
        if platform not in self._platform_registries:
            self._platform_registries[platform] = ScannerRegistry.for_platform(platform)
        return self._platform_registries[platform]

    def scan(self, options: ScanOptions | None = None) -> ScanResult:
        """Run the whole pipeline and return what it found.

        Hard failures do not abort the scan; they are collected as
        strings in :attr:`ScanResult.errors`.
        """
        if options is None:
            options = self.default_options()
        logger.info("Starting scan with options: {}", options.to_dict())
        t_total = time.monotonic()
        self._reporter.reset()
        result = ScanResult()

        # 1. catalog
        catalog = self._load_catalog(result.errors)
        self._report("index_load", 1, "Loading game catalog")

        # 2. detection
        self._report("detect_games", 2, "Detecting installed games")
        if options.search_processes:
            logger.info("Process scanning is not available, ignoring search_processes")
        detected = self._detect(options, result.errors)
        result.detected = enrich(detected, catalog)

        # 3. save paths
        self._report("match_saves", 3, "Matching save locations")
        env = self._env or default_env()
        if env.target != options.platform:
            env = replace(env, target=options.platform)
        root = self._cfg.backup_path
        for game in result.detected:
            result.matches.extend(
                match_save_paths(game.info, game.install_path, env=env, root=root, errors=result.errors)
            )

        self._report("done", TOTAL_STEPS, "Scan finished")
        logger.info(
            "Scan finished in {:.2f}s: {} games, {} save candidates, {} errors",
            time.monotonic() - t_total, len(result.detected), len(result.matches), len(result.errors),
        )
        return result

    def search(
        self,
        query: str,
        fuzzy: bool = False,
        platform: str | None = None,
        limit: int = 20,
    ) -> list[QueryItem]:
        return search(self._loader.load(), query, fuzzy=fuzzy, platform=platform, limit=limit)

    def generate_save_units(self, game: GameInfo, install_path: Path | None) -> list[SaveUnit]:
        env = self._env or default_env()
        return synthesize_save_units(
            match_save_paths(game, install_path, env=env, root=self._cfg.backup_path)
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _report(self, step: str, current: int, message: str | None = None) -> None:
        self._reporter.report(step, current, TOTAL_STEPS, message)

    def _load_catalog(self, errors: list[str]) -> Catalog:
        t0 = time.monotonic()
        try:
            catalog = self._loader.load()
        except CatalogError as e:
            logger.error("Failed to load catalog: {}", e)
            errors.append(str(e))
            return Catalog(version="", entries=())
        logger.info("Catalog loaded in {:.2f}s, entries: {}", time.monotonic() - t0, len(catalog))
        return catalog

    def _detect(self, options: ScanOptions, errors: list[str]) -> list[DetectedGame]:
        batches: list[list[DetectedGame]] = []
        for scanner in self.registry_for(options.platform).enabled_for(options):
            self._report(f"{scanner.name}_scanning", 2, f"Scanning {scanner.source.value}")
            try:
                found = scanner.scan(options)
            except ScanError as e:
                logger.error("{} scan failed: {}", scanner.source.value, e)
                errors.append(str(e))
                found = []
            except Exception as e:
                logger.exception("{} scanner crashed", scanner.source.value)
                errors.append(f"{scanner.source.value}: {e}")
                found = []
            logger.info("{}: {} candidates", scanner.source.value, len(found))
            batches.append(found)
            self._report(f"{scanner.name}_done", 2, f"{scanner.source.value} scan done")

        detected = aggregate(batches)
        logger.info("Detected {} game candidates", len(detected))
        return detected


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------

class ScanWorker(QThread):
    """Background thread for scanning."""

    finished = Signal(object)  # ScanResult
    error = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._scanner: Scanner | None = None
        self._options: ScanOptions | None = None

    def set_scanner(self, scanner: Scanner, options: ScanOptions | None = None) -> None:
        self._scanner = scanner
        self._options = options

    def run(self) -> None:
        try:
            if self._scanner is None:
                raise RuntimeError("No scanner set")
            result = self._scanner.scan(self._options)
            self.finished.emit(result)
        except Exception as e:
            logger.exception("Scan worker failed")
            self.error.emit(str(e))
