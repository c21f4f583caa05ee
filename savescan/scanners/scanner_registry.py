"""Registry of installation-source scanners."""

from __future__ import annotations

from loguru import logger

from savescan.models.game import DetectionSource
from savescan.models.scan import ScanOptions, current_platform
from savescan.scanners.base import SourceScanner


def default_scanners() -> list[SourceScanner]:
    """All built-in scanners, in merge order."""
    from savescan.scanners import common_dirs, epic, origin, steam, windows_registry

    return [
        steam.SCANNER,
        epic.SCANNER,
        origin.SCANNER,
        windows_registry.SCANNER,
        common_dirs.SCANNER,
    ]


class ScannerRegistry:
    """Ordered collection of scanners available on one platform."""

    def __init__(self) -> None:
        self._scanners: dict[DetectionSource, SourceScanner] = {}

    @classmethod
    def for_platform(cls, platform: str | None = None) -> ScannerRegistry:
        """Build a registry holding every built-in scanner that runs on *platform*."""
        platform = platform or current_platform()
        registry = cls()
        for scanner in default_scanners():
            if scanner.supports(platform):
                registry.register(scanner)
            else:
                logger.debug("Scanner {} not available on {}", scanner.name, platform)
        return registry

    def register(self, scanner: SourceScanner) -> None:
        """Register (or replace) the scanner for ``scanner.source``."""
        self._scanners[scanner.source] = scanner

    def get_scanner(self, source: DetectionSource) -> SourceScanner | None:
        return self._scanners.get(source)

    def get_all_scanners(self) -> list[SourceScanner]:
        return list(self._scanners.values())

    def enabled_for(self, options: ScanOptions) -> list[SourceScanner]:
        """Scanners switched on by *options*, in registration order."""
        return [s for s in self._scanners.values() if options.is_enabled(s.option)]

    def __len__(self) -> int:
        return len(self._scanners)
