"""Error types raised by the scan pipeline.

Soft failures (a launcher that is not installed, a malformed manifest)
never reach these classes; scanners log them and return what they have.
Everything here is a *hard* failure that the caller gets to see, usually
as ``str(exc)`` in :attr:`ScanResult.errors`.
"""

from __future__ import annotations


class SaveScanError(Exception):
    """Base class for all scanner errors."""


# ---------------------------------------------------------------------------
# Template resolution
# ---------------------------------------------------------------------------

class ResolveError(SaveScanError):
    """A path template could not be turned into a concrete path."""


class UnknownVariable(ResolveError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Unknown variable: {token}")
        self.token = token


class DirNotFound(ResolveError):
    def __init__(self, what: str) -> None:
        super().__init__(f"Cannot get directory or environment variable: {what}")
        self.what = what


class UnimplementedVariable(ResolveError):
    """The variable is known but the context it needs was not supplied."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Unimplemented variable (missing context): {token}")
        self.token = token


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class CatalogError(SaveScanError):
    """The catalog store exists but could not be read or converted."""


class CatalogNotFoundError(CatalogError):
    pass


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class ScanError(SaveScanError):
    """Directory enumeration failed while collecting candidates."""
