"""Path-template resolver.

Save rules describe locations with a small templating language: OS-style
``%NAME%`` environment references plus bracketed logical variables.

    ``<home>``                 user's home directory
    ``<osUserName>``           login name
    ``<root>``                 backup root (needs ``root`` context)
    ``<game>``                 sanitized game name (needs ``game`` context)
    ``<base>``                 ``<root>/<game>``
    ``<winAppData>``           ``%APPDATA%``  (Roaming)
    ``<winLocalAppData>``      ``%LOCALAPPDATA%``
    ``<winLocalAppDataLow>``   ``<home>/AppData/LocalLow``
    ``<winDocuments>``         user's Documents folder
    ``<winPublic>``            ``%PUBLIC%``
    ``<winProgramData>``       ``%PROGRAMDATA%``
    ``<winDir>``               ``%WINDIR%``
    ``<xdgData>``              ``$XDG_DATA_HOME``   (Linux)
    ``<xdgConfig>``            ``$XDG_CONFIG_HOME`` (Linux)

The ``win*`` variables only exist for Windows targets and the ``xdg*``
ones only for Linux targets; on any other target they are unknown.

On Windows the "Documents" folder can be relocated by the user (e.g. to
``D:\\Documents``).  ``Path.home() / "Documents"`` does **not** reflect
this, so the Windows Shell API is queried instead.

Usage::

    from savescan.core.path_resolver import resolve, default_env

    resolve("<winAppData>/StardewValley/Saves", default_env())
"""

from __future__ import annotations

import getpass
import os
import platform
import re
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import Mapping

from loguru import logger

from savescan.errors import DirNotFound, UnimplementedVariable, UnknownVariable
from savescan.models.game import GameInfo
from savescan.models.scan import current_platform

# ---------------------------------------------------------------------------
# Actual directory lookups (cached)
# ---------------------------------------------------------------------------

_cache: dict[str, Path | None] = {}


def _get_windows_known_folder(folder_id: str) -> Path | None:
    """Use the Windows Shell API to retrieve a known-folder path.

    *folder_id* is one of: ``"Documents"``, ``"RoamingAppData"``,
    ``"LocalAppData"``.
    """
    if platform.system() != "Windows":
        return None
    try:
        import ctypes
        import ctypes.wintypes

        # SHGetFolderPath CSIDL constants
        _CSIDL = {
            "Documents": 0x0005,       # CSIDL_PERSONAL / My Documents
            "RoamingAppData": 0x001A,  # CSIDL_APPDATA
            "LocalAppData": 0x001C,    # CSIDL_LOCAL_APPDATA
        }

        csidl = _CSIDL.get(folder_id)
        if csidl is None:
            return None

        buf = ctypes.create_unicode_buffer(1024)
        # SHGetFolderPathW(hwnd, nFolder, hToken, dwFlags, pszPath)
        result = ctypes.windll.shell32.SHGetFolderPathW(  # type: ignore[attr-defined]
            0, csidl, 0, 0, buf
        )
        if result == 0:  # S_OK
            return Path(buf.value)
    except (ImportError, AttributeError, OSError) as e:
        logger.debug("SHGetFolderPathW failed for {}: {}", folder_id, e)
    return None


def get_home_dir() -> Path:
    """Return the user home directory."""
    return Path.home()


def get_documents_dir() -> Path:
    """Return the real user Documents directory.

    On Windows this queries the Shell API so it respects any relocation.
    On other platforms it falls back to ``~/Documents``.
    """
    if "documents" in _cache and _cache["documents"] is not None:
        return _cache["documents"]

    result = _get_windows_known_folder("Documents")
    if result is None or not result.exists():
        result = get_home_dir() / "Documents"

    _cache["documents"] = result
    logger.debug("Documents directory resolved to: {}", result)
    return result


def get_appdata_dir() -> Path | None:
    """Return ``%APPDATA%`` (Roaming), or ``None`` off Windows."""
    if "appdata" in _cache:
        return _cache["appdata"]

    result: Path | None = None
    env = os.environ.get("APPDATA")
    if env:
        result = Path(env)
    else:
        result = _get_windows_known_folder("RoamingAppData")

    _cache["appdata"] = result
    return result


def get_localappdata_dir() -> Path | None:
    """Return ``%LOCALAPPDATA%``, or ``None`` off Windows."""
    if "localappdata" in _cache:
        return _cache["localappdata"]

    result: Path | None = None
    env = os.environ.get("LOCALAPPDATA")
    if env:
        result = Path(env)
    else:
        result = _get_windows_known_folder("LocalAppData")

    _cache["localappdata"] = result
    return result


def clear_cache() -> None:
    _cache.clear()


# ---------------------------------------------------------------------------
# Resolver environment
# ---------------------------------------------------------------------------

@dataclass
class ResolverEnv:
    """Lookup context for :func:`resolve`.

    ``variables`` holds explicit values for logical variables (without the
    angle brackets); they win over every live lookup.  ``environ`` is the
    environment used for ``%NAME%`` expansion and for special folders, and
    ``target`` selects which platform's special folders exist.
    """

    variables: dict[str, str] = field(default_factory=dict)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    target: str = field(default_factory=current_platform)


def default_env() -> ResolverEnv:
    """Build the environment used for real scans from live lookups."""
    variables: dict[str, str] = {}
    try:
        variables["home"] = str(get_home_dir())
        variables["documents"] = str(get_documents_dir())
    except RuntimeError as e:
        logger.warning("Home directory could not be determined: {}", e)
    return ResolverEnv(variables=variables)


_WINDOWS_VARS = frozenset({
    "winAppData", "winLocalAppData", "winLocalAppDataLow", "winDocuments",
    "winPublic", "winProgramData", "winDir",
})
_LINUX_VARS = frozenset({"xdgData", "xdgConfig"})

_TOKEN_RE = re.compile(r"<([^<>]*)>")
_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_EMPTY_NAME_PLACEHOLDER = "unnamed"


def sanitize_filename(name: str) -> str:
    """Make *name* usable as a single path component."""
    out = _INVALID_NAME_CHARS.sub("_", name).rstrip(" .")
    return out or _EMPTY_NAME_PLACEHOLDER


def _home(env: ResolverEnv) -> str:
    if env.variables.get("home"):
        return env.variables["home"]
    key = "USERPROFILE" if env.target == "windows" else "HOME"
    value = env.environ.get(key) or env.environ.get("HOME")
    if value:
        return value
    try:
        return str(get_home_dir())
    except RuntimeError:
        raise DirNotFound("Home directory") from None


def _user_name(env: ResolverEnv) -> str:
    value = env.environ.get("USERNAME") or env.environ.get("USER")
    if value:
        return value
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        raise DirNotFound("User name") from None


def _special_folder(name: str, env: ResolverEnv) -> str:
    """Look up one platform special folder; raise when it is unavailable."""
    value: str | Path | None = None
    if name == "winAppData":
        value = env.environ.get("APPDATA") or get_appdata_dir()
        what = "APPDATA"
    elif name == "winLocalAppData":
        value = env.environ.get("LOCALAPPDATA") or get_localappdata_dir()
        what = "LOCALAPPDATA"
    elif name == "winLocalAppDataLow":
        value = f"{_home(env)}/AppData/LocalLow"
        what = "LocalAppDataLow"
    elif name == "winDocuments":
        # default_env() fills "documents" from get_documents_dir()
        value = (
            env.variables.get("documents")
            or _get_windows_known_folder("Documents")
            or f"{_home(env)}/Documents"
        )
        what = "Documents"
    elif name == "winPublic":
        value = env.environ.get("PUBLIC")
        what = "PUBLIC"
    elif name == "winProgramData":
        value = env.environ.get("PROGRAMDATA")
        what = "PROGRAMDATA"
    elif name == "winDir":
        value = env.environ.get("WINDIR") or env.environ.get("SystemRoot")
        what = "WINDIR"
    elif name == "xdgData":
        value = env.environ.get("XDG_DATA_HOME") or f"{_home(env)}/.local/share"
        what = "XDG_DATA_HOME"
    else:  # xdgConfig
        value = env.environ.get("XDG_CONFIG_HOME") or f"{_home(env)}/.config"
        what = "XDG_CONFIG_HOME"

    if not value:
        raise DirNotFound(what)
    return str(value)


def expand_percent_env_vars(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand every ``%NAME%`` in *text*.

    ``%%`` yields a literal ``%`` and an unpaired trailing ``%`` is kept
    as-is.  A variable missing from the environment raises
    :class:`DirNotFound`.
    """
    if environ is None:
        environ = os.environ
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "%":
            out.append(ch)
            i += 1
            continue
        end = text.find("%", i + 1)
        if end < 0:
            out.append(text[i:])
            break
        var_name = text[i + 1:end]
        if not var_name:
            out.append("%")
        else:
            value = environ.get(var_name)
            if value is None:
                raise DirNotFound(f"ENV:{var_name}")
            out.append(value)
        i = end + 1
    return "".join(out)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve(
    template: str,
    env: ResolverEnv | None = None,
    game: GameInfo | str | None = None,
    root: str | Path | None = None,
) -> Path:
    """Expand *template* into a concrete path.

    Raises
    ------
    DirNotFound
        An environment variable or special folder is unavailable.
    UnimplementedVariable
        ``<root>``, ``<game>`` or ``<base>`` used without its context.
    UnknownVariable
        A ``<...>`` token is left over; names the leftmost one.
    """
    if env is None:
        env = default_env()

    result = template
    if "%" in result:
        result = expand_percent_env_vars(result, env.environ)

    if "<" not in result and ">" not in result:
        return Path(result)

    game_name = game.name if isinstance(game, GameInfo) else game

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        token = match.group(0)
        if name in env.variables:
            return env.variables[name]
        if name == "home":
            return _home(env)
        if name == "osUserName":
            return _user_name(env)
        if name == "root":
            if root is None:
                raise UnimplementedVariable(token)
            return str(root)
        if name == "game":
            if game_name is None:
                raise UnimplementedVariable(token)
            return sanitize_filename(game_name)
        if name == "base":
            if game_name is None or root is None:
                raise UnimplementedVariable(token)
            return f"{root}/{sanitize_filename(game_name)}"
        if name in _WINDOWS_VARS and env.target == "windows":
            return _special_folder(name, env)
        if name in _LINUX_VARS and env.target == "linux":
            return _special_folder(name, env)
        return token

    result = _TOKEN_RE.sub(substitute, result)

    leftover = _TOKEN_RE.search(result)
    if leftover is not None:
        raise UnknownVariable(leftover.group(0))

    return Path(result)


def is_absolute_path(path: str | Path) -> bool:
    """True for POSIX- or Windows-absolute paths, regardless of host OS."""
    return Path(path).is_absolute() or PureWindowsPath(str(path)).is_absolute()
