"""Resolve save rules into scored candidate paths.

Besides the catalog's own save rules two fallbacks always run:

* **install-relative**: a small table of games known to keep saves
  inside their install directory;
* **common roots**: per-user data roots are searched for a directory
  named after the game (or one of its aliases).
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from savescan.core.path_resolver import ResolverEnv, default_env, is_absolute_path, resolve
from savescan.errors import ResolveError
from savescan.models.game import GameInfo
from savescan.models.scan import SaveMatchResult

SAVE_EXTENSIONS = frozenset({"sav", "save", "slot", "dat"})

MISSING_PATH_FACTOR = 0.5

INSTALL_RELATIVE_RULE_ID = "install-relative-savegames"
INSTALL_RELATIVE_CONFIDENCE = 0.99

COMMON_ROOTS_RULE_ID = "common-roots-name-match"
COMMON_ROOTS_CONFIDENCE = 0.90

# normalized game name -> save directories relative to the install dir
INSTALL_RELATIVE_SAVES: dict[str, tuple[str, ...]] = {
    "blackmythwukong": ("b1/Saved/SaveGames",),
}

CONVENTIONAL_SAVE_SUBDIRS = ("SaveGames", "SaveData", "Saves", "Profiles")

COMMON_ROOT_TEMPLATES: dict[str, tuple[str, ...]] = {
    "windows": ("<winDocuments>", "<home>/Saved Games", "<winLocalAppData>", "<winAppData>"),
    "linux": ("<home>/Documents", "<home>/Saved Games", "<xdgData>", "<xdgConfig>"),
    "macos": ("<home>/Documents", "<home>/Saved Games", "<home>/Library/Application Support"),
}

# Shorter tokens ("sv", "ds") would match unrelated folders.
MIN_TOKEN_LENGTH = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _has_save_extension(path: Path) -> bool:
    return path.suffix[1:].lower() in SAVE_EXTENSIONS


def is_plausible_save_dir(path: Path) -> bool:
    """True when *path* looks like save data.

    A file qualifies by its extension; a directory qualifies when it holds
    a save-extension file or a sub-directory whose name contains "save".
    """
    if path.is_file():
        return _has_save_extension(path)
    if not path.is_dir():
        return False
    try:
        for child in path.iterdir():
            if child.is_file() and _has_save_extension(child):
                return True
            if child.is_dir() and "save" in child.name.lower():
                return True
    except OSError as e:
        logger.debug("Cannot list {}: {}", path, e)
    return False


def normalize_game_token(text: str) -> str:
    return text.lower().replace(" ", "").replace(":", "").replace("_", "")


def _game_tokens(game: GameInfo) -> list[str]:
    tokens = []
    for raw in (game.name, *game.aliases):
        token = normalize_game_token(raw)
        if len(token) >= MIN_TOKEN_LENGTH and token not in tokens:
            tokens.append(token)
    return tokens


def _token_hit(dir_name: str, tokens: list[str]) -> bool:
    norm = normalize_game_token(dir_name)
    if not norm:
        return False
    return any(t in norm or (len(norm) >= MIN_TOKEN_LENGTH and norm in t) for t in tokens)


def _child_dirs(path: Path) -> list[Path]:
    try:
        return sorted(p for p in path.iterdir() if p.is_dir())
    except OSError as e:
        logger.debug("Cannot list {}: {}", path, e)
        return []


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------

def install_relative_candidates(game: GameInfo, install_path: Path | None) -> list[Path]:
    """Save directories inside the install dir for games listed in the table."""
    if install_path is None:
        return []
    names = [normalize_game_token(n) for n in (game.name, *game.aliases)]
    found: list[Path] = []
    for pattern, subpaths in INSTALL_RELATIVE_SAVES.items():
        if not any(pattern in n for n in names):
            continue
        for sub in subpaths:
            base = install_path / sub
            if not base.is_dir():
                continue
            picked = base
            for child in _child_dirs(base):
                try:
                    if any(f.is_file() and _has_save_extension(f) for f in child.iterdir()):
                        picked = child
                        break
                except OSError as e:
                    logger.debug("Cannot list {}: {}", child, e)
            found.append(picked)
    return found


def common_save_roots(env: ResolverEnv) -> list[Path]:
    roots: list[Path] = []
    for template in COMMON_ROOT_TEMPLATES.get(env.target, ()):
        try:
            root = resolve(template, env)
        except ResolveError as e:
            logger.debug("Skipping common root {}: {}", template, e)
            continue
        if root.is_dir() and root not in roots:
            roots.append(root)
    return roots


def common_root_candidates(game: GameInfo, env: ResolverEnv) -> list[Path]:
    """Directories under per-user data roots named after *game*."""
    tokens = _game_tokens(game)
    if not tokens:
        return []

    candidates: list[Path] = []
    for root in common_save_roots(env):
        for child in _child_dirs(root):
            matched: list[Path] = []
            if _token_hit(child.name, tokens):
                matched.append(child)
            else:
                # vendor folder, e.g. "Saved Games/Quantic Dream/Detroit Become Human"
                for sub in _child_dirs(child):
                    if _token_hit(sub.name, tokens):
                        matched.append(sub)
                        break

            for mdir in matched:
                if is_plausible_save_dir(mdir):
                    candidates.append(mdir)
                    continue
                for name in CONVENTIONAL_SAVE_SUBDIRS:
                    subdir = mdir / name
                    if is_plausible_save_dir(subdir):
                        candidates.append(subdir)
                        break
    return candidates


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def match_save_paths(
    game: GameInfo,
    install_path: Path | None,
    env: ResolverEnv | None = None,
    root: str | Path | None = None,
    errors: list[str] | None = None,
) -> list[SaveMatchResult]:
    """Resolve every applicable save rule of *game* and run the fallbacks.

    Rules declaring platforms other than the resolver target are skipped.
    A rule that fails to resolve is logged, reported through *errors* and
    dropped; the other rules are unaffected.
    """
    if env is None:
        env = default_env()

    results: list[SaveMatchResult] = []
    for rule in game.save_rules:
        if rule.platforms and not rule.supports(env.target):
            continue
        try:
            path = resolve(rule.path_template, env, game=game, root=root)
        except ResolveError as e:
            logger.warning("Cannot resolve rule {} of {}: {}", rule.id, game.name, e)
            if errors is not None:
                errors.append(f"{game.name}: {rule.id}: {e}")
            continue
        if not is_absolute_path(path):
            logger.debug("Dropping non-absolute path {} from rule {}", path, rule.id)
            continue
        exists = path.exists()
        confidence = rule.confidence if exists else rule.confidence * MISSING_PATH_FACTOR
        results.append(SaveMatchResult(
            rule_id=rule.id, resolved_path=path, exists=exists, confidence=confidence,
        ))

    for path in install_relative_candidates(game, install_path):
        results.append(SaveMatchResult(
            rule_id=INSTALL_RELATIVE_RULE_ID,
            resolved_path=path,
            exists=True,
            confidence=INSTALL_RELATIVE_CONFIDENCE,
        ))

    for path in common_root_candidates(game, env):
        results.append(SaveMatchResult(
            rule_id=COMMON_ROOTS_RULE_ID,
            resolved_path=path,
            exists=True,
            confidence=COMMON_ROOTS_CONFIDENCE,
        ))

    logger.debug("{}: {} save path candidates", game.name, len(results))
    return results
