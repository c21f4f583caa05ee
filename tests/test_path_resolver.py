from __future__ import annotations

from pathlib import Path

import pytest

from savescan.core.path_resolver import (
    ResolverEnv,
    expand_percent_env_vars,
    is_absolute_path,
    resolve,
    sanitize_filename,
)
from savescan.errors import DirNotFound, UnimplementedVariable, UnknownVariable
from savescan.models.game import GameInfo


def _env(target: str = "windows", **variables: str) -> ResolverEnv:
    return ResolverEnv(variables=dict(variables), environ={}, target=target)


def test_resolve_with_explicit_variable() -> None:
    env = _env(winAppData="C:/Users/x/AppData/Roaming")
    resolved = resolve("<winAppData>/StardewValley/Saves", env)
    assert resolved.as_posix() == "C:/Users/x/AppData/Roaming/StardewValley/Saves"


def test_resolve_without_tokens_returns_template() -> None:
    assert resolve("/opt/game/saves", _env()) == Path("/opt/game/saves")


def test_resolve_game_without_context_fails() -> None:
    with pytest.raises(UnimplementedVariable) as exc:
        resolve("<root>/<game>", _env(), root="/backups")
    assert exc.value.token == "<game>"


def test_resolve_base_requires_root_and_game() -> None:
    with pytest.raises(UnimplementedVariable):
        resolve("<base>/saves", _env(), game="Celeste")
    resolved = resolve("<base>/saves", _env(), game="Celeste", root="/backups")
    assert resolved.as_posix() == "/backups/Celeste/saves"


def test_resolve_game_is_sanitized() -> None:
    game = GameInfo(name="Black Myth: Wukong")
    resolved = resolve("/backups/<game>", _env(), game=game)
    assert resolved.name == "Black Myth_ Wukong"


def test_unknown_variable_names_leftmost_token() -> None:
    with pytest.raises(UnknownVariable) as exc:
        resolve("<nope>/<alsoNope>", _env())
    assert exc.value.token == "<nope>"


def test_windows_variables_unknown_on_linux_target() -> None:
    with pytest.raises(UnknownVariable):
        resolve("<winAppData>/Game", _env(target="linux"))


def test_xdg_variables_use_environment() -> None:
    env = ResolverEnv(variables={}, environ={"XDG_DATA_HOME": "/data"}, target="linux")
    assert resolve("<xdgData>/Terraria", env).as_posix() == "/data/Terraria"


def test_xdg_config_defaults_to_home() -> None:
    env = ResolverEnv(variables={}, environ={"HOME": "/home/u"}, target="linux")
    assert resolve("<xdgConfig>/x", env).as_posix() == "/home/u/.config/x"


def test_missing_special_folder_raises_dir_not_found() -> None:
    with pytest.raises(DirNotFound):
        resolve("<winProgramData>/Game", _env())


def test_expand_percent_env_vars() -> None:
    environ = {"APPDATA": "C:/Roaming"}
    assert expand_percent_env_vars("%APPDATA%/Game", environ) == "C:/Roaming/Game"
    assert expand_percent_env_vars("100%%", environ) == "100%"
    assert expand_percent_env_vars("50% off", environ) == "50% off"
    with pytest.raises(DirNotFound):
        expand_percent_env_vars("%MISSING%/x", environ)


def test_sanitize_filename() -> None:
    assert sanitize_filename('a<b>c:"d"') == "a_b_c__d_"
    assert sanitize_filename("...") == "unnamed"


def test_is_absolute_path_accepts_windows_and_posix() -> None:
    assert is_absolute_path("C:/Games/X")
    assert is_absolute_path("/opt/games")
    assert not is_absolute_path("relative/dir")


WINDOWS_ENVIRON = {
    "USERPROFILE": "C:/Users/u",
    "USERNAME": "u",
    "APPDATA": "C:/Users/u/AppData/Roaming",
    "LOCALAPPDATA": "C:/Users/u/AppData/Local",
    "PUBLIC": "C:/Users/Public",
    "PROGRAMDATA": "C:/ProgramData",
    "WINDIR": "C:/Windows",
}
LINUX_ENVIRON = {"HOME": "/home/u", "USER": "u"}


@pytest.mark.parametrize(
    ("target", "environ", "names"),
    [
        ("windows", WINDOWS_ENVIRON, [
            "winAppData", "winLocalAppData", "winLocalAppDataLow", "winDocuments",
            "winPublic", "winProgramData", "winDir",
        ]),
        ("linux", LINUX_ENVIRON, ["xdgData", "xdgConfig"]),
    ],
)
def test_known_variables_leave_no_brackets(target: str, environ: dict, names: list[str]) -> None:
    env = ResolverEnv(variables={}, environ=environ, target=target)
    game = GameInfo(name="<Odd> Game?")
    for name in ["home", "osUserName", "root", "game", "base", *names]:
        resolved = str(resolve(f"<{name}>/saves", env, game=game, root="/backups"))
        assert "<" not in resolved and ">" not in resolved, name


def test_win_documents_prefers_documents_variable() -> None:
    env = _env(documents="D:/Documents")
    assert resolve("<winDocuments>/My Games", env).as_posix() == "D:/Documents/My Games"


def test_win_appdata_falls_back_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APPDATA", "/roaming")
    assert resolve("<winAppData>/Game", _env()).as_posix() == "/roaming/Game"
