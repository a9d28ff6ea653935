"""FastjumpConfig: per-user configuration, built once per invocation.

Default layout (Linux; see ``data_home`` for other platforms):

    $XDG_DATA_HOME/fastjump/
        fastjump.db           # primary store (binary)
        fastjump.db.bak       # backup, refreshed at most once a day

    $XDG_CONFIG_HOME/fastjump/fastjump.toml   # optional

fastjump.toml example:

    [store]
    # data_dir = "~/.local/share/fastjump"

    [match]
    fuzzy_threshold = 0.6

Environment overrides (highest precedence):

    FASTJUMP_FUZZY_THRESHOLD   similarity threshold for the fuzzy strategy
    FASTJUMP_DATA_DIR          directory holding fastjump.db
    FASTJUMP_CONFIG            explicit path to fastjump.toml
"""

from __future__ import annotations

import logging
import os
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("fastjump.config")

PKGNAME = "fastjump"
_CONFIG_FILENAME = "fastjump.toml"
_DB_FILENAME = "fastjump.db"
_BACKUP_SUFFIX = ".bak"

DEFAULT_FUZZY_THRESHOLD = 0.6
DEFAULT_TAB_ENTRIES = 9
DEFAULT_TAB_SEPARATOR = "__"


def data_home(env: Mapping[str, str] | None = None) -> Path:
    """Per-user data root: XDG on Linux, ~/Library on macOS, %APPDATA% on Windows."""
    env = os.environ if env is None else env
    if sys.platform == "darwin":
        return Path.home() / "Library"
    if sys.platform == "win32":
        appdata = env.get("APPDATA")
        if not appdata:
            msg = "Can't find the environment variable %APPDATA%"
            raise RuntimeError(msg)
        return Path(appdata)
    xdg = env.get("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def config_home(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    if sys.platform == "win32":
        return data_home(env)
    xdg = env.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def default_install_dir(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    if sys.platform == "win32":
        local = env.get("LOCALAPPDATA")
        if not local:
            msg = "Can't find the environment variable %LOCALAPPDATA%"
            raise RuntimeError(msg)
        return Path(local) / PKGNAME
    return Path.home() / f".{PKGNAME}"


@dataclass
class StoreConfig:
    data_path: Path
    backup_path: Path

    @classmethod
    def in_dir(cls, directory: Path) -> StoreConfig:
        data_path = directory / _DB_FILENAME
        return cls(data_path=data_path, backup_path=data_path.with_name(_DB_FILENAME + _BACKUP_SUFFIX))


@dataclass
class MatchConfig:
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD
    tab_entries_count: int = DEFAULT_TAB_ENTRIES
    tab_separator: str = DEFAULT_TAB_SEPARATOR


@dataclass
class InstallConfig:
    """Where the installer puts shell integration files."""

    install_dir: Path = field(default_factory=default_install_dir)
    prefix: str = ""
    zshshare_dir: Path | None = None   # defaults to <install_dir>/functions
    custom_install: bool = False

    @property
    def etc_dir(self) -> Path:
        return self.install_dir / "etc" / "profile.d"

    @property
    def share_dir(self) -> Path:
        return self._prefixed / "share" / PKGNAME

    @property
    def zsh_functions_dir(self) -> Path:
        return self.zshshare_dir or self.install_dir / "functions"

    @property
    def _prefixed(self) -> Path:
        # System installs use install_dir "/" with prefix "/usr/local".
        return self.install_dir / self.prefix.lstrip("/") if self.prefix else self.install_dir


@dataclass
class FastjumpConfig:
    """Resolved configuration for one fastjump invocation."""

    store: StoreConfig
    match: MatchConfig = field(default_factory=MatchConfig)
    config_path: Path | None = None   # the fastjump.toml that was read, if any

    @property
    def data_dir(self) -> Path:
        return self.store.data_path.parent


def _parse_threshold(raw: Any, source: str) -> float | None:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("ignoring non-numeric fuzzy threshold %r from %s", raw, source)
        return None
    if not 0.0 <= value <= 1.0:
        logger.warning("ignoring fuzzy threshold %s from %s (must be within 0..1)", value, source)
        return None
    return value


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    env: Mapping[str, str] | None = None,
    config_path: Path | str | None = None,
) -> FastjumpConfig:
    """Build the configuration from fastjump.toml (optional) and the environment."""
    env = os.environ if env is None else env

    if config_path is None and env.get("FASTJUMP_CONFIG"):
        config_path = env["FASTJUMP_CONFIG"]
    path = Path(config_path) if config_path else config_home(env) / PKGNAME / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if path.exists():
        raw = _read_toml(path)
        logger.debug("loaded config from %s", path)

    store_section = raw.get("store", {})
    match_section = raw.get("match", {})

    data_dir_raw = env.get("FASTJUMP_DATA_DIR") or store_section.get("data_dir")
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else data_home(env) / PKGNAME

    threshold = DEFAULT_FUZZY_THRESHOLD
    if "fuzzy_threshold" in match_section:
        parsed = _parse_threshold(match_section["fuzzy_threshold"], str(path))
        if parsed is not None:
            threshold = parsed
    if "FASTJUMP_FUZZY_THRESHOLD" in env:
        parsed = _parse_threshold(env["FASTJUMP_FUZZY_THRESHOLD"], "FASTJUMP_FUZZY_THRESHOLD")
        if parsed is not None:
            threshold = parsed

    return FastjumpConfig(
        store=StoreConfig.in_dir(data_dir),
        match=MatchConfig(
            fuzzy_threshold=threshold,
            tab_entries_count=int(match_section.get("tab_entries_count", DEFAULT_TAB_ENTRIES)),
        ),
        config_path=path if path.exists() else None,
    )


def init_config(path: Path) -> Path:
    """Write a default fastjump.toml at path. Raises if it already exists."""
    if path.exists():
        msg = f"{_CONFIG_FILENAME} already exists at {path}"
        raise FileExistsError(msg)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = """\
[store]
# data_dir = "~/.local/share/fastjump"   # default: per-user data directory

[match]
# fuzzy_threshold = 0.6     # 0..1, similarity needed by the fuzzy strategy
# tab_entries_count = 9     # completions offered per query
"""
    path.write_text(content)
    return path
