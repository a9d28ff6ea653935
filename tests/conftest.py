from __future__ import annotations

import os
from collections.abc import Iterable

import pytest

from fastjump.store import PathStore


def join(*parts: str) -> str:
    """Build a key the way the store sees it: ("", "foo", "bar") -> "/foo/bar"."""
    return os.sep.join(parts)


def make_store(paths: Iterable[tuple[str, ...]], weight: float = 10.0) -> PathStore:
    return PathStore({join(*p): weight for p in paths})


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point HOME, XDG dirs and the data dir at tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for name in ("FASTJUMP_DATA_DIR", "FASTJUMP_FUZZY_THRESHOLD", "FASTJUMP_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path
