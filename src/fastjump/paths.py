"""Path normalization for store keys and needles.

Keys must be stable regardless of how the user spelled a path: ``c:\\src``
and ``C:\\src`` are the same directory on Windows, ``/srv/www/`` and
``/srv/www`` are the same everywhere.  Symlinks are never resolved, so a
symlinked directory keeps its own entry.
"""

from __future__ import annotations

import os
import sys
from pathlib import PurePosixPath, PureWindowsPath

_IS_WINDOWS = sys.platform == "win32"


def normalize_path(path: str | os.PathLike[str], *, windows: bool | None = None) -> str:
    """Return the canonical key for ``path``.

    Trailing separators are dropped by the platform path type.  On Windows a
    lowercase drive letter is uppercased; every other component is kept as is.
    The empty string maps to itself (an empty needle is meaningful).
    """
    raw = os.fspath(path)
    if not raw:
        return ""
    if windows is None:
        windows = _IS_WINDOWS
    if not windows:
        return str(PurePosixPath(raw))

    pure = PureWindowsPath(raw)
    text = str(pure)
    drive = pure.drive
    if len(drive) == 2 and drive[1] == ":" and "a" <= drive[0] <= "z":
        return drive.upper() + text[len(drive):]
    return text


def absolute_path(path: str | os.PathLike[str], cwd: str | os.PathLike[str]) -> str:
    """Anchor ``path`` at ``cwd`` and clean ``.``/``..`` lexically."""
    raw = os.fspath(path)
    if not os.path.isabs(raw):
        raw = os.path.join(os.fspath(cwd), raw)
    return normalize_path(os.path.normpath(raw))


def split_components(key: str) -> list[str]:
    """Split a normalized key on the host separator (no re-parsing)."""
    return key.split(os.sep)


def final_component(key: str) -> str:
    return key.rsplit(os.sep, 1)[-1]


def home_dir() -> str:
    return normalize_path(os.path.expanduser("~"))
