"""Store mutations and reports behind the CLI flags.

Each mutating handler saves the store unless ``dryrun`` is set, and returns
what the CLI prints.  Weights combine as a root sum of squares, so frequent
visits grow a path's weight sub-linearly:

    add(p, 10) on a new path   -> 10.00
    add(p, 10) again           -> sqrt(10**2 + 10**2) = 14.14
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastjump.paths import absolute_path, home_dir, normalize_path

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastjump.store import PathStore

logger = logging.getLogger("fastjump.handlers")

DEFAULT_INCREASE = 10.0
DEFAULT_DECREASE = 15.0

Entry = tuple[str, float]


def add_path(
    store: PathStore,
    path: str | os.PathLike[str],
    weight: float | None = None,
    *,
    cwd: str,
    dryrun: bool = False,
) -> Entry:
    """Add a path or increase an existing one.

    The path is made absolute but not resolved: a symlink gets its own entry.
    The home directory is never recorded.
    """
    entry = absolute_path(path, cwd)
    if entry == home_dir():
        logger.info("not recording the home directory")
        return entry, 0.0

    increment = DEFAULT_INCREASE if weight is None else weight
    if increment < 0:
        msg = f"increase weight must be non-negative, got {increment}"
        raise ValueError(msg)
    value = store.upsert(entry, math.sqrt(store.get(entry) ** 2 + increment**2))
    logger.info("%.2f\t\t%s", value, entry)

    if not dryrun:
        store.save()
    return entry, value


def decrease_path(
    store: PathStore,
    path: str | os.PathLike[str],
    weight: float | None = None,
    *,
    dryrun: bool = False,
) -> Entry:
    """Lower a path's weight, bottoming out at zero (the entry is kept)."""
    entry = normalize_path(path)
    decrement = DEFAULT_DECREASE if weight is None else weight
    if decrement < 0:
        msg = f"decrease weight must be non-negative, got {decrement}"
        raise ValueError(msg)
    value = store.upsert(entry, max(store.get(entry) - decrement, 0.0))
    logger.info("%.2f\t\t%s", value, entry)

    if not dryrun:
        store.save()
    return entry, value


def purge(
    store: PathStore,
    *,
    dryrun: bool = False,
    exists: Callable[[str], bool] = os.path.exists,
) -> int:
    """Drop entries whose directory is gone. Returns the number removed."""
    removed = store.retain(exists)
    if not dryrun:
        store.save()
    logger.info("Purged %d entries.", removed)
    return removed


@dataclass
class Stats:
    entries: list[Entry]        # weight desc, then path asc
    total_weight: float
    total_entries: int
    cwd_weight: float


def collect_stats(store: PathStore, *, cwd: str) -> Stats:
    entries = sorted(store.items(), key=lambda e: (-e[1], e[0]))
    return Stats(
        entries=entries,
        total_weight=store.total_weight(),
        total_entries=len(store),
        cwd_weight=store.get(normalize_path(cwd)),
    )


def format_stats(stats: Stats, data_path: os.PathLike[str] | str) -> list[str]:
    """Human-readable listing for ``fastjump --stat``."""
    lines = ["Weight\t\tPath", "-" * 80]
    lines.extend(f"{weight:.2f}\t\t{path}" for path, weight in stats.entries)
    lines.append("_" * 80)
    lines.append(f"{stats.total_weight:.2f}\t\ttotal weight")
    lines.append(f"{stats.total_entries}\t\ttotal entries")
    lines.append(f"{stats.cwd_weight:.2f}\t\tcurrent directory weight")
    lines.append("")
    lines.append(f"database file:\t{os.fspath(data_path)}")
    return lines
