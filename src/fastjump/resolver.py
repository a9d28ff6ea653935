"""Rank matches and drive the tab-completion protocol.

Ranking: each strategy's candidates are sorted by weight (desc), ties broken
by path (desc), then concatenated consecutive -> fuzzy -> anywhere.  Strategy
priority therefore beats raw weight.  Duplicates keep their first (best)
position, the working directory is never offered, and an empty result is
replaced by the "." sentinel so the shell always gets something to cd to.

Tab completion is stateless across invocations; the state rides along in the
first needle:

    needle                 -> menu of  needle__1__/path, needle__2__/path, ...
    needle__2              -> path of result 2, counted from 0
    needle__2__/some/path  -> /some/path (already resolved by the shell)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastjump.config import DEFAULT_FUZZY_THRESHOLD, DEFAULT_TAB_ENTRIES, DEFAULT_TAB_SEPARATOR
from fastjump.errors import TabProtocolError
from fastjump.matching import Candidate, detect_smartcase, match_anywhere, match_consecutive, match_fuzzy
from fastjump.paths import normalize_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from fastjump.store import PathStore

logger = logging.getLogger("fastjump.resolver")

SENTINEL: Candidate = (".", 0.0)


def _rank(candidates: list[Candidate]) -> list[Candidate]:
    return sorted(candidates, key=lambda c: (c[1], c[0]), reverse=True)


def find_matches(
    store: PathStore,
    needles: Sequence[str],
    check_existence: bool,
    *,
    cwd: str,
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
    exists: Callable[[str], bool] = os.path.exists,
) -> list[Candidate]:
    """Ordered candidates for needles; never empty."""
    if not needles or not needles[0]:
        return [SENTINEL]

    ignore_case = not detect_smartcase(needles)
    tiers = [
        ("consecutive", match_consecutive(needles, store, ignore_case)),
        ("fuzzy", match_fuzzy(needles, store, ignore_case, threshold)),
        ("anywhere", match_anywhere(needles, store, ignore_case)),
    ]

    here = normalize_path(cwd)
    seen: set[str] = set()
    results: list[Candidate] = []
    for name, candidates in tiers:
        ranked = _rank(candidates)
        logger.debug("match %s: %s", name, ranked)
        for path, weight in ranked:
            if path in seen or path == here:
                continue
            seen.add(path)
            if check_existence and not exists(path):
                continue
            results.append((path, weight))

    logger.debug("=> match results: %s", results)
    return results or [SENTINEL]


# ---------------------------------------------------------------------------
# Tab completion
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TabEntry:
    """The first needle split into its protocol parts."""

    needle: str
    index: str | None = None
    path: str | None = None

    @classmethod
    def parse(cls, first_needle: str, separator: str = DEFAULT_TAB_SEPARATOR) -> TabEntry:
        # maxsplit keeps separators that occur inside the path itself
        parts = first_needle.split(separator, 2)
        return cls(
            needle=parts[0],
            index=parts[1] if len(parts) > 1 else None,
            path=parts[2] if len(parts) > 2 else None,
        )


def parse_index(raw: str) -> int:
    """Result index from a tab entry (0-based); unparsable input selects the first result."""
    try:
        return int(raw)
    except ValueError:
        return 0


def format_tab_menu(
    needle: str,
    entries: Iterable[Candidate],
    separator: str = DEFAULT_TAB_SEPARATOR,
) -> list[str]:
    """Render completion lines, numbered from 1. Entries with an empty path are skipped."""
    return [
        f"{needle}{separator}{i}{separator}{path}"
        for i, (path, _) in enumerate(entries, start=1)
        if path
    ]


def find_results(
    store: PathStore,
    needles: Sequence[str],
    complete: bool,
    *,
    cwd: str,
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
    tab_entries_count: int = DEFAULT_TAB_ENTRIES,
    separator: str = DEFAULT_TAB_SEPARATOR,
    exists: Callable[[str], bool] = os.path.exists,
) -> list[str]:
    """Lines to print for a jump (``complete=False``) or a completion request."""
    normalized = [normalize_path(n) for n in needles]
    entry = TabEntry.parse(normalized[0] if normalized else "", separator)

    if entry.path is not None:
        return [entry.path]

    if entry.index is not None:
        # Lookups count from 0 while the menu counts from 1; completions
        # normally come back in the full needle__n__path form.
        index = parse_index(entry.index)
        results = find_matches(store, [entry.needle], False, cwd=cwd, threshold=threshold, exists=exists)
        if not 0 <= index < len(results):
            msg = f"tab index {index} out of range for {entry.needle!r} ({len(results)} results)"
            raise TabProtocolError(msg)
        return [results[index][0]]

    if complete:
        results = find_matches(store, normalized, False, cwd=cwd, threshold=threshold, exists=exists)
        return format_tab_menu(entry.needle, results[:tab_entries_count], separator)

    results = find_matches(store, normalized, True, cwd=cwd, threshold=threshold, exists=exists)
    return [results[0][0]]
