"""Match strategies over the store's keys.

Every strategy has the same shape:

    strategy(needles, store, ignore_case) -> [(path, weight), ...]

Candidates come back in store order; ranking is the resolver's job.
Needles are already normalized by the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

from fastjump.config import DEFAULT_FUZZY_THRESHOLD
from fastjump.paths import final_component, split_components

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastjump.store import PathStore

logger = logging.getLogger("fastjump.matching")

Candidate = tuple[str, float]


def detect_smartcase(needles: Sequence[str]) -> bool:
    """True (case sensitive) if any needle contains an uppercase letter."""
    return any(ch.isupper() for needle in needles for ch in needle)


def _fold(text: str, ignore_case: bool) -> str:
    return text.lower() if ignore_case else text


def match_anywhere(needles: Sequence[str], store: PathStore, ignore_case: bool) -> list[Candidate]:
    """Every needle occurs somewhere in the path.

    Occurrences may overlap or share a component: ["foo", "bar"] matches
    /foobarbaz.
    """
    folded = [_fold(n, ignore_case) for n in needles]
    candidates: list[Candidate] = []
    for path, weight in store.items():
        haystack = _fold(path, ignore_case)
        if all(needle in haystack for needle in folded):
            logger.debug("anywhere: %s (%.2f)", path, weight)
            candidates.append((path, weight))
    return candidates


def match_consecutive(needles: Sequence[str], store: PathStore, ignore_case: bool) -> list[Candidate]:
    """Needles match the trailing components, last needle in the last component.

    ["foo", "bar"] matches /baz/foo/bar and /ffoof/bbarb but not
    /foo/bar/baz or /foo/baz/bar.
    """
    folded = [_fold(n, ignore_case) for n in reversed(needles)]
    candidates: list[Candidate] = []
    for path, weight in store.items():
        parts = split_components(path)
        if len(parts) < len(folded):
            continue
        tail = reversed(parts)
        if all(needle in _fold(part, ignore_case) for needle, part in zip(folded, tail)):
            logger.debug("consecutive: %s (%.2f)", path, weight)
            candidates.append((path, weight))
    return candidates


def similarity(needle: str, text: str) -> float:
    """Normalized Levenshtein similarity: 1.0 identical, 0.0 nothing shared."""
    return Levenshtein.normalized_similarity(needle, text)


def match_fuzzy(
    needles: Sequence[str],
    store: PathStore,
    ignore_case: bool,
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> list[Candidate]:
    """Approximate match of the last needle against the final path component.

    A weak heuristic for typos ("hme" finds /home); earlier needles are
    ignored.
    """
    if not needles:
        return []
    needle = _fold(needles[-1], ignore_case)
    candidates: list[Candidate] = []
    for path, weight in store.items():
        score = similarity(needle, _fold(final_component(path), ignore_case))
        if score >= threshold:
            logger.debug("fuzzy: %s score=%.3f (%.2f)", path, score, weight)
            candidates.append((path, weight))
    return candidates
