"""fastjump: jump to frequently used directories by typing parts of their paths.

Layout:
    $XDG_DATA_HOME/fastjump/
        fastjump.db       # normalized path -> f32 weight (binary, atomic rename on save)
        fastjump.db.bak   # copy of fastjump.db, refreshed at most daily

A query runs three match strategies over the store (consecutive suffix,
fuzzy final component, anywhere in order), ranks each by weight, and
concatenates them in that priority.  No match resolves to ".".
"""

from fastjump.config import FastjumpConfig, load_config
from fastjump.errors import FastjumpError, StoreCorruptError, TabProtocolError
from fastjump.paths import normalize_path
from fastjump.resolver import find_matches, find_results
from fastjump.store import PathStore

__all__ = [
    "FastjumpConfig",
    "FastjumpError",
    "PathStore",
    "StoreCorruptError",
    "TabProtocolError",
    "find_matches",
    "find_results",
    "load_config",
    "normalize_path",
]
