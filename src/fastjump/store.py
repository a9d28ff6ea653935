"""Weighted path store: normalized path -> 32-bit weight, persisted in one file.

PathStore is the public API:
    store = PathStore.load(cfg.store.data_path, cfg.store.backup_path)
    store.upsert("/srv/www", 10.0)
    store.save()

File layout (little-endian, internal to this package):
    b"FJDB" | version:u8 | count:u64 | count * (len:u64 | path bytes | weight:f32)

Path bytes use the filesystem encoding with surrogateescape, so any name the
OS hands us survives a round trip.

Durability: save() writes a temp file in the data directory and renames it
over the primary.  A crash leaves either the old or the new file, never a
torn one.  The backup is a plain copy of the primary, refreshed when it is
missing or older than BACKUP_THRESHOLD.  Two processes saving at once race
and the last rename wins; there is no lock file.
"""

from __future__ import annotations

import contextlib
import logging
import math
import os
import shutil
import struct
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

from fastjump.errors import StoreCorruptError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

logger = logging.getLogger("fastjump.store")

BACKUP_THRESHOLD = 24 * 60 * 60  # seconds

_MAGIC = b"FJDB"
_VERSION = 1
_HEADER = struct.Struct("<4sBQ")
_LENGTH = struct.Struct("<Q")
_WEIGHT = struct.Struct("<f")


def to_f32(value: float) -> float:
    """Round a Python float to the nearest 32-bit float.

    Finite values beyond the f32 range saturate to infinity.
    """
    try:
        return _WEIGHT.unpack(_WEIGHT.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def encode_entries(entries: Mapping[str, float]) -> bytes:
    parts = [_HEADER.pack(_MAGIC, _VERSION, len(entries))]
    for key, weight in entries.items():
        raw = os.fsencode(key)
        parts.append(_LENGTH.pack(len(raw)))
        parts.append(raw)
        parts.append(_WEIGHT.pack(weight))
    return b"".join(parts)


def decode_entries(blob: bytes, source: str = "<bytes>") -> dict[str, float]:
    """Decode a store blob. Any inconsistency raises StoreCorruptError."""
    if len(blob) < _HEADER.size:
        msg = f"{source}: truncated header ({len(blob)} bytes)"
        raise StoreCorruptError(msg)
    magic, version, count = _HEADER.unpack_from(blob, 0)
    if magic != _MAGIC:
        msg = f"{source}: not a fastjump store (bad magic {magic!r})"
        raise StoreCorruptError(msg)
    if version != _VERSION:
        msg = f"{source}: unsupported store version {version}"
        raise StoreCorruptError(msg)

    entries: dict[str, float] = {}
    offset = _HEADER.size
    try:
        for _ in range(count):
            (length,) = _LENGTH.unpack_from(blob, offset)
            offset += _LENGTH.size
            end = offset + length
            if end > len(blob):
                msg = f"{source}: entry runs past end of file"
                raise StoreCorruptError(msg)
            key = os.fsdecode(blob[offset:end])
            offset = end
            (weight,) = _WEIGHT.unpack_from(blob, offset)
            offset += _WEIGHT.size
            if math.isnan(weight) or weight < 0:
                msg = f"{source}: invalid weight {weight} for {key!r}"
                raise StoreCorruptError(msg)
            entries[key] = weight
    except struct.error as exc:
        msg = f"{source}: truncated entry table"
        raise StoreCorruptError(msg) from exc

    if offset != len(blob):
        msg = f"{source}: {len(blob) - offset} trailing bytes"
        raise StoreCorruptError(msg)
    if len(entries) != count:
        msg = f"{source}: duplicate keys in entry table"
        raise StoreCorruptError(msg)
    return entries


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class PathStore:
    """In-memory key -> weight table bound to a primary and a backup file."""

    def __init__(
        self,
        entries: Mapping[str, float] | None = None,
        *,
        data_path: Path | str | None = None,
        backup_path: Path | str | None = None,
    ) -> None:
        self._data: dict[str, float] = {}
        self.data_path = Path(data_path) if data_path is not None else None
        self.backup_path = Path(backup_path) if backup_path is not None else None
        for key, weight in (entries or {}).items():
            self.upsert(key, weight)

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, data_path: Path | str, backup_path: Path | str) -> PathStore:
        """Load the primary file, promoting the backup if the primary is gone."""
        data_path = Path(data_path)
        backup_path = Path(backup_path)

        if not data_path.exists() and backup_path.exists():
            logger.warning("store %s missing, restoring from backup %s", data_path, backup_path)
            backup_path.replace(data_path)

        store = cls(data_path=data_path, backup_path=backup_path)
        if data_path.exists():
            store._data = decode_entries(data_path.read_bytes(), str(data_path))
            logger.debug("loaded %d entries from %s", len(store._data), data_path)
        return store

    def save(self) -> None:
        """Atomically replace the primary file, then rotate the backup if stale."""
        if self.data_path is None or self.backup_path is None:
            msg = "PathStore has no backing files; construct it with PathStore.load()"
            raise ValueError(msg)

        parent = self.data_path.parent
        parent.mkdir(parents=True, exist_ok=True)

        blob = encode_entries(self._data)
        fd, tmp_name = tempfile.mkstemp(dir=parent, prefix=f".{self.data_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            Path(tmp_name).replace(self.data_path)
        except BaseException:
            with contextlib.suppress(OSError):
                Path(tmp_name).unlink()
            raise
        logger.debug("saved %d entries to %s", len(self._data), self.data_path)

        if self._backup_is_stale(self.backup_path):
            shutil.copyfile(self.data_path, self.backup_path)
            logger.info("refreshed backup %s", self.backup_path)

    @staticmethod
    def _backup_is_stale(backup_path: Path, now: float | None = None) -> bool:
        if not backup_path.exists():
            return True
        now = time.time() if now is None else now
        return now - backup_path.stat().st_mtime > BACKUP_THRESHOLD

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def get(self, key: str) -> float:
        return self._data.get(key, 0.0)

    def upsert(self, key: str, weight: float) -> float:
        """Set the weight for key (rounded to f32). Returns the stored value."""
        if math.isnan(weight) or weight < 0:
            msg = f"weight must be a non-negative number, got {weight}"
            raise ValueError(msg)
        stored = to_f32(weight)
        self._data[key] = stored
        return stored

    def retain(self, predicate: Callable[[str], bool]) -> int:
        """Keep only keys for which predicate is true. Returns how many were removed."""
        doomed = [key for key in self._data if not predicate(key)]
        for key in doomed:
            del self._data[key]
        return len(doomed)

    def items(self) -> Iterator[tuple[str, float]]:
        return iter(self._data.items())

    def as_dict(self) -> dict[str, float]:
        return dict(self._data)

    def total_weight(self) -> float:
        return math.fsum(self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"PathStore({len(self._data)} entries, data_path={self.data_path})"
