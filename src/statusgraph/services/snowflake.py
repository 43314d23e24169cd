"""Time-ordered identifier generator for statuses."""

from __future__ import annotations

import itertools
import threading
from datetime import datetime

from statusgraph.db.time import utcnow

SEQUENCE_BITS = 16
_SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1
# Low bits below this value belong to "now" identifiers, the rest to backdated ones.
_BACKDATED_FLAG = 1 << (SEQUENCE_BITS - 1)

_LOCK = threading.Lock()
_BACKDATED_SEQUENCE = itertools.count()
_last_id = 0


def id_at(timestamp: datetime, sequence: int = 0) -> int:
    """Return the identifier for ``timestamp`` with the given low-bit sequence."""
    millis = int(timestamp.timestamp() * 1000)
    return (millis << SEQUENCE_BITS) | (sequence & _SEQUENCE_MASK)


def next_id(timestamp: datetime | None = None) -> int:
    """Return a new identifier.

    Args:
        timestamp: Creation time the identifier should sort by. Defaults to now.

    Returns:
        A 64-bit integer whose high bits are milliseconds since the epoch.

    Notes:
        Identifiers for "now" are strictly increasing within this process and
        use the lower half of the sequence bits. Backdated identifiers (remote
        statuses keep their original creation time) sort by that time and
        rotate through the upper half, so the two kinds never collide.
    """
    global _last_id
    with _LOCK:
        if timestamp is not None:
            sequence = next(_BACKDATED_SEQUENCE) % _BACKDATED_FLAG
            return id_at(timestamp, _BACKDATED_FLAG | sequence)

        candidate = id_at(utcnow())
        if candidate <= _last_id:
            candidate = _last_id + 1
            if candidate & _BACKDATED_FLAG:
                candidate = ((candidate >> SEQUENCE_BITS) + 1) << SEQUENCE_BITS
        _last_id = candidate
        return candidate


def timestamp_of(status_id: int) -> float:
    """Return the POSIX timestamp encoded in ``status_id``."""
    return (status_id >> SEQUENCE_BITS) / 1000
