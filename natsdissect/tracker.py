"""Per-connection decoder bookkeeping.

Captured traffic interleaves many connections.  :class:`ConnectionTable`
gives each connection its own :class:`StreamDecoder`, keyed by whatever
identifies the connection (normally a :class:`ConnectionKey` 5-tuple), and
tags every frame with that key.  The table's map is lock-protected and each
connection has its own lock, held for the whole of a feed or close, so
capture workers and a housekeeping thread calling :meth:`expire_idle` can
share one table.  Chunks of one connection must still arrive in order.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, List, Optional

from .config import DecoderConfig
from .decoder import StreamDecoder
from .frames import Frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionKey:
    src_host: str
    src_port: int
    dst_host: str
    dst_port: int
    transport: str = "tcp"

    def __str__(self) -> str:
        return f"{self.transport}:{self.src_host}:{self.src_port}->{self.dst_host}:{self.dst_port}"


@dataclass(frozen=True)
class FrameRecord:
    key: Hashable
    frame: Frame


@dataclass
class _Entry:
    decoder: StreamDecoder
    last_seen: float
    # Held for every feed and close of this connection.
    lock: threading.Lock = field(default_factory=threading.Lock)
    closed: bool = False


class ConnectionTable:
    """Maps connection keys to their decoders."""

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or DecoderConfig()
        self._clock = clock
        self._entries: Dict[Hashable, _Entry] = {}
        # Lock order: an entry's lock before the table lock.
        self._lock = threading.Lock()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[Hashable]:
        with self._lock:
            return list(self._entries)

    def _entry_for(self, key: Hashable) -> _Entry:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry(StreamDecoder(self.config), self._clock())
                self._entries[key] = entry
                logger.info("tracking connection %s", key)
            return entry

    def decoder_for(self, key: Hashable) -> StreamDecoder:
        """Return the decoder for ``key``, creating it on first use."""
        return self._entry_for(key).decoder

    def feed(self, key: Hashable, data: bytes) -> List[FrameRecord]:
        while True:
            entry = self._entry_for(key)
            with entry.lock:
                if entry.closed:
                    # closed between lookup and lock; the next lookup starts a new stream
                    continue
                entry.last_seen = self._clock()
                return [FrameRecord(key, frame) for frame in entry.decoder.feed(data)]

    def close(self, key: Hashable) -> List[FrameRecord]:
        """Flush and forget the decoder for ``key``.  Unknown keys yield nothing."""
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return []
        with entry.lock:
            if entry.closed:
                return []
            return self._close_locked(key, entry)

    def close_all(self) -> List[FrameRecord]:
        records: List[FrameRecord] = []
        for key in self.keys():
            records.extend(self.close(key))
        return records

    def expire_idle(self, now: Optional[float] = None) -> List[FrameRecord]:
        """Close connections idle for longer than ``config.idle_timeout``.

        Idleness is checked again under each connection's lock, so a
        connection fed while the sweep runs is kept.
        """
        timeout = self.config.idle_timeout
        if timeout is None:
            return []
        now = self._clock() if now is None else now
        with self._lock:
            candidates = [(key, entry) for key, entry in self._entries.items() if now - entry.last_seen > timeout]
        records: List[FrameRecord] = []
        for key, entry in candidates:
            with entry.lock:
                if entry.closed or now - entry.last_seen <= timeout:
                    continue
                with self._lock:
                    if self._entries.get(key) is not entry:
                        continue
                    del self._entries[key]
                logger.info("connection %s idle for more than %.1fs", key, timeout)
                records.extend(self._close_locked(key, entry))
        return records

    def _close_locked(self, key: Hashable, entry: _Entry) -> List[FrameRecord]:
        entry.closed = True
        logger.info("closing connection %s (%d frames)", key, entry.decoder.frames_emitted)
        return [FrameRecord(key, frame) for frame in entry.decoder.close()]


__all__ = ["ConnectionKey", "ConnectionTable", "FrameRecord"]
