"""Shared state for the nats-dissect command line."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from natsdissect.config import DecoderConfig
from natsdissect.decoder import StreamDecoder
from natsdissect.frames import Frame
from natsdissect.tracker import ConnectionTable

LOGGER = logging.getLogger("nats_dissect.context")

DEFAULT_CONNECTION = "default"


@dataclass
class InspectorContext:
    """Holds the connection table and output settings used by commands."""

    config: DecoderConfig = field(default_factory=DecoderConfig)
    json_output: bool = False
    summary_only: bool = False
    chunk_size: int = 4096
    current: str = DEFAULT_CONNECTION
    _table: Optional[ConnectionTable] = field(default=None, init=False, repr=False)

    @property
    def table(self) -> ConnectionTable:
        if self._table is None:
            self._table = ConnectionTable(self.config)
        return self._table

    @property
    def decoder(self) -> StreamDecoder:
        return self.table.decoder_for(self.current)

    def switch(self, name: str) -> None:
        name = name.strip()
        if not name:
            raise ValueError("connection name must not be empty")
        self.current = name

    def feed(self, data: bytes) -> List[Frame]:
        return [record.frame for record in self.table.feed(self.current, data)]

    def close_current(self) -> List[Frame]:
        return [record.frame for record in self.table.close(self.current)]

    def connections(self) -> List[str]:
        return sorted(str(key) for key in self.table.keys())

    def reset(self) -> None:
        """Forget every connection, discarding buffered bytes without flushing them."""
        if self._table is not None:
            LOGGER.debug("discarding %d tracked connections", len(self._table))
        self._table = None
        self.current = DEFAULT_CONNECTION
