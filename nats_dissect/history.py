"""Persistent shell history."""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional

LOGGER = logging.getLogger("nats_dissect.history")


class HistoryStore:
    """File-backed list of shell commands, newest last, capped at ``limit`` entries."""

    def __init__(self, path: Optional[str], *, limit: int = 1000) -> None:
        self.limit = max(1, int(limit or 1))
        self.path = Path(path).expanduser() if path else None
        self.entries: Deque[str] = deque(maxlen=self.limit)
        if self.path:
            self._load()

    def _load(self) -> None:
        if not self.path:
            return
        try:
            data = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as exc:
            LOGGER.warning("cannot read history %s: %s", self.path, exc)
            return
        self.entries.extend(line for line in data.splitlines() if line.strip())

    def append(self, line: str) -> None:
        # feed payloads are whitespace sensitive, so only the line ending is dropped
        text = line.rstrip("\r\n")
        if not text.strip():
            return
        if self.entries and self.entries[-1] == text:
            return
        self.entries.append(text)
        self._persist()

    def _persist(self) -> None:
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("\n".join(self.entries) + "\n", encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("cannot write history %s: %s", self.path, exc)

    def snapshot(self) -> List[str]:
        return list(self.entries)
