"""Shared helpers for natsdissect tests."""

from __future__ import annotations

from typing import Iterable, List, Optional

import pytest

from natsdissect.config import DecoderConfig
from natsdissect.decoder import StreamDecoder
from natsdissect.frames import Frame


def decode(data: bytes, *, chunks: Optional[Iterable[int]] = None, config: Optional[DecoderConfig] = None,
           close: bool = False) -> List[Frame]:
    """Feed ``data`` to a fresh decoder, optionally split at the given offsets."""
    decoder = StreamDecoder(config)
    frames: List[Frame] = []
    start = 0
    for cut in chunks or ():
        frames.extend(decoder.feed(data[start:cut]))
        start = cut
    frames.extend(decoder.feed(data[start:]))
    if close:
        frames.extend(decoder.close())
    return frames


@pytest.fixture
def decoder() -> StreamDecoder:
    return StreamDecoder()
