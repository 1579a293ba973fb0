"""
nats-dissect CLI package.

Front-end over :mod:`natsdissect`: decodes capture files given on the command
line, or starts an interactive shell for feeding bytes by hand.  Use
``python -m nats_dissect`` or the ``nats-dissect`` console script.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"
