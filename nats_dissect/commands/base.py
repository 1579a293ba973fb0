"""Command base classes for nats-dissect."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..context import InspectorContext
from ..parser import split_command


@dataclass
class Command:
    """Abstract command description.

    Commands with ``raw`` set receive the rest of the line as a single
    argument instead of shlex-split tokens.
    """

    name: str
    description: str
    aliases: Sequence[str] = field(default_factory=tuple)
    usage: str = ""
    raw: bool = False

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        raise NotImplementedError("Command must implement run()")

    def format_help(self) -> str:
        label = f"{self.name} {self.usage}".strip()
        return f"{label:<20} {self.description}"

    def parse(self, line: str) -> List[str]:
        if self.raw:
            return [line] if line else []
        return split_command(line)
