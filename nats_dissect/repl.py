"""Interactive shell for nats-dissect."""

from __future__ import annotations

import logging
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .commands import CommandRegistry
from .commands.help import HelpCommand
from .completion import InspectorCompleter
from .context import InspectorContext
from .history import HistoryStore
from .output import emit_error
from .parser import split_verb

LOGGER = logging.getLogger("nats_dissect.repl")

PROMPT = "nats> "


def dispatch_line(ctx: InspectorContext, registry: CommandRegistry, line: str) -> int:
    """Run one shell line and return the command's exit status."""
    if not line.strip():
        return 0
    cmd_name, rest = split_verb(line)
    command = registry.get(cmd_name)
    if command is None:
        emit_error(ctx, message=f"unknown command: {cmd_name}")
        return 1
    argv = command.parse(rest)
    if argv and argv[-1].startswith("#parse-error:"):
        emit_error(ctx, message=f"parse error: {argv[-1].split(':', 1)[1]}")
        return 1
    try:
        return command.run(ctx, argv)
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - unexpected failure inside a command
        LOGGER.exception("command failed")
        emit_error(ctx, message=f"command '{cmd_name}' failed: {exc}")
        return 1


class InspectorREPL:
    """prompt_toolkit loop dispatching to the command registry."""

    def __init__(
        self,
        ctx: InspectorContext,
        registry: CommandRegistry,
        *,
        history_store: Optional[HistoryStore] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_store = history_store
        help_command = self.registry.get("help")
        if isinstance(help_command, HelpCommand):
            help_command.bind(registry)

    def run(self) -> int:
        history = InMemoryHistory()
        if self.history_store:
            for entry in self.history_store.snapshot():
                history.append_string(entry)
        completer = InspectorCompleter(self.ctx, self.registry)
        session: PromptSession = PromptSession(
            PROMPT, history=history, completer=completer, complete_while_typing=True
        )
        while True:
            try:
                with patch_stdout():
                    line = session.prompt()
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            self._record_history(line)
            try:
                self.dispatch(line)
            except SystemExit as exc:
                return int(exc.code or 0)

    def dispatch(self, line: str) -> int:
        return dispatch_line(self.ctx, self.registry, line)

    def _record_history(self, entry: str) -> None:
        if self.history_store and entry.strip():
            self.history_store.append(entry)
