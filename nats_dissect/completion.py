"""prompt_toolkit completer for nats-dissect."""

from __future__ import annotations

from typing import Iterable, List

from prompt_toolkit.completion import CompleteEvent, Completer, Completion, PathCompleter
from prompt_toolkit.document import Document

from .commands import CommandRegistry
from .context import InspectorContext

PATH_COMMANDS = {"load"}
CONNECTION_COMMANDS = {"conn"}


class InspectorCompleter(Completer):
    """Completes command names, capture paths and connection names."""

    def __init__(self, ctx: InspectorContext, registry: CommandRegistry) -> None:
        self.ctx = ctx
        self.registry = registry
        self._path = PathCompleter(expanduser=True)

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text_before_cursor.lstrip()
        if " " not in text:
            yield from self._complete_from(self._command_names(), text)
            return
        command_name, _, rest = text.partition(" ")
        command = self.registry.get(command_name)
        if command is None or command.raw:
            return
        resolved = command.name
        if resolved in PATH_COMMANDS:
            sub_document = Document(rest, cursor_position=len(rest))
            yield from self._path.get_completions(sub_document, complete_event)
            return
        if resolved in CONNECTION_COMMANDS and " " not in rest:
            yield from self._complete_from(self._connection_names(), rest)

    def _command_names(self) -> List[str]:
        names: List[str] = []
        for command in self.registry.list_commands():
            names.append(command.name)
            names.extend(command.aliases)
        return sorted(set(names))

    def _connection_names(self) -> List[str]:
        names = self.ctx.connections()
        if self.ctx.current not in names:
            names.append(self.ctx.current)
        return sorted(names)

    @staticmethod
    def _complete_from(candidates: Iterable[str], prefix: str) -> Iterable[Completion]:
        needle = prefix.lower()
        for entry in sorted(dict.fromkeys(candidates)):
            if entry.lower().startswith(needle):
                yield Completion(entry, start_position=-len(prefix))
