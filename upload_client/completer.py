"""Completer for the chunkup REPL: command names, local paths and transfer ids."""

from typing import Callable, Iterable

from prompt_toolkit.completion import Completer, Completion, PathCompleter
from prompt_toolkit.document import Document

from upload_client.constants import COMMANDS, TRANSFER_ID_COMMANDS


class ChunkupCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for 'upload' arguments
    - Transfer id completion for pause/resume/cancel
    """

    def __init__(self, transfer_ids: Callable[[], Iterable[int]] = lambda: ()):
        self.transfer_ids = transfer_ids
        self.path_completer = PathCompleter(expanduser=True)

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        current_word = "" if is_typing_new_token else tokens[-1]

        if command == "upload":
            yield from self.path_completer.get_completions(Document(current_word), complete_event)
        elif command in TRANSFER_ID_COMMANDS and len(tokens) - (0 if is_typing_new_token else 1) == 1:
            for transfer_id in self.transfer_ids():
                candidate = str(transfer_id)
                if candidate.startswith(current_word):
                    yield Completion(candidate, start_position=-len(current_word))

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))
