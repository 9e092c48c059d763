"""Interactive line input backed by prompt_toolkit"""

import logging
import os
import tempfile
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory
from rich.console import Console

from .errors import FsshError

if TYPE_CHECKING:
    from .shell import Shell

logger = logging.getLogger(__name__)

console = Console(stderr=True)


class LineInterrupted(Exception):
    """Ctrl-C was pressed while reading; line holds the discarded input"""

    def __init__(self, line: str = ""):
        super().__init__("interrupted")
        self.line = line


class ShellCompleter(Completer):
    """Completes command names and arguments through Shell.complete"""

    def __init__(self, shell: "Shell"):
        self.shell = shell

    def get_completions(self, document, complete_event):
        try:
            word, candidates = self.shell.complete(document.text_before_cursor)
        except FsshError as e:
            logger.debug("completion failed: %s", e)
            return
        for candidate in candidates:
            yield Completion(candidate, start_position=-len(word))


def open_history(history_path: str) -> FileHistory:
    """Open the history file, falling back to a temporary one when it is not writable"""
    history_path = os.path.expanduser(history_path)
    try:
        os.makedirs(os.path.dirname(history_path) or ".", exist_ok=True)
        with open(history_path, "a"):
            pass
        return FileHistory(history_path)
    except OSError:
        temp_history = tempfile.NamedTemporaryFile(
            mode="w", delete=False, suffix="_fssh_history"
        )
        temp_history.close()
        console.print(
            f"[yellow]Warning: Cannot use {history_path}, using temporary history file[/yellow]",
            highlight=False,
        )
        return FileHistory(temp_history.name)


class PromptLineReader:
    """
    Reads lines from the terminal.

    read_line raises EOFError on Ctrl-D and LineInterrupted on Ctrl-C.
    """

    def __init__(self, history_path: str, completer: Completer = None):
        self.session = PromptSession(
            history=open_history(history_path),
            auto_suggest=AutoSuggestFromHistory(),
            completer=completer,
            complete_while_typing=False,
        )

    def read_line(self, prompt: str) -> str:
        try:
            return self.session.prompt(FormattedText([("ansicyan", prompt)]))
        except KeyboardInterrupt:
            raise LineInterrupted(self.session.default_buffer.text)
