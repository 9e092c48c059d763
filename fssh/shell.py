"""Dispatch Loop: reads lines and runs commands against the session"""

import logging
import sys
from typing import List, Optional, TextIO, Tuple

from rich.console import Console
from rich.markup import escape

from .errors import CommandNotFoundError, ExitSignal, FsshError, UsageError
from .reader import LineInterrupted
from .registry import CommandRegistry
from .session import Session
from .util import tokenize

logger = logging.getLogger(__name__)

SHELL_NAME = "fssh"


class Shell:
    """
    Runs one command per line until exit or end of input.

    The reader only needs a read_line(prompt) method that returns a line,
    raises EOFError at end of input and raises LineInterrupted on Ctrl-C.
    Command errors are reported to stderr and never stop the loop.
    """

    def __init__(
        self,
        session: Session,
        registry: CommandRegistry,
        reader=None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        self.session = session
        self.registry = registry
        self.reader = reader
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.console = Console(file=self.stderr, highlight=False, soft_wrap=True, emoji=False)
        self.status = 0
        self.prompt = ""
        session.add_listener(self._update_prompt)
        self._update_prompt(session)

    def _update_prompt(self, session: Session) -> None:
        self.prompt = f"{session.display_path()}> "

    def run(self) -> None:
        """Read and execute lines until exit, Ctrl-D, or Ctrl-C on an empty line"""
        while True:
            try:
                line = self.reader.read_line(self.prompt)
            except LineInterrupted as e:
                if not e.line:
                    break
                continue
            except EOFError:
                break
            if not self.execute_line(line):
                break

    def execute_line(self, line: str) -> bool:
        """
        Tokenize and execute one line, reporting any error

        Returns:
            False when the line asked the shell to exit, True otherwise
        """
        args = tokenize(line)
        if not args:
            return True
        self.status = 0
        try:
            self.exec_command(args)
        except ExitSignal:
            return False
        except CommandNotFoundError as e:
            self._report(f"{SHELL_NAME}: {e}")
        except FsshError as e:
            logger.debug("%s failed: %s", args[0], e)
            self._report(f"{SHELL_NAME}: error: {e}")
        except Exception as e:
            logger.debug("%s raised an unexpected error", args[0], exc_info=True)
            self._report(f"{SHELL_NAME}: error: {e}")
        return True

    def exec_command(self, args: List[str]) -> None:
        """
        Look up args[0], parse its flags and execute it

        Raises:
            CommandNotFoundError: If args[0] is not registered
            UsageError: If the flags cannot be parsed
            ExitSignal: If the command asks the shell to exit
        """
        with self.registry.borrow(args[0]) as cmd:
            if cmd is None:
                raise CommandNotFoundError(args[0])
            if cmd.parse(args[1:]):
                cmd.usage(self.stdout)
                return
            cmd.execute(self)

    def complete(self, line: str) -> Tuple[str, List[str]]:
        """
        Completion candidates for the end of line

        Returns:
            The word being completed and the candidates that replace it
        """
        args = tokenize(line)
        at_new_word = not line or line[-1].isspace()
        if not args or (len(args) == 1 and not at_new_word):
            word = args[0] if args else ""
            return word, [n for n in self.registry.sorted_names() if n.startswith(word)]

        word = "" if at_new_word else args[-1]
        preceding = args[1:] if at_new_word else args[1:-1]
        if word.startswith("-"):
            return word, []
        with self.registry.borrow(args[0]) as cmd:
            if cmd is None:
                return word, []
            try:
                if cmd.parse(preceding):
                    return word, []
            except UsageError:
                return word, []
            return word, cmd.complete(self, word)

    def usage(self, out: TextIO) -> None:
        out.write("Commands:\n")
        for name in self.registry.sorted_names():
            out.write(f"  {name}\n")

    def _report(self, message: str) -> None:
        self.status = 1
        self.console.print(escape(message))
