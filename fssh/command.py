"""Base class for shell commands"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, TextIO

import click

from .errors import UsageError

if TYPE_CHECKING:
    from .shell import Shell


class Command(ABC):
    """
    A named shell command with click-declared flags.

    Instances are pooled and reused: parse() stores flag values as
    attributes, and reset() must restore every one of them before the
    instance is handed out again.

    Subclasses declare:
        name: Command name typed by the user
        description: One-line summary shown by help
        synopsis: Argument summary shown in usage
        examples: Example invocations shown in usage
        params(): click options; each option's name is the attribute it sets
    """

    name: str = ""
    description: str = ""
    synopsis: str = ""
    examples: List[str] = []
    #: False stops flag parsing at the first positional argument
    interspersed: bool = True

    def __init__(self):
        self.args: List[str] = []
        self._cli: Optional[click.Command] = None
        self.reset()

    def params(self) -> List[click.Parameter]:
        """Flags accepted by this command"""
        return []

    def _command(self) -> click.Command:
        if self._cli is None:
            self._cli = click.Command(
                self.name,
                params=self.params() + [
                    click.Option(["-h", "--help", "show_help"], is_flag=True, help="show usage"),
                    click.Argument(["args"], nargs=-1),
                ],
                add_help_option=False,
                context_settings={"allow_interspersed_args": self.interspersed},
            )
        return self._cli

    def parse(self, args: List[str]) -> bool:
        """
        Parse command-line tokens into flag attributes and positional args

        Returns:
            True when the user asked for help (-h/--help) instead

        Raises:
            UsageError: If a flag is unknown or malformed
        """
        try:
            ctx = self._command().make_context(self.name, list(args))
        except click.UsageError as e:
            raise UsageError(e.format_message()) from e
        values = dict(ctx.params)
        self.args = list(values.pop("args"))
        show_help = values.pop("show_help")
        for attr, value in values.items():
            setattr(self, attr, value)
        return show_help

    def reset(self) -> None:
        """Restore the state of a freshly constructed command"""
        self.args = []
        for param in self.params():
            setattr(self, param.name, param.default)

    @abstractmethod
    def execute(self, shell: "Shell") -> None:
        """Run the command; raise FsshError on failure"""
        pass

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        """Completion candidates for the argument being typed"""
        return []

    def usage(self, out: TextIO) -> None:
        """Write usage, flags and examples"""
        out.write(f"Usage:\n  {self.name}")
        if self.synopsis:
            out.write(f" {self.synopsis}")
        out.write("\n")
        options = [p for p in self.params() if isinstance(p, click.Option)]
        if options:
            out.write("Flags:\n")
            for option in options:
                out.write(f"  {', '.join(option.opts)}\t{option.help or ''}\n")
        if self.examples:
            out.write("Examples:\n")
            for example in self.examples:
                out.write(f"  {example}\n")
