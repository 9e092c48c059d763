"""Main CLI Entry Point"""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .builtins import default_registry
from .config import Config
from .errors import FsshError
from .reader import PromptLineReader, ShellCompleter
from .session import Session
from .shell import SHELL_NAME, Shell
from .version import __version__, get_version_string

console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str) -> None:
    """Send log records to stderr through rich"""
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def start_repl(shell: Shell, config: Config) -> None:
    """Start interactive REPL session"""
    shell.reader = PromptLineReader(config.history_file, ShellCompleter(shell))
    console.print(f"[dim]{get_version_string()}[/dim]", highlight=False)
    console.print("type 'help' for help", highlight=False)
    shell.run()
    console.print("exit", highlight=False)


@click.command()
@click.version_option(version=__version__, prog_name=SHELL_NAME)
@click.argument("location", required=False)
@click.option(
    "--history-file",
    default=None,
    help="Line history file (can also set via FSSH_HISTFILE environment variable)",
    show_default="~/.fssh_history",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (can also set via FSSH_LOG_LEVEL environment variable)",
    show_default="WARNING",
)
@click.option(
    "-c",
    "--command",
    "command_line",
    default=None,
    help="Execute one command line and exit",
)
def main(location, history_file, log_level, command_line):
    """fssh - interactive shell for local, in-memory, S3 and GCS files

    \b
    Examples:
      fssh
      fssh DIR
      fssh (s3|gs)://BUCKET/
      fssh mem://scratch -c 'ls -l'
    """
    config = Config.from_args(location=location, history_file=history_file, log_level=log_level)
    setup_logging(config.log_level)
    logging.getLogger(__name__).debug("starting with %r", config)

    try:
        session = Session.open(config.location)
    except FsshError as e:
        console.print(f"{SHELL_NAME}: error: {escape(str(e))}", highlight=False)
        sys.exit(1)

    shell = Shell(session, default_registry())
    if command_line is not None:
        shell.execute_line(command_line)
        sys.exit(shell.status)
    start_repl(shell, config)


if __name__ == "__main__":
    main()
