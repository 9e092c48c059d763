"""Built-in shell commands"""

import functools
import logging
import os
import posixpath
import shutil
import subprocess
from typing import TYPE_CHECKING, List

import click

from .backends import Backend, FileInfo
from .command import Command
from .errors import (
    CommandNotFoundError,
    ExitSignal,
    FsshError,
    IsDirectoryError,
    NotDirectoryError,
    NotExistError,
)
from .registry import CommandRegistry
from .util import display_size, is_glob_pattern, join

if TYPE_CHECKING:
    from .shell import Shell

logger = logging.getLogger(__name__)


def _flag(short: str, attr: str, help_text: str) -> click.Option:
    return click.Option([short, attr], is_flag=True, default=False, help=help_text)


def _mode_to_rwx(mode: int, is_dir: bool) -> str:
    """Convert a file mode to ls-style "drwxr-xr-x" text"""
    perms = mode & 0o777

    def _triple(val):
        r = 'r' if val & 4 else '-'
        w = 'w' if val & 2 else '-'
        x = 'x' if val & 1 else '-'
        return r + w + x

    kind = 'd' if is_dir else '-'
    return kind + _triple((perms >> 6) & 7) + _triple((perms >> 3) & 7) + _triple(perms & 7)


def _is_within(path: str, parent: str) -> bool:
    """Whether path is parent itself or lies below it"""
    return parent == "." or path == parent or path.startswith(parent + "/")


class Cat(Command):
    name = "cat"
    description = "concatenate and print files"
    synopsis = "[file]"
    examples = ["cat FILE", "cat (s3|gs)://BUCKET/DIR/FILE"]

    def execute(self, shell: "Shell") -> None:
        if not self.args:
            self.usage(shell.stderr)
            return
        backend, path = shell.session.sub_path(self.args[0])
        with backend.open(path) as f:
            data = f.read()
        text = data.decode("utf-8", errors="replace")
        shell.stdout.write(text)
        if text and not text.endswith("\n"):
            shell.stdout.write("\n")

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        return shell.session.matcher.match_files(shell.session, arg)


class Cd(Command):
    name = "cd"
    description = "change directory"
    synopsis = "[dir]"
    examples = [
        "cd DIR",
        "cd (s3|gs)://BUCKET/DIR",
        "cd ~~/DIR",
        "cd /DIR         # DIR below the root of the current backend",
        "cd file:///DIR  # DIR below the local filesystem root",
    ]

    def execute(self, shell: "Shell") -> None:
        shell.session.change_directory(self.args[0] if self.args else "")

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        return shell.session.matcher.match_dirs(shell.session, arg)


class Cp(Command):
    """
    Copy files and directory trees, possibly between backends.

    A destination that is an existing directory receives the source
    under its own base name. Existing destination files are kept unless
    -f is given.
    """

    name = "cp"
    description = "copy files"
    synopsis = "([flags]) [from] [to]"
    examples = [
        "cp FROM TO",
        "cp LOCAL_FILE (s3|gs)://BUCKET/DIR",
        "cp -rf (s3|gs)://BUCKET/DIR LOCAL_DIR",
    ]

    def params(self) -> List[click.Parameter]:
        return [
            _flag("-r", "is_recursive", "copy directories recursively"),
            _flag("-f", "is_force", "overwrite existing files and skip directories silently"),
            _flag("-d", "is_dry_run", "print what would be copied without copying"),
        ]

    def execute(self, shell: "Shell") -> None:
        if len(self.args) < 2:
            self.usage(shell.stderr)
            return
        from_backend, from_path = shell.session.sub_path(self.args[0])
        to_backend, to_path = shell.session.sub_path(self.args[1])
        from_info = from_backend.stat(from_path)
        if from_info.is_dir:
            self._copy_dir(shell, from_backend, to_backend, from_path, to_path)
        else:
            self._copy_file(shell, from_backend, to_backend, from_path, to_path, from_info)

    @staticmethod
    def _stat_or_none(backend: Backend, path: str):
        try:
            return backend.stat(path)
        except NotExistError:
            return None

    @staticmethod
    def _same_backend(a: Backend, b: Backend) -> bool:
        return type(a) is type(b) and a.host == b.host

    def _copy_dir(self, shell, from_backend, to_backend, from_path, to_path):
        if not self.is_recursive:
            if self.is_force:
                return
            raise IsDirectoryError(f"{from_path} is a directory (not copied)")

        to_info = self._stat_or_none(to_backend, to_path)
        if to_info is not None:
            if not to_info.is_dir:
                if self.is_force:
                    return
                raise NotDirectoryError(f"{to_path} is not a directory (not copied)")
            to_path = join(to_path, posixpath.basename(from_path))
        if self._same_backend(from_backend, to_backend) and _is_within(to_path, from_path):
            raise IsDirectoryError(f"cannot copy a directory, {from_path}, into itself, {to_path}")

        # Listed up front so directories created below are never walked
        for path, info in list(from_backend.walk(from_path)):
            rel = posixpath.relpath(path, from_path)
            target = to_path if rel == "." else join(to_path, rel)
            if info.is_dir:
                if self.is_dry_run:
                    shell.stdout.write(f"dry-run: mkdir {target}\n")
                else:
                    to_backend.mkdir_all(target)
                continue
            self._copy_file(shell, from_backend, to_backend, path, target, info)

    def _copy_file(self, shell, from_backend, to_backend, from_path, to_path, from_info: FileInfo):
        to_info = self._stat_or_none(to_backend, to_path)
        if to_info is not None and to_info.is_dir:
            to_path = join(to_path, posixpath.basename(from_path))
            to_info = self._stat_or_none(to_backend, to_path)
        if to_info is not None and not self.is_force:
            shell.stderr.write(f"skip copying {from_path} because {to_path} exists\n")
            return
        if self.is_dry_run:
            shell.stdout.write(f"dry-run: copy {from_path} to {to_path}\n")
            return

        logger.debug("copying %s to %s", from_path, to_path)
        with from_backend.open(from_path) as src, to_backend.create(to_path, from_info.mode) as dst:
            shutil.copyfileobj(src, dst)

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        if self.is_recursive:
            return shell.session.matcher.match_dirs(shell.session, arg)
        return shell.session.matcher.match_files(shell.session, arg)


class Env(Command):
    name = "env"
    description = "prints or sets environment"
    synopsis = "([KEY](=[VALUE]))"
    examples = [
        "env           # Show all environs",
        "env KEY       # Show value of KEY",
        "env KEY=VALUE # Set environ",
    ]

    def execute(self, shell: "Shell") -> None:
        if not self.args:
            for key, value in os.environ.items():
                shell.stdout.write(f"{key}={value}\n")
            return

        assigned = 0
        for arg in self.args:
            key, sep, value = arg.partition("=")
            if sep:
                os.environ[key] = value
                assigned += 1
            else:
                shell.stdout.write(f"{arg}={os.environ.get(arg, '')}\n")
        if assigned:
            # Backend clients read credentials and endpoints from the environment
            shell.session.reload_backend()


class Exit(Command):
    name = "exit"
    description = "exit the shell"

    def execute(self, shell: "Shell") -> None:
        raise ExitSignal()


class Help(Command):
    name = "help"
    description = "show help messages"
    synopsis = "([command])"

    def __init__(self, registry: CommandRegistry):
        self.registry = registry
        super().__init__()

    def execute(self, shell: "Shell") -> None:
        if not self.args or self.args[0] == self.name:
            self.usage(shell.stdout)
            return
        with self.registry.borrow(self.args[0]) as cmd:
            if cmd is None:
                raise CommandNotFoundError(self.args[0])
            cmd.usage(shell.stdout)

    def usage(self, out) -> None:
        out.write(f"Usage:\n  {self.name} {self.synopsis}\n")
        out.write("Commands:\n")
        for name in self.registry.sorted_names():
            if name == self.name:
                continue
            with self.registry.borrow(name) as cmd:
                if cmd is not None:
                    out.write(f"  {name}\t\t{cmd.description}\n")

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        return [name for name in self.registry.sorted_names() if name.startswith(arg)]


class Ls(Command):
    name = "ls"
    description = "list directory contents"
    synopsis = "([flags]) ([dir])"
    examples = ["ls DIR", "ls (s3|gs)://BUCKET/DIR", "ls -l '*.txt'"]

    def params(self) -> List[click.Parameter]:
        return [_flag("-l", "is_long", "long format")]

    def execute(self, shell: "Shell") -> None:
        backend, path = shell.session.sub_path(self.args[0] if self.args else ".")
        if is_glob_pattern(path):
            for match in backend.glob(path):
                self._print_info(shell, backend.stat(match))
            return
        info = backend.stat(path)
        if not info.is_dir:
            self._print_info(shell, info)
            return
        for entry in backend.read_dir(path):
            self._print_info(shell, entry)

    def _print_info(self, shell: "Shell", info: FileInfo) -> None:
        if self.is_long:
            mod_time = info.mod_time.strftime("%Y-%m-%d %H:%M")
            mode = _mode_to_rwx(info.mode, info.is_dir)
            shell.stdout.write(f"{mode} {mod_time} {display_size(info.size)} {info.name}\n")
            return
        shell.stdout.write(f"{info.name}{'/' if info.is_dir else ''}\n")

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        return shell.session.matcher.matches(shell.session, arg)


class Pwd(Command):
    name = "pwd"
    description = "print working directory name"

    def execute(self, shell: "Shell") -> None:
        shell.stdout.write(shell.session.working_directory() + "\n")


class Rm(Command):
    name = "rm"
    description = "remove files"
    synopsis = "([flags]) [name]"
    examples = [
        "rm FILE",
        "rm -rf DIR",
        "rm (s3|gs)://BUCKET/FILE",
        "rm -rf (s3|gs)://BUCKET/DIR",
    ]

    def params(self) -> List[click.Parameter]:
        return [
            _flag("-r", "is_recursive", "remove directories recursively"),
            _flag("-f", "is_force", "ignore missing files and skip directories silently"),
            _flag("-d", "is_dry_run", "print what would be removed without removing"),
        ]

    def execute(self, shell: "Shell") -> None:
        if not self.args:
            self.usage(shell.stderr)
            return
        for arg in self.args:
            backend, path = shell.session.sub_path(arg)
            try:
                info = backend.stat(path)
            except NotExistError:
                if self.is_force:
                    continue
                raise
            if info.is_dir and not self.is_recursive:
                if self.is_force:
                    continue
                raise IsDirectoryError(f"{path} is a directory")
            if self.is_dry_run:
                shell.stdout.write(f"dry-run: remove {path}\n")
                continue
            logger.debug("removing %s", path)
            backend.remove_all(path)

    def complete(self, shell: "Shell", arg: str) -> List[str]:
        if self.is_recursive:
            return shell.session.matcher.match_dirs(shell.session, arg)
        return shell.session.matcher.match_files(shell.session, arg)


class ShellEscape(Command):
    """Run a local program with the shell's terminal, blocking until it exits"""

    name = "!"
    description = "shell escape"
    synopsis = "[local shell commands]"
    examples = ["! ls -al", "! vi example.txt"]
    interspersed = False

    def execute(self, shell: "Shell") -> None:
        if not self.args:
            self.usage(shell.stderr)
            return
        program = shutil.which(self.args[0])
        if program is None:
            raise FsshError(f'exec: "{self.args[0]}": executable file not found in $PATH')
        logger.debug("running %s %s", program, self.args[1:])
        try:
            result = subprocess.run([program] + self.args[1:])
        except OSError as e:
            raise FsshError(f"exec: {self.args[0]}: {e.strerror or e}") from e
        if result.returncode != 0:
            raise FsshError(f"exit status {result.returncode}")


BUILTINS = {
    'cat': Cat,
    'cd': Cd,
    'cp': Cp,
    'env': Env,
    'exit': Exit,
    'ls': Ls,
    'pwd': Pwd,
    'rm': Rm,
    '!': ShellEscape,
}


def register_builtins(registry: CommandRegistry) -> CommandRegistry:
    """Register every built-in command, including help, with registry"""
    for name, cls in BUILTINS.items():
        registry.register(name, cls)
    registry.register(Help.name, functools.partial(Help, registry))
    return registry


def default_registry() -> CommandRegistry:
    return register_builtins(CommandRegistry())
