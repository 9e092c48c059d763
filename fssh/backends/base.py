"""Backend capability contract"""

import contextlib
import fnmatch
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Iterator, List, Tuple

from ..errors import BackendError, IsDirectoryError, NotDirectoryError, NotExistError
from ..util import clean, is_glob_pattern, join

MODE_DIR = 0o040000
MODE_FILE = 0o100000
DEFAULT_DIR_MODE = MODE_DIR | 0o755
DEFAULT_FILE_MODE = MODE_FILE | 0o644


@dataclass
class FileInfo:
    """Metadata returned by stat and read_dir"""

    name: str
    is_dir: bool
    size: int = 0
    mod_time: datetime = field(default_factory=lambda: datetime.fromtimestamp(0))
    mode: int = 0

    def __post_init__(self):
        if not self.mode:
            self.mode = DEFAULT_DIR_MODE if self.is_dir else DEFAULT_FILE_MODE


def base_name(path: str) -> str:
    """Last element of a backend path ("." for the root)"""
    path = clean(path)
    if path in (".", "/"):
        return path
    return posixpath.basename(path)


@contextlib.contextmanager
def translate_os_errors(op: str, path: str):
    """Map OS errors raised inside the block onto the shell's error taxonomy"""
    try:
        yield
    except FileNotFoundError as e:
        raise NotExistError(f"{op} {path}: no such file or directory") from e
    except IsADirectoryError as e:
        raise IsDirectoryError(f"{op} {path}: is a directory") from e
    except NotADirectoryError as e:
        raise NotDirectoryError(f"{op} {path}: not a directory") from e
    except FileExistsError as e:
        raise NotDirectoryError(f"{op} {path}: file exists") from e
    except OSError as e:
        raise BackendError(f"{op} {path}: {e.strerror or e}") from e


class Backend(ABC):
    """
    A storage backend bound to one (scheme, host) pair.

    Paths passed to every method are slash-separated, relative to the
    backend root and cleaned; "." names the root itself.
    """

    #: Directories of an ephemeral backend may be created when a shell
    #: navigates into them (see Router.resolve_or_create_dir).
    ephemeral = False

    def __init__(self, host: str):
        self.host = host

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """Open a file for reading"""
        pass

    @abstractmethod
    def create(self, path: str, mode: int = DEFAULT_FILE_MODE) -> BinaryIO:
        """Create or truncate a file for writing, creating parents as needed"""
        pass

    @abstractmethod
    def stat(self, path: str) -> FileInfo:
        """
        Return metadata for path

        Raises:
            NotExistError: If path does not exist
        """
        pass

    @abstractmethod
    def read_dir(self, path: str) -> List[FileInfo]:
        """List a directory, sorted by name"""
        pass

    @abstractmethod
    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None:
        """Create a directory and any missing parents"""
        pass

    @abstractmethod
    def remove_all(self, path: str) -> None:
        """Remove path and everything below it; a missing path is not an error"""
        pass

    def glob(self, pattern: str) -> List[str]:
        """
        Return the paths matching pattern, sorted per directory

        Each slash-separated element is matched with fnmatch rules, so "*"
        never crosses a "/". A pattern without metacharacters matches
        itself when it exists.
        """
        if not is_glob_pattern(pattern):
            try:
                self.stat(pattern)
            except NotExistError:
                return []
            return [pattern]

        dir_part, file_part = posixpath.split(pattern)
        dir_part = clean(dir_part)
        if not is_glob_pattern(dir_part):
            return self._glob_dir(dir_part, file_part)
        if dir_part == pattern:
            return []

        matches = []
        for d in self.glob(dir_part):
            matches.extend(self._glob_dir(d, file_part))
        return matches

    def _glob_dir(self, dir_path: str, pattern: str) -> List[str]:
        try:
            info = self.stat(dir_path)
        except NotExistError:
            return []
        if not info.is_dir:
            return []
        names = sorted(entry.name for entry in self.read_dir(dir_path))
        return [join(dir_path, name) for name in names if fnmatch.fnmatchcase(name, pattern)]

    def walk(self, top: str) -> Iterator[Tuple[str, FileInfo]]:
        """Yield (path, info) for top and everything below it, parents first"""
        yield from self._walk(top, self.stat(top))

    def _walk(self, path: str, info: FileInfo) -> Iterator[Tuple[str, FileInfo]]:
        yield path, info
        if info.is_dir:
            for entry in self.read_dir(path):
                yield from self._walk(join(path, entry.name), entry)

    def __repr__(self):
        return f"{self.__class__.__name__}(host={self.host!r})"
