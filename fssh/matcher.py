"""Prefix Match Cache used for path autocompletion"""

import enum
import logging
import posixpath
from typing import TYPE_CHECKING, List, Optional, Tuple

from .backends import Backend
from .location import is_current_relative
from .util import is_glob_pattern, join

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


class Want(enum.Flag):
    """Kinds of entries a completion asks for"""

    FILES = 1
    DIRS = 2
    BOTH = FILES | DIRS


class PrefixMatcher:
    """
    Candidate paths for a partially typed location.

    The last query is cached. When the user types more characters, the
    new prefix extends the cached one and the result is narrowed locally
    instead of globbing the backend again. The cache is reset whenever
    the session changes directory or backend.

    Narrowing is stricter than a plain startswith filter: text that adds
    a "/" or contains glob characters is queried again, and the cached
    result only serves the same kind of entries it was built for.
    """

    def __init__(self):
        self._prefix: Optional[str] = None
        self._want: Optional[Want] = None
        self._matches: List[str] = []

    def reset(self) -> None:
        """Drop the cached query"""
        self._prefix = None
        self._want = None
        self._matches = []

    def matches(self, session: "Session", prefix: str, want: Want = Want.BOTH) -> List[str]:
        """Return files and/or directories starting with prefix"""
        if self._prefix is not None and want == self._want:
            if prefix == self._prefix:
                return list(self._matches)
            if self._narrows(prefix):
                self._matches = [m for m in self._matches if m.startswith(prefix)]
                self._prefix = prefix
                return list(self._matches)

        matches = self._query(session, prefix, want)
        self._prefix, self._want, self._matches = prefix, want, matches
        return list(matches)

    def match_files(self, session: "Session", prefix: str) -> List[str]:
        return self.matches(session, prefix, Want.FILES)

    def match_dirs(self, session: "Session", prefix: str) -> List[str]:
        return self.matches(session, prefix, Want.DIRS)

    def _narrows(self, prefix: str) -> bool:
        # Typing past a "/" enters another directory, whose entries were
        # never part of the cached set. Glob prefixes are not textual.
        if not prefix.startswith(self._prefix):
            return False
        suffix = prefix[len(self._prefix):]
        return "/" not in suffix and not is_glob_pattern(prefix)

    def _query(self, session: "Session", prefix: str, want: Want) -> List[str]:
        backend, typed_dir, pattern = self._glob_root(session, prefix)
        logger.debug("refreshing completion cache for %r with glob %r", prefix, pattern)
        paths = backend.glob(pattern)
        if want != Want.BOTH:
            paths = [p for p in paths if self._wanted(backend, p, want)]
        return [self._rewrite(session, prefix, typed_dir, p) for p in paths]

    @staticmethod
    def _wanted(backend: Backend, path: str, want: Want) -> bool:
        info = backend.stat(path)
        if want == Want.FILES:
            return not info.is_dir
        return info.is_dir and path != "."

    @staticmethod
    def _glob_root(session: "Session", prefix: str) -> Tuple[Backend, str, str]:
        """Return the backend to glob, the directory part as typed, and the glob pattern"""
        if is_current_relative(prefix):
            slash = prefix.rfind("/")
            typed_dir, file_part = prefix[:slash + 1], prefix[slash + 1:]
            backend = session.backend
            dir_path = session.join_path(typed_dir)
        else:
            resolved = session.router.resolve(prefix)
            backend = resolved.backend
            if resolved.path == "." or prefix.endswith("/"):
                typed_dir = prefix if prefix.endswith("/") else prefix + "/"
                dir_path, file_part = resolved.path, ""
            else:
                typed_dir = prefix[:prefix.rfind("/") + 1]
                dir_path = posixpath.dirname(resolved.path) or "."
                file_part = posixpath.basename(resolved.path)

        if not is_glob_pattern(file_part):
            file_part += "*"
        return backend, typed_dir, join(dir_path, file_part)

    @staticmethod
    def _rewrite(session: "Session", prefix: str, typed_dir: str, path: str) -> str:
        """Express a backend path the way the user is typing it"""
        if not is_glob_pattern(typed_dir):
            return typed_dir + posixpath.basename(path)
        if is_current_relative(prefix):
            return posixpath.relpath(path, session.current_path)
        return path
