"""Session State: the backend and directory the user is currently in"""

import logging
import os
from typing import Callable, List, Optional, Tuple

from .backends import Backend
from .errors import NotDirectoryError
from .location import is_current_relative
from .matcher import PrefixMatcher
from .router import Router
from .util import clean, join

logger = logging.getLogger(__name__)


class Session:
    """
    Where the user is: one active backend plus scheme, host and path.

    Commands borrow the backend for the duration of one execution and
    must not keep it. Listeners are notified after every successful
    change of directory or backend.
    """

    def __init__(self, router: Router, backend: Backend, scheme: str, host: str, path: str = "."):
        self.router = router
        self.backend = backend
        self.scheme = scheme
        self.host = host
        self.current_path = clean(path)
        self.matcher = PrefixMatcher()
        self._listeners: List[Callable[["Session"], None]] = []

    @classmethod
    def open(cls, location: str, router: Optional[Router] = None) -> "Session":
        """Start a session in the directory named by location"""
        router = router or Router()
        resolved = router.resolve_or_create_dir(location)
        return cls(router, resolved.backend, resolved.scheme, resolved.host, resolved.path)

    def add_listener(self, listener: Callable[["Session"], None]) -> None:
        self._listeners.append(listener)

    def display_path(self) -> str:
        """scheme + host + path, as shown in the prompt"""
        if self.scheme and self.current_path == ".":
            return self.scheme + self.host
        if not self.host:
            return self.scheme + self.current_path
        return self.scheme + join(self.host, self.current_path)

    def working_directory(self) -> str:
        """What pwd prints: an absolute path for local disk, else display_path()"""
        if not self.scheme:
            return os.path.abspath(os.path.join(self.host, self.current_path))
        return self.display_path()

    def join_path(self, location: str) -> str:
        """
        Apply a current-relative location to the current path

        A leading "/" anchors the location at the backend root.
        """
        if location.startswith("/"):
            return clean(location.lstrip("/"))
        return join(self.current_path, location) or self.current_path

    def sub_path(self, location: str) -> Tuple[Backend, str]:
        """
        Return the backend and backend path a command should use for location

        Current-relative locations use the active backend; anything else
        gets a freshly constructed backend from the router.
        """
        if is_current_relative(location):
            return self.backend, self.join_path(location)
        resolved = self.router.resolve(location)
        return resolved.backend, resolved.path

    def change_directory(self, location: str) -> None:
        """
        Move to another directory, possibly on another backend

        State is only modified once the target is known to be a
        directory; a failure leaves the session untouched.

        Raises:
            ParseError: If location is malformed
            NotExistError: If the target does not exist
            NotDirectoryError: If the target is not a directory
        """
        if not location:
            self.current_path = "."
        elif is_current_relative(location):
            target = self.join_path(location)
            info = self.backend.stat(target)
            if not info.is_dir:
                raise NotDirectoryError(f"not directory: {target}")
            self.current_path = target
        else:
            resolved = self.router.resolve_or_create_dir(location)
            self.backend, self.scheme, self.host, self.current_path = resolved
        logger.debug("changed directory to %s", self.display_path())
        self._changed()

    def reload_backend(self) -> None:
        """Re-create the active backend for the same scheme and host, keeping the path"""
        self.backend = self.router.create(self.scheme, self.host)
        logger.debug("re-created backend for %s", self.display_path())
        self._changed()

    def _changed(self) -> None:
        self.matcher.reset()
        for listener in self._listeners:
            listener(self)
