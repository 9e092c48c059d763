"""Backend Router: turns location strings into backend handles"""

import logging
from typing import Callable, Dict, NamedTuple, Optional

from .backends import Backend, GCSBackend, LocalBackend, MemoryBackend, S3Backend
from .errors import NotDirectoryError
from .location import parse_location

logger = logging.getLogger(__name__)

BackendFactory = Callable[[str], Backend]

# Protocol marker -> constructor taking the host. "" is the local default.
DEFAULT_BACKENDS: Dict[str, BackendFactory] = {
    "": LocalBackend,
    "s3://": S3Backend,
    "gs://": GCSBackend,
    "mem://": MemoryBackend,
}


class Resolved(NamedTuple):
    """A backend handle plus the parsed location it was built for"""

    backend: Backend
    scheme: str
    host: str
    path: str


class Router:
    """
    Build backend handles for locations.

    Every call constructs a fresh handle; the router keeps no cache. The
    session is the only long-lived owner of a handle.
    """

    def __init__(self, constructors: Optional[Dict[str, BackendFactory]] = None):
        self.constructors = dict(DEFAULT_BACKENDS if constructors is None else constructors)

    def create(self, scheme: str, host: str) -> Backend:
        """Construct a backend for an already parsed (scheme, host) pair"""
        factory = self.constructors.get(scheme) or self.constructors[""]
        logger.debug(
            "creating backend %s for %s%s", getattr(factory, "__name__", factory), scheme, host
        )
        return factory(host)

    def resolve(self, location: str) -> Resolved:
        """
        Parse location and build its backend without touching storage

        Raises:
            ParseError: If location is malformed
        """
        scheme, host, path = parse_location(location)
        return Resolved(self.create(scheme, host), scheme, host, path)

    def resolve_dir(self, location: str) -> Resolved:
        """
        Like resolve, but require the target to be an existing directory

        Raises:
            NotExistError: If the target does not exist
            NotDirectoryError: If the target is not a directory
        """
        resolved = self.resolve(location)
        info = resolved.backend.stat(resolved.path)
        if not info.is_dir:
            raise NotDirectoryError(f"not directory: {resolved.path}")
        return resolved

    def resolve_or_create_dir(self, location: str) -> Resolved:
        """
        Like resolve_dir, but an ephemeral backend creates a missing target

        Only in-memory style backends are created into existence; every
        other backend behaves exactly like resolve_dir.
        """
        resolved = self.resolve(location)
        if resolved.backend.ephemeral:
            resolved.backend.mkdir_all(resolved.path)
        info = resolved.backend.stat(resolved.path)
        if not info.is_dir:
            raise NotDirectoryError(f"not directory: {resolved.path}")
        return resolved
