"""Location string parsing

A location is what the user types to name a file or directory:

    [scheme://]host/path     s3://bucket/dir, gs://bucket/dir, mem://name/dir,
                             file://host/dir
    ~path                    relative to the local home directory
    ~~path                   relative to the local working directory
    path                     local path (or current-relative, see below)
"""

import re
from pathlib import Path
from typing import NamedTuple
from urllib.parse import urlsplit

from .errors import ParseError
from .util import clean

# Recognized URI schemes and the protocol marker each maps to.
# "file" selects the local backend, which has no marker.
PROTOCOLS = {
    "s3": "s3://",
    "gs": "gs://",
    "mem": "mem://",
    "file": "",
}

LOCAL_HOST = "."

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")
_HOST_CHARS = re.compile(r"[A-Za-z0-9.\-_~%!$&'()*+,;=:@\[\]]")


class Location(NamedTuple):
    """Parsed location: protocol marker, backend-selecting host and cleaned path"""

    scheme: str
    host: str
    path: str


def user_home_dir() -> str:
    """Return the local home directory (replaced in tests)"""
    return str(Path.home())


def is_current_relative(name: str) -> bool:
    """
    Check whether name is resolved against the session's current backend

    Anything that does not start with "~" and does not contain ":/" is
    current-relative. This is a substring heuristic, not a scheme check:
    a local name that literally contains ":/" is treated as a
    cross-backend reference.
    """
    return not name.startswith("~") and ":/" not in name


def _validate(location: str) -> None:
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in location):
        raise ParseError(f'parse "{location}": invalid control character in URL')
    if location.startswith(":"):
        raise ParseError(f'parse "{location}": missing protocol scheme')
    colon = location.find(":")
    slash = location.find("/")
    if colon != -1 and (slash == -1 or colon < slash) and not _SCHEME_RE.match(location):
        raise ParseError(
            f'parse "{location}": first path segment in URL cannot contain colon'
        )


def _validate_host(location: str, host: str) -> None:
    for c in host:
        if not _HOST_CHARS.match(c):
            raise ParseError(f'parse "{location}": invalid character "{c}" in host name')


def parse_location(location: str) -> Location:
    """
    Parse a location string into (scheme, host, path)

    Args:
        location: Location as typed by the user

    Returns:
        Location with a protocol marker ("" for local), the host and a
        cleaned path without leading slash ("." for the root)

    Raises:
        ParseError: If location is not a syntactically valid URI
    """
    if location.startswith("~"):
        if location[1:].startswith("~"):
            return Location("", LOCAL_HOST, clean(location[2:].lstrip("/")))
        try:
            home = user_home_dir()
        except (OSError, RuntimeError, KeyError) as e:
            raise ParseError(f"cannot resolve home directory: {e}") from e
        return Location("", home, clean(location[1:].lstrip("/")))

    _validate(location)
    try:
        parts = urlsplit(location)
    except ValueError as e:
        raise ParseError(f'parse "{location}": {e}') from e

    scheme = parts.scheme.lower()
    if scheme in PROTOCOLS:
        _validate_host(location, parts.netloc)
        host = parts.netloc
        if scheme == "file" and not host:
            # file:///abs/path is rooted at the filesystem root
            host = "/"
        return Location(PROTOCOLS[scheme], host, clean(parts.path.lstrip("/")))

    if location.startswith("/"):
        return Location("", "/", clean(location.lstrip("/")))
    return Location("", LOCAL_HOST, clean(location))
