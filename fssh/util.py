"""Line tokenizing and slash-path helpers shared by the shell"""

import posixpath
import shlex
from typing import List

UNIT_KB = 1024
UNIT_MB = 1024 * UNIT_KB
UNIT_GB = 1024 * UNIT_MB
UNIT_TB = 1024 * UNIT_GB
UNIT_PB = 1024 * UNIT_TB

GLOB_CHARS = "*?[]"


def tokenize(line: str) -> List[str]:
    """
    Split a command line into arguments, honouring shell-style quotes

    Example:
        >>> tokenize('a \\'b c\\' "d"')
        ['a', 'b c', 'd']
    """
    try:
        return shlex.split(line)
    except ValueError:
        # Unmatched quotes: fall back to a plain whitespace split
        return line.split()


def clean(path: str) -> str:
    """
    Return the shortest slash path equivalent to path

    Collapses duplicate slashes, removes "." elements and resolves ".."
    elements. The result of an empty path is ".".
    """
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    # POSIX keeps a leading "//"; slash paths never do
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def join(*parts: str) -> str:
    """Join path elements with slashes and clean the result, ignoring empty elements"""
    elems = [p for p in parts if p]
    if not elems:
        return ""
    return clean("/".join(elems))


def is_glob_pattern(pattern: str) -> bool:
    """Check whether pattern contains any glob metacharacter"""
    return any(c in pattern for c in GLOB_CHARS)


def _round(value: float) -> int:
    # Half away from zero, like the size columns of common ls implementations
    return int(value + 0.5)


def display_size(size: int) -> str:
    """Summarize a byte count in a 4-wide column with a unit suffix"""
    if size < UNIT_KB:
        return f"{size:4d}B"
    if size < UNIT_MB:
        return f"{_round(size / UNIT_KB):4d}K"
    if size < UNIT_GB:
        return f"{_round(size / UNIT_MB):4d}M"
    if size < UNIT_TB:
        return f"{_round(size / UNIT_GB):4d}G"
    if size < UNIT_PB:
        return f"{_round(size / UNIT_TB):4d}T"
    return f"{_round(size / UNIT_PB):4d}P"
