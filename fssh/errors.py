"""Exceptions raised by the shell, its router and its backends"""


class FsshError(Exception):
    """Base class for every error reported to the user"""
    pass


class ParseError(FsshError):
    """Location string is not a valid URI"""
    pass


class NotExistError(FsshError):
    """Target path does not exist on the backend"""
    pass


class NotDirectoryError(FsshError):
    """Target path exists but is not a directory"""
    pass


class IsDirectoryError(FsshError):
    """Target path is a directory where a file was expected"""
    pass


class CommandNotFoundError(FsshError):
    """First token of a line does not name a registered command"""

    def __init__(self, name: str):
        super().__init__(f"command not found: {name}")
        self.name = name


class UsageError(FsshError):
    """Command flags could not be parsed"""
    pass


class BackendError(FsshError):
    """Opaque failure from a backend implementation"""
    pass


class ExitSignal(Exception):
    """Raised by the exit command to stop the dispatch loop.

    Not an FsshError: the loop treats it as a clean termination.
    """
    pass
