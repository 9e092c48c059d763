"""fssh - interactive shell for local, in-memory and object-store files"""

from .version import __version__

__all__ = ["__version__"]
