"""Storage backends reachable from the shell"""

from .base import Backend, FileInfo
from .gcs import GCSBackend
from .local import LocalBackend
from .memory import MemoryBackend
from .s3 import S3Backend

__all__ = [
    "Backend",
    "FileInfo",
    "GCSBackend",
    "LocalBackend",
    "MemoryBackend",
    "S3Backend",
]
