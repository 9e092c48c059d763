"""Shared mapping of object-store buckets onto the backend contract

Objects are files. Directories are "/"-delimited key prefixes; an empty
directory is kept alive by a zero-length "<dir>/" marker object.
"""

import io
from abc import abstractmethod
from datetime import datetime
from typing import BinaryIO, Iterator, List, Optional, Tuple

from ..errors import IsDirectoryError, NotExistError
from ..util import clean
from .base import DEFAULT_DIR_MODE, DEFAULT_FILE_MODE, Backend, FileInfo, base_name

# (key, size, last modified)
ObjectEntry = Tuple[str, int, datetime]


class _UploadOnClose(io.BytesIO):
    """Write buffer that uploads itself when closed"""

    def __init__(self, upload):
        super().__init__()
        self._upload = upload

    def close(self):
        if not self.closed:
            self._upload(self.getvalue())
        super().close()


class ObjectStoreBackend(Backend):
    """Backend over a single bucket; subclasses supply the client primitives"""

    DELETE_BATCH = 1000

    @staticmethod
    def _key(path: str) -> str:
        path = clean(path).lstrip("/")
        return "" if path == "." else path

    @staticmethod
    def _dir_prefix(key: str) -> str:
        return key + "/" if key else ""

    # Client primitives

    @abstractmethod
    def _bucket_exists(self) -> bool:
        pass

    @abstractmethod
    def _head(self, key: str) -> Optional[Tuple[int, datetime]]:
        """Size and modification time of an object, None when absent"""
        pass

    @abstractmethod
    def _has_prefix(self, prefix: str) -> bool:
        pass

    @abstractmethod
    def _list(self, prefix: str) -> Tuple[List[str], List[ObjectEntry]]:
        """Delimited listing: (common prefixes, objects) directly below prefix"""
        pass

    @abstractmethod
    def _list_keys(self, prefix: str) -> Iterator[str]:
        """Every key below prefix, undelimited"""
        pass

    @abstractmethod
    def _get(self, key: str) -> bytes:
        pass

    @abstractmethod
    def _put(self, key: str, data: bytes) -> None:
        pass

    @abstractmethod
    def _delete(self, keys: List[str]) -> None:
        pass

    # Backend contract

    def open(self, path: str) -> BinaryIO:
        key = self._key(path)
        if not key:
            raise IsDirectoryError(f"open {path}: is a directory")
        return io.BytesIO(self._get(key))

    def create(self, path: str, mode: int = DEFAULT_FILE_MODE) -> BinaryIO:
        key = self._key(path)
        if not key:
            raise IsDirectoryError(f"create {path}: is a directory")
        return _UploadOnClose(lambda data: self._put(key, data))

    def stat(self, path: str) -> FileInfo:
        key = self._key(path)
        name = base_name(path)
        if not key:
            if not self._bucket_exists():
                raise NotExistError(f"stat {self.host}: no such bucket")
            return FileInfo(name=".", is_dir=True)
        head = self._head(key)
        if head is not None:
            size, mod_time = head
            return FileInfo(name=name, is_dir=False, size=size, mod_time=mod_time)
        if self._has_prefix(self._dir_prefix(key)):
            return FileInfo(name=name, is_dir=True)
        raise NotExistError(f"stat {path}: no such file or directory")

    def read_dir(self, path: str) -> List[FileInfo]:
        prefix = self._dir_prefix(self._key(path))
        prefixes, objects = self._list(prefix)
        infos = []
        for p in prefixes:
            name = p[len(prefix):].rstrip("/")
            if name:
                infos.append(FileInfo(name=name, is_dir=True))
        marker = False
        for key, size, mod_time in objects:
            name = key[len(prefix):]
            if not name:
                marker = True
                continue
            infos.append(FileInfo(name=name, is_dir=False, size=size, mod_time=mod_time))
        if not infos and not marker and prefix:
            # Raises NotExistError for a missing directory
            self.stat(path)
        return sorted(infos, key=lambda info: info.name)

    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None:
        key = self._key(path)
        if not key:
            return
        self._put(self._dir_prefix(key), b"")

    def remove_all(self, path: str) -> None:
        key = self._key(path)
        keys = list(self._list_keys(self._dir_prefix(key)))
        if key:
            keys.append(key)
        for i in range(0, len(keys), self.DELETE_BATCH):
            self._delete(keys[i:i + self.DELETE_BATCH])
