"""In-memory backend

Each host names a separate tree. Trees live for the whole process, so
two handles for mem://scratch see the same files.
"""

import io
import threading
from datetime import datetime
from typing import BinaryIO, Dict, List

from ..errors import IsDirectoryError, NotDirectoryError, NotExistError
from ..util import clean
from .base import DEFAULT_DIR_MODE, DEFAULT_FILE_MODE, MODE_DIR, MODE_FILE, Backend, FileInfo

_stores: Dict[str, "_Node"] = {}
_stores_lock = threading.Lock()
_tree_lock = threading.RLock()


class _Node:
    def __init__(self, is_dir: bool, mode: int):
        self.is_dir = is_dir
        self.mode = mode
        self.data = b""
        self.children: Dict[str, "_Node"] = {}
        self.mod_time = datetime.now()

    def info(self, name: str) -> FileInfo:
        return FileInfo(
            name=name,
            is_dir=self.is_dir,
            size=0 if self.is_dir else len(self.data),
            mod_time=self.mod_time,
            mode=self.mode,
        )


def _store(host: str) -> _Node:
    with _stores_lock:
        root = _stores.get(host)
        if root is None:
            root = _Node(True, DEFAULT_DIR_MODE)
            _stores[host] = root
        return root


def reset_stores() -> None:
    """Drop every in-memory tree"""
    with _stores_lock:
        _stores.clear()


class _Writer(io.BytesIO):
    """Buffer that stores its content into a node when closed"""

    def __init__(self, node: _Node):
        super().__init__()
        self._node = node

    def close(self):
        if not self.closed:
            self._node.data = self.getvalue()
            self._node.mod_time = datetime.now()
        super().close()


class MemoryBackend(Backend):
    """Throwaway files kept in process memory"""

    ephemeral = True

    def __init__(self, host: str = ""):
        super().__init__(host)
        self._root = _store(host)

    @staticmethod
    def _parts(path: str) -> List[str]:
        path = clean(path).lstrip("/")
        if path in ("", "."):
            return []
        return path.split("/")

    def _lookup(self, path: str, op: str = "stat") -> _Node:
        node = self._root
        for part in self._parts(path):
            if part == ".." or not node.is_dir or part not in node.children:
                raise NotExistError(f"{op} {path}: no such file or directory")
            node = node.children[part]
        return node

    def _parent(self, path: str, op: str, create: bool = False) -> _Node:
        parts = self._parts(path)
        if ".." in parts:
            raise NotExistError(f"{op} {path}: no such file or directory")
        node = self._root
        for part in parts[:-1]:
            child = node.children.get(part)
            if child is None:
                if not create:
                    raise NotExistError(f"{op} {path}: no such file or directory")
                child = _Node(True, DEFAULT_DIR_MODE)
                node.children[part] = child
            elif not child.is_dir:
                raise NotDirectoryError(f"{op} {path}: not a directory")
            node = child
        return node

    def open(self, path: str) -> BinaryIO:
        with _tree_lock:
            node = self._lookup(path, "open")
            if node.is_dir:
                raise IsDirectoryError(f"open {path}: is a directory")
            return io.BytesIO(node.data)

    def create(self, path: str, mode: int = DEFAULT_FILE_MODE) -> BinaryIO:
        parts = self._parts(path)
        if not parts:
            raise IsDirectoryError(f"create {path}: is a directory")
        with _tree_lock:
            parent = self._parent(path, "create", create=True)
            node = parent.children.get(parts[-1])
            if node is None:
                node = _Node(False, MODE_FILE | (mode & 0o777))
                parent.children[parts[-1]] = node
            elif node.is_dir:
                raise IsDirectoryError(f"create {path}: is a directory")
            node.data = b""
            return _Writer(node)

    def stat(self, path: str) -> FileInfo:
        with _tree_lock:
            parts = self._parts(path)
            return self._lookup(path).info(parts[-1] if parts else ".")

    def read_dir(self, path: str) -> List[FileInfo]:
        with _tree_lock:
            node = self._lookup(path, "readdir")
            if not node.is_dir:
                raise NotDirectoryError(f"readdir {path}: not a directory")
            return [node.children[name].info(name) for name in sorted(node.children)]

    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None:
        parts = self._parts(path)
        if not parts:
            return
        with _tree_lock:
            parent = self._parent(path, "mkdir", create=True)
            node = parent.children.get(parts[-1])
            if node is None:
                parent.children[parts[-1]] = _Node(True, MODE_DIR | (mode & 0o777))
            elif not node.is_dir:
                raise NotDirectoryError(f"mkdir {path}: not a directory")

    def remove_all(self, path: str) -> None:
        parts = self._parts(path)
        with _tree_lock:
            if not parts:
                self._root.children.clear()
                return
            try:
                parent = self._parent(path, "remove")
            except (NotExistError, NotDirectoryError):
                return
            parent.children.pop(parts[-1], None)
