"""Local disk backend"""

import os
import shutil
import stat as stat_mod
from datetime import datetime
from typing import BinaryIO, List

from .base import (
    DEFAULT_DIR_MODE,
    DEFAULT_FILE_MODE,
    Backend,
    FileInfo,
    base_name,
    translate_os_errors,
)


class LocalBackend(Backend):
    """Files on local disk, rooted at host (a directory path)"""

    def __init__(self, host: str = "."):
        super().__init__(host or ".")

    def _os_path(self, path: str) -> str:
        if path in ("", "."):
            return self.host
        return os.path.join(self.host, *path.split("/"))

    @staticmethod
    def _info(name: str, st: os.stat_result) -> FileInfo:
        return FileInfo(
            name=name,
            is_dir=stat_mod.S_ISDIR(st.st_mode),
            size=st.st_size,
            mod_time=datetime.fromtimestamp(st.st_mtime),
            mode=st.st_mode,
        )

    def open(self, path: str) -> BinaryIO:
        with translate_os_errors("open", path):
            return open(self._os_path(path), "rb")

    def create(self, path: str, mode: int = DEFAULT_FILE_MODE) -> BinaryIO:
        os_path = self._os_path(path)
        with translate_os_errors("create", path):
            parent = os.path.dirname(os_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            fd = os.open(os_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode & 0o777)
            return os.fdopen(fd, "wb")

    def stat(self, path: str) -> FileInfo:
        with translate_os_errors("stat", path):
            return self._info(base_name(path), os.stat(self._os_path(path)))

    def read_dir(self, path: str) -> List[FileInfo]:
        with translate_os_errors("readdir", path):
            with os.scandir(self._os_path(path)) as it:
                infos = [self._info(entry.name, self._entry_stat(entry)) for entry in it]
        return sorted(infos, key=lambda info: info.name)

    @staticmethod
    def _entry_stat(entry: os.DirEntry) -> os.stat_result:
        try:
            return entry.stat()
        except FileNotFoundError:
            # Dangling symlink
            return entry.stat(follow_symlinks=False)

    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None:
        with translate_os_errors("mkdir", path):
            os.makedirs(self._os_path(path), mode & 0o777, exist_ok=True)

    def remove_all(self, path: str) -> None:
        os_path = self._os_path(path)
        if not os.path.lexists(os_path):
            return
        with translate_os_errors("remove", path):
            if os.path.isdir(os_path) and not os.path.islink(os_path):
                shutil.rmtree(os_path)
            else:
                os.remove(os_path)
