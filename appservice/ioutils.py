"""Small filesystem abstraction with disk, in-memory and read-only variants."""

from __future__ import annotations

import errno
import json
import os
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

__all__ = [
    "Filesystem",
    "OsFilesystem",
    "MemoryFilesystem",
    "ReadOnlyFilesystem",
    "AlreadyExistsError",
    "new_filesystem",
    "new_memory_filesystem",
    "new_read_only_fs",
    "is_existing",
]

PathLike = Union[str, "os.PathLike[str]"]


class Filesystem(ABC):
    """The operations the package needs from a filesystem."""

    @abstractmethod
    def makedirs(self, path: PathLike) -> None:
        """Create a directory and any missing parents."""

    @abstractmethod
    def write_bytes(self, path: PathLike, data: bytes) -> None:
        """Create or replace a file with the given contents."""

    @abstractmethod
    def read_bytes(self, path: PathLike) -> bytes:
        """Return the contents of a file."""

    @abstractmethod
    def is_dir(self, path: PathLike) -> bool:
        """Return True if the path is a directory."""

    @abstractmethod
    def exists(self, path: PathLike) -> bool:
        """Return True if anything exists at the path."""


class OsFilesystem(Filesystem):
    """The local disk."""

    def makedirs(self, path: PathLike) -> None:
        os.makedirs(path, mode=0o755, exist_ok=True)

    def write_bytes(self, path: PathLike, data: bytes) -> None:
        Path(path).write_bytes(data)

    def read_bytes(self, path: PathLike) -> bytes:
        return Path(path).read_bytes()

    def is_dir(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def exists(self, path: PathLike) -> bool:
        return os.path.lexists(path)


class MemoryFilesystem(Filesystem):
    """A filesystem held entirely in memory, rooted at ``/``."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}

    @staticmethod
    def _normalize(path: PathLike) -> str:
        return posixpath.normpath(posixpath.join("/", os.fspath(path)))

    def makedirs(self, path: PathLike) -> None:
        current = "/"
        for part in (p for p in self._normalize(path).split("/") if p):
            current = posixpath.join(current, part)
            if current in self._files:
                raise FileExistsError(errno.EEXIST, "file exists", current)
            self._dirs.add(current)

    def write_bytes(self, path: PathLike, data: bytes) -> None:
        target = self._normalize(path)
        if target in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "is a directory", target)
        if posixpath.dirname(target) not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "no such file or directory", target)
        self._files[target] = bytes(data)

    def read_bytes(self, path: PathLike) -> bytes:
        target = self._normalize(path)
        if target in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "is a directory", target)
        try:
            return self._files[target]
        except KeyError:
            raise FileNotFoundError(
                errno.ENOENT, "file does not exist", target
            ) from None

    def is_dir(self, path: PathLike) -> bool:
        return self._normalize(path) in self._dirs

    def exists(self, path: PathLike) -> bool:
        target = self._normalize(path)
        return target in self._dirs or target in self._files


class ReadOnlyFilesystem(Filesystem):
    """A view of another filesystem that refuses every write."""

    def __init__(self, base: Filesystem | None = None) -> None:
        self.base = base if base is not None else OsFilesystem()

    @staticmethod
    def _refuse(path: PathLike) -> PermissionError:
        return PermissionError(errno.EPERM, "operation not permitted", os.fspath(path))

    def makedirs(self, path: PathLike) -> None:
        raise self._refuse(path)

    def write_bytes(self, path: PathLike, data: bytes) -> None:
        raise self._refuse(path)

    def read_bytes(self, path: PathLike) -> bytes:
        return self.base.read_bytes(path)

    def is_dir(self, path: PathLike) -> bool:
        return self.base.is_dir(path)

    def exists(self, path: PathLike) -> bool:
        return self.base.exists(path)


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


class AlreadyExistsError(Exception):
    """Raised when a file or directory is already present at a path."""

    def __init__(self, path: PathLike, is_dir: bool) -> None:
        self.path = os.fspath(path)
        self.is_dir = is_dir
        kind = "Dir" if is_dir else "File"
        name = json.dumps(_base_name(self.path), ensure_ascii=False)
        super().__init__(f"{name}: {kind} already exists at {self.path}")


def new_filesystem() -> OsFilesystem:
    """Return a filesystem backed by the local disk."""
    return OsFilesystem()


def new_memory_filesystem() -> MemoryFilesystem:
    """Return an empty in-memory filesystem."""
    return MemoryFilesystem()


def new_read_only_fs() -> ReadOnlyFilesystem:
    """Return a read-only view of the local disk."""
    return ReadOnlyFilesystem(OsFilesystem())


def is_existing(fs: Filesystem, path: PathLike) -> bool:
    """Return False if the path is free; raise AlreadyExistsError if it is taken."""
    if not fs.exists(path):
        return False
    raise AlreadyExistsError(path, fs.is_dir(path))