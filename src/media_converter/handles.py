"""File-handle collaborators.

The engine never touches paths directly: it reads, writes and removes entries
through these handles so that the same orchestration runs against a local
folder, an in-memory tree in tests, or any other backend that can answer the
permission questions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Literal, Protocol, Union

from .utils import atomic_write_bytes

PermissionMode = Literal["read", "readwrite"]


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


class FileHandle(Protocol):
    name: str
    kind: Literal["file"]

    def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:  # pragma: no cover - interface
        ...

    def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:  # pragma: no cover - interface
        ...

    def size(self) -> int:  # pragma: no cover - interface
        ...

    def read_bytes(self) -> bytes:  # pragma: no cover - interface
        ...

    def write_bytes(self, data: bytes) -> None:  # pragma: no cover - interface
        ...


class DirectoryHandle(Protocol):
    name: str
    kind: Literal["directory"]

    def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:  # pragma: no cover - interface
        ...

    def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:  # pragma: no cover - interface
        ...

    def entries(self) -> Iterator[tuple[str, "Handle"]]:  # pragma: no cover - interface
        ...

    def get_file_handle(self, name: str, *, create: bool = False) -> FileHandle:  # pragma: no cover - interface
        ...

    def remove_entry(self, name: str) -> None:  # pragma: no cover - interface
        ...


Handle = Union[FileHandle, DirectoryHandle]


def ensure_read_write_permission(handle: Handle) -> bool:
    if handle.query_permission("readwrite") is PermissionState.GRANTED:
        return True
    return handle.request_permission("readwrite") is PermissionState.GRANTED


def _access_state(path: Path, mode: PermissionMode) -> PermissionState:
    flags = os.R_OK if mode == "read" else os.R_OK | os.W_OK
    if path.is_dir():
        flags |= os.X_OK
    return PermissionState.GRANTED if os.access(path, flags) else PermissionState.DENIED


@dataclass(slots=True)
class LocalFileHandle:
    path: Path
    kind: Literal["file"] = "file"

    @property
    def name(self) -> str:
        return self.path.name

    def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        return _access_state(self.path, mode)

    def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        # nothing to prompt for locally
        return _access_state(self.path, mode)

    def size(self) -> int:
        return self.path.stat().st_size

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def write_bytes(self, data: bytes) -> None:
        atomic_write_bytes(self.path, data)


@dataclass(slots=True)
class LocalDirectoryHandle:
    path: Path
    kind: Literal["directory"] = "directory"

    @property
    def name(self) -> str:
        return self.path.name

    def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        return _access_state(self.path, mode)

    def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        return _access_state(self.path, mode)

    def entries(self) -> Iterator[tuple[str, Handle]]:
        for child in sorted(self.path.iterdir(), key=lambda p: p.name):
            if child.is_dir() and not child.is_symlink():
                yield child.name, LocalDirectoryHandle(child)
            elif child.is_file():
                yield child.name, LocalFileHandle(child)

    def get_file_handle(self, name: str, *, create: bool = False) -> LocalFileHandle:
        # a created entry only appears on disk once it has been written
        target = self.path / name
        if not target.exists():
            if not create:
                raise FileNotFoundError(target)
        elif not target.is_file():
            raise IsADirectoryError(target)
        return LocalFileHandle(target)

    def remove_entry(self, name: str) -> None:
        (self.path / name).unlink()


class HandleProvider(Protocol):
    supports_writable_handles: bool

    def resolve(self, location: str | Path) -> Handle | None:  # pragma: no cover - interface
        ...


class LocalHandleProvider:
    """Resolves local filesystem paths into handles."""

    supports_writable_handles = True

    def resolve(self, location: str | Path) -> Handle | None:
        path = Path(location).expanduser()
        if path.is_dir():
            return LocalDirectoryHandle(path)
        if path.is_file():
            return LocalFileHandle(path)
        return None


__all__ = [
    "DirectoryHandle",
    "FileHandle",
    "Handle",
    "HandleProvider",
    "LocalDirectoryHandle",
    "LocalFileHandle",
    "LocalHandleProvider",
    "PermissionState",
    "ensure_read_write_permission",
]
