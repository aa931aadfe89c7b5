"""Turn folder picks, file picks and drops into task selections."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .discovery import collect_tasks
from .errors import CapabilityUnsupportedError, PermissionDeniedError
from .handles import HandleProvider, ensure_read_write_permission
from .models import ConversionTask, Selection, SelectionOrigin


def _require_writable_handles(provider: HandleProvider, message: str) -> None:
    if not provider.supports_writable_handles:
        raise CapabilityUnsupportedError(message)


def select_folder(provider: HandleProvider, location: str | Path) -> Selection:
    _require_writable_handles(provider, "Writable folder access is not supported here.")
    handle = provider.resolve(location)
    if handle is None or handle.kind != "directory":
        raise FileNotFoundError(f"Not a folder: {location}")
    if not ensure_read_write_permission(handle):
        raise PermissionDeniedError("Folder access denied.")
    return Selection(tasks=collect_tasks(handle), origin=SelectionOrigin.FOLDER)


def select_files(provider: HandleProvider, locations: Sequence[str | Path]) -> Selection:
    _require_writable_handles(provider, "Writable file access is not supported here.")
    tasks: list[ConversionTask] = []
    for location in locations:
        handle = provider.resolve(location)
        if handle is None or handle.kind != "file":
            raise FileNotFoundError(f"Not a file: {location}")
        tasks.append(ConversionTask(source=handle, relative_path=handle.name))
    return Selection(tasks=tasks, origin=SelectionOrigin.FILES)


def drop_entries(provider: HandleProvider, locations: Sequence[str | Path]) -> Selection:
    """Expand dropped folders and collect dropped files.

    Folders are rooted at their own name; loose files carry no parent
    container and are therefore overwritten in place when converted.
    """

    _require_writable_handles(
        provider, "Drag-and-drop overwrite needs a platform that yields writable handles."
    )
    tasks: list[ConversionTask] = []
    for location in locations:
        handle = provider.resolve(location)
        if handle is None:
            continue
        if handle.kind == "directory":
            tasks.extend(collect_tasks(handle, handle.name))
            continue
        tasks.append(ConversionTask(source=handle, relative_path=handle.name))
    if not tasks:
        raise CapabilityUnsupportedError(
            "No writable folders found in drop. Use folder selection for in-place replacement."
        )
    return Selection(tasks=tasks, origin=SelectionOrigin.DROP)


__all__ = ["drop_entries", "select_files", "select_folder"]
