from __future__ import annotations

from .errors import DiscoveryError
from .handles import DirectoryHandle
from .models import ConversionTask
from .utils import join_relative


def collect_tasks(directory: DirectoryHandle, base_path: str = "") -> list[ConversionTask]:
    """Recursively list every file under ``directory`` as a conversion task.

    Relative paths are the entry ancestry joined by ``/`` and prefixed with
    ``base_path``. Directories are descended into but never emitted. Any
    failure while walking aborts the whole scan with :class:`DiscoveryError`.
    """

    try:
        return _collect(directory, base_path)
    except DiscoveryError:
        raise
    except OSError as exc:
        raise DiscoveryError(f"Unable to scan {base_path or directory.name}: {exc}") from exc


def _collect(directory: DirectoryHandle, base_path: str) -> list[ConversionTask]:
    items: list[ConversionTask] = []
    for entry_name, handle in directory.entries():
        next_path = join_relative(base_path, entry_name)
        if handle.kind == "file":
            items.append(ConversionTask(source=handle, relative_path=next_path, parent=directory))
            continue
        items.extend(_collect(handle, next_path))
    return items


__all__ = ["collect_tasks"]
