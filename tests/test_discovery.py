from __future__ import annotations

from pathlib import Path

import pytest

from fakes import MemoryDirectory
from media_converter.discovery import collect_tasks
from media_converter.errors import DiscoveryError
from media_converter.handles import LocalDirectoryHandle


def test_collect_tasks_flattens_tree_with_relative_paths(tmp_path: Path) -> None:
    (tmp_path / "2024" / "trip").mkdir(parents=True)
    (tmp_path / "2024" / "trip" / "IMG_0001.HEIC").write_bytes(b"a")
    (tmp_path / "2024" / "clip.mov").write_bytes(b"b")
    (tmp_path / "top.txt").write_bytes(b"c")
    (tmp_path / "empty").mkdir()

    tasks = collect_tasks(LocalDirectoryHandle(tmp_path))

    assert [task.relative_path for task in tasks] == [
        "2024/clip.mov",
        "2024/trip/IMG_0001.HEIC",
        "top.txt",
    ]
    assert all(task.parent is not None for task in tasks)
    assert tasks[1].parent.path == tmp_path / "2024" / "trip"


def test_collect_tasks_uses_base_path_prefix() -> None:
    root = MemoryDirectory("Camera")
    root.add_directory("sub").add_file("a.heic")
    root.add_file("b.mov")

    tasks = collect_tasks(root, "Camera")

    assert [task.relative_path for task in tasks] == ["Camera/b.mov", "Camera/sub/a.heic"]
    assert tasks[1].parent is root.children["sub"]


def test_collect_tasks_failure_aborts_whole_scan() -> None:
    root = MemoryDirectory("root")
    root.add_file("a.heic")
    root.add_directory("broken", fail_entries=True)

    with pytest.raises(DiscoveryError) as exc:
        collect_tasks(root)
    assert exc.value.code == "DISCOVERY_FAILED"


def test_collect_tasks_skips_symlinked_directories(tmp_path: Path) -> None:
    (tmp_path / "real").mkdir()
    (tmp_path / "real" / "a.heic").write_bytes(b"a")
    (tmp_path / "real" / "loop").symlink_to(tmp_path / "real", target_is_directory=True)

    tasks = collect_tasks(LocalDirectoryHandle(tmp_path))

    assert [task.relative_path for task in tasks] == ["real/a.heic"]
