from __future__ import annotations

import pytest

from fakes import MemoryDirectory, MemoryFile, MemoryProvider
from media_converter.errors import CapabilityUnsupportedError, PermissionDeniedError
from media_converter.handles import PermissionState
from media_converter.models import SelectionOrigin
from media_converter.selection import drop_entries, select_files, select_folder


def test_select_folder_discovers_from_root() -> None:
    root = MemoryDirectory("Photos")
    root.add_directory("2023").add_file("a.heic")
    provider = MemoryProvider({"/photos": root})

    selection = select_folder(provider, "/photos")

    assert selection.origin is SelectionOrigin.FOLDER
    assert [task.relative_path for task in selection.tasks] == ["2023/a.heic"]


def test_select_folder_requests_permission() -> None:
    root = MemoryDirectory("Photos", permission=PermissionState.PROMPT)
    root.add_file("a.heic")

    selection = select_folder(MemoryProvider({"/photos": root}), "/photos")

    assert root.permission_requests == 1
    assert len(selection.tasks) == 1


def test_select_folder_denied() -> None:
    root = MemoryDirectory("Photos", permission=PermissionState.PROMPT, grant_on_request=False)
    with pytest.raises(PermissionDeniedError):
        select_folder(MemoryProvider({"/photos": root}), "/photos")


def test_select_folder_rejects_files() -> None:
    provider = MemoryProvider({"/a.heic": MemoryFile("a.heic")})
    with pytest.raises(FileNotFoundError):
        select_folder(provider, "/a.heic")


def test_select_files_have_no_container() -> None:
    provider = MemoryProvider({"/x/a.heic": MemoryFile("a.heic"), "/y/b.mov": MemoryFile("b.mov")})

    selection = select_files(provider, ["/x/a.heic", "/y/b.mov"])

    assert selection.origin is SelectionOrigin.FILES
    assert [task.relative_path for task in selection.tasks] == ["a.heic", "b.mov"]
    assert all(task.parent is None for task in selection.tasks)


def test_drop_expands_folders_under_their_own_name() -> None:
    folder = MemoryDirectory("Trip")
    folder.add_file("a.heic")
    loose = MemoryFile("b.mov")
    provider = MemoryProvider({"/trip": folder, "/b.mov": loose})

    selection = drop_entries(provider, ["/trip", "/missing", "/b.mov"])

    assert selection.origin is SelectionOrigin.DROP
    assert [task.relative_path for task in selection.tasks] == ["Trip/a.heic", "b.mov"]
    assert selection.tasks[0].parent is folder
    assert selection.tasks[1].parent is None


def test_drop_with_nothing_usable_is_rejected() -> None:
    with pytest.raises(CapabilityUnsupportedError):
        drop_entries(MemoryProvider(), ["/missing"])


@pytest.mark.parametrize(
    "operation, argument",
    [
        (select_folder, "/photos"),
        (select_files, ["/photos/a.heic"]),
        (drop_entries, ["/photos"]),
    ],
)
def test_providers_without_writable_handles_are_rejected(operation, argument) -> None:
    root = MemoryDirectory("photos")
    provider = MemoryProvider({"/photos": root}, supports_writable_handles=False)
    with pytest.raises(CapabilityUnsupportedError) as exc:
        operation(provider, argument)
    assert exc.value.code == "CAPABILITY_UNSUPPORTED"
    assert root.permission_queries == 0
