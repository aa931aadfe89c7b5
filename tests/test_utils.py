from pathlib import Path

import pytest

from media_converter.utils import (
    atomic_write_bytes,
    generate_run_id,
    get_extension,
    join_relative,
    replace_extension,
)


def test_get_extension() -> None:
    assert get_extension("photo.HEIC") == "heic"
    assert get_extension("archive.tar.GZ") == "gz"
    assert get_extension("README") == ""
    assert get_extension("trailing.") == ""


def test_replace_extension() -> None:
    assert replace_extension("photo.HEIC", "jpg") == "photo.jpg"
    assert replace_extension("clip.MOV", "mp4") == "clip.mp4"
    assert replace_extension("my.trip.mov", "mp4") == "my.trip.mp4"
    assert replace_extension("README", "jpg") == "README.jpg"


def test_join_relative() -> None:
    assert join_relative("", "a.heic") == "a.heic"
    assert join_relative("a/b", "c.heic") == "a/b/c.heic"


def test_generate_run_id_unique() -> None:
    first = generate_run_id("test")
    second = generate_run_id("test")
    assert first != second
    assert first.startswith("test-")


def test_atomic_write_bytes_removes_temp_file_on_failure(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "photo.jpg"

    def broken_fsync(fd: int) -> None:
        raise OSError("no space left on device")

    monkeypatch.setattr("media_converter.utils.os.fsync", broken_fsync)

    with pytest.raises(OSError):
        atomic_write_bytes(target, b"JPEG")

    assert list(tmp_path.iterdir()) == []


def test_atomic_write_bytes_replaces_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "clip.mov"
    target.write_bytes(b"old")
    atomic_write_bytes(target, b"MP4")
    assert target.read_bytes() == b"MP4"
    assert [path.name for path in tmp_path.iterdir()] == ["clip.mov"]
