import pytest

from media_converter.config import FormatConfig
from media_converter.detection import MediaKind, classify


@pytest.mark.parametrize(
    "name, expected",
    [
        ("IMG_0001.HEIC", MediaKind.IMAGE),
        ("photo.heif", MediaKind.IMAGE),
        ("burst.heics", MediaKind.IMAGE),
        ("still.AVIF", MediaKind.IMAGE),
        ("clip.MOV", MediaKind.VIDEO),
        ("clip.qt", MediaKind.VIDEO),
        ("clip.m4v", MediaKind.VIDEO),
        ("photo.png", MediaKind.UNSUPPORTED),
        ("notes.txt", MediaKind.UNSUPPORTED),
        ("README", MediaKind.UNSUPPORTED),
        ("archive.heic.zip", MediaKind.UNSUPPORTED),
    ],
)
def test_classify(name, expected) -> None:
    assert classify(name) is expected


def test_output_extensions() -> None:
    assert MediaKind.IMAGE.output_extension == "jpg"
    assert MediaKind.VIDEO.output_extension == "mp4"
    assert MediaKind.UNSUPPORTED.output_extension is None
    assert not MediaKind.UNSUPPORTED.convertible


def test_classify_with_custom_formats() -> None:
    formats = FormatConfig(image=(".HEIC",), video=("mkv",))
    assert classify("a.heic", formats) is MediaKind.IMAGE
    assert classify("a.avif", formats) is MediaKind.UNSUPPORTED
    assert classify("a.MKV", formats) is MediaKind.VIDEO


def test_overlapping_formats_are_rejected() -> None:
    with pytest.raises(ValueError):
        FormatConfig(image=("heic", "mov"), video=("mov",))
