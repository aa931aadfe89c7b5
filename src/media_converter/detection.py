from __future__ import annotations

from enum import Enum

from .config import FormatConfig
from .utils import get_extension


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"

    @property
    def output_extension(self) -> str | None:
        return OUTPUT_EXTENSIONS.get(self)

    @property
    def convertible(self) -> bool:
        return self is not MediaKind.UNSUPPORTED


OUTPUT_EXTENSIONS: dict[MediaKind, str] = {
    MediaKind.IMAGE: "jpg",
    MediaKind.VIDEO: "mp4",
}

_DEFAULT_FORMATS = FormatConfig()


def classify(file_name: str, formats: FormatConfig | None = None) -> MediaKind:
    formats = formats or _DEFAULT_FORMATS
    extension = get_extension(file_name)
    if not extension:
        return MediaKind.UNSUPPORTED
    if extension in formats.image:
        return MediaKind.IMAGE
    if extension in formats.video:
        return MediaKind.VIDEO
    return MediaKind.UNSUPPORTED
