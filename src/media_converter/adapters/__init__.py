from __future__ import annotations

from typing import Callable, Dict

from .base import AdapterResponse, CodecAdapter, normalize_payload
from .image import HEICImageAdapter
from .video import FFmpegVideoAdapter
from ..config import AppConfig
from ..detection import MediaKind

AdapterFactory = Callable[[AppConfig], CodecAdapter]

_ADAPTER_FACTORIES: Dict[MediaKind, AdapterFactory] = {
    MediaKind.IMAGE: lambda config: HEICImageAdapter(config.image),
    MediaKind.VIDEO: lambda config: FFmpegVideoAdapter(config.video),
}


def create_adapter(kind: MediaKind, config: AppConfig) -> CodecAdapter:
    factory = _ADAPTER_FACTORIES.get(kind)
    if not factory:
        raise KeyError(f"No adapter registered for {kind}")
    return factory(config)


__all__ = [
    "AdapterResponse",
    "CodecAdapter",
    "FFmpegVideoAdapter",
    "HEICImageAdapter",
    "create_adapter",
    "normalize_payload",
]
