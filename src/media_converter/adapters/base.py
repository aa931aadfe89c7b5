from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from ..detection import MediaKind


@dataclass(slots=True)
class AdapterResponse:
    payload: bytes
    mime_type: str
    warnings: list[str] = field(default_factory=list)


class CodecAdapter(Protocol):
    media_kind: MediaKind

    def ensure_initialized(self) -> None:  # pragma: no cover - interface
        ...

    def convert(self, data: bytes, source_name: str = "") -> AdapterResponse:  # pragma: no cover - interface
        ...

    def close(self) -> None:  # pragma: no cover - interface
        ...


def normalize_payload(raw: bytes | bytearray | memoryview | str) -> bytes:
    """Copy adapter output into an exact-length ``bytes`` object."""

    if isinstance(raw, str):
        return raw.encode("utf-8")
    return bytes(memoryview(raw).cast("B"))
