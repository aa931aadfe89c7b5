from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from .base import AdapterResponse
from ..config import ImageConfig
from ..detection import MediaKind
from ..errors import CodecError


class HEICImageAdapter:
    """Decode HEIC/HEIF/AVIF stills with Pillow and re-encode them as JPEG."""

    media_kind = MediaKind.IMAGE

    def __init__(self, config: ImageConfig | None = None) -> None:
        self._config = config or ImageConfig()
        self._ready = False

    def ensure_initialized(self) -> None:
        if self._ready:
            return
        try:
            from pillow_heif import register_heif_opener
        except ModuleNotFoundError as exc:  # pragma: no cover - import guard
            raise CodecError(
                "pillow-heif is required to decode HEIC images", code="DEPENDENCY_MISSING"
            ) from exc
        register_heif_opener()
        self._ready = True

    def convert(self, data: bytes, source_name: str = "") -> AdapterResponse:
        self.ensure_initialized()
        warnings: list[str] = []
        try:
            with Image.open(BytesIO(data)) as image:
                if getattr(image, "n_frames", 1) > 1:
                    warnings.append("MULTI_FRAME_SOURCE")
                    image.seek(0)
                rgb = image.convert("RGB")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            label = source_name or "image"
            raise CodecError(f"Unable to decode {label}: {exc}") from exc

        buffer = BytesIO()
        rgb.save(buffer, format="JPEG", quality=self._config.jpeg_quality)
        return AdapterResponse(payload=buffer.getvalue(), mime_type="image/jpeg", warnings=warnings)

    def close(self) -> None:
        pass
