"""Error taxonomy shared by selection, discovery and the codec adapters."""

from __future__ import annotations


class ConversionError(RuntimeError):
    code = "CONVERSION_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class CapabilityUnsupportedError(ConversionError):
    """The platform cannot provide the handles an operation needs."""

    code = "CAPABILITY_UNSUPPORTED"


class PermissionDeniedError(ConversionError):
    code = "PERMISSION_DENIED"


class CodecError(ConversionError):
    """Raised by a codec adapter for a single item."""

    code = "CODEC_FAILURE"


class DiscoveryError(ConversionError):
    code = "DISCOVERY_FAILED"


class BatchInProgressError(ConversionError):
    code = "BATCH_RUNNING"


__all__ = [
    "BatchInProgressError",
    "CapabilityUnsupportedError",
    "CodecError",
    "ConversionError",
    "DiscoveryError",
    "PermissionDeniedError",
]
