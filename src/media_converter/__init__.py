"""Batch, in-place conversion of device media into broadly compatible formats."""

from .config import AppConfig, load_config
from .core import ConversionEngine
from .detection import MediaKind, classify
from .models import BatchResult, BatchState, ConversionTask, TaskOutcome

__all__ = [
    "AppConfig",
    "BatchResult",
    "BatchState",
    "ConversionEngine",
    "ConversionTask",
    "MediaKind",
    "TaskOutcome",
    "classify",
    "load_config",
]
