from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping


CONFIG_FILE = Path("config.toml")
CONFIG_PATH_ENV = "MCV_CONFIG_PATH"
ENABLE_API_ENV = "MCV_ENABLE_LOCAL_API"

DEFAULT_IMAGE_EXTENSIONS: tuple[str, ...] = ("heic", "heif", "heics", "avif")
DEFAULT_VIDEO_EXTENSIONS: tuple[str, ...] = ("mov", "qt", "m4v")


@dataclass(slots=True)
class RuntimeConfig:
    output_dir: Path = Path("runs")
    log_file: str = "log.jsonl"
    summary_csv: str = "summary.csv"
    max_file_size_mb: int = 2048
    enable_local_api: bool = False


@dataclass(slots=True)
class FormatConfig:
    image: tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS
    video: tuple[str, ...] = DEFAULT_VIDEO_EXTENSIONS

    def __post_init__(self) -> None:
        self.image = tuple(ext.lower().lstrip(".") for ext in self.image)
        self.video = tuple(ext.lower().lstrip(".") for ext in self.video)
        overlap = set(self.image) & set(self.video)
        if overlap:
            raise ValueError(f"Image and video extensions overlap: {sorted(overlap)}")


@dataclass(slots=True)
class ImageConfig:
    quality: float = 0.9

    @property
    def jpeg_quality(self) -> int:
        return max(1, min(95, round(self.quality * 100)))


@dataclass(slots=True)
class VideoConfig:
    ffmpeg_path: str = ""
    timeout_s: int = 3600
    extra_args: tuple[str, ...] = ()


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    formats: FormatConfig = field(default_factory=FormatConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported list configuration: {value!r}")


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    data = raw.get(name)
    return data if isinstance(data, Mapping) else None


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        output_dir=Path(str(data.get("output_dir", "runs"))),
        log_file=str(data.get("log_file", "log.jsonl")),
        summary_csv=str(data.get("summary_csv", "summary.csv")),
        max_file_size_mb=int(data.get("max_file_size_mb", 2048)),
        enable_local_api=bool(data.get("enable_local_api", False)),
    )


def _build_formats(data: Mapping[str, object] | None) -> FormatConfig:
    if not data:
        return FormatConfig()
    return FormatConfig(
        image=_tuple_of_strings(data.get("image"), DEFAULT_IMAGE_EXTENSIONS),
        video=_tuple_of_strings(data.get("video"), DEFAULT_VIDEO_EXTENSIONS),
    )


def _build_image(data: Mapping[str, object] | None) -> ImageConfig:
    if not data:
        return ImageConfig()
    return ImageConfig(quality=float(data.get("quality", 0.9)))


def _build_video(data: Mapping[str, object] | None) -> VideoConfig:
    if not data:
        return VideoConfig()
    return VideoConfig(
        ffmpeg_path=str(data.get("ffmpeg_path", "")),
        timeout_s=int(data.get("timeout_s", 3600)),
        extra_args=_tuple_of_strings(data.get("extra_args"), ()),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def _env_flag(name: str) -> bool | None:
    value = os.getenv(name)
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


def load_config(path: Path | None = None) -> AppConfig:
    """Load ``config.toml``.

    Without an explicit path, $MCV_CONFIG_PATH is used when set.
    $MCV_ENABLE_LOCAL_API overrides ``runtime.enable_local_api`` either way.
    """

    env_path = os.getenv(CONFIG_PATH_ENV)
    path = path or (Path(env_path) if env_path else CONFIG_FILE)
    raw = _read_toml(path)
    config = AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        formats=_build_formats(_section(raw, "formats")),
        image=_build_image(_section(raw, "image")),
        video=_build_video(_section(raw, "video")),
        api=_build_api(_section(raw, "api")),
    )
    enable_api = _env_flag(ENABLE_API_ENV)
    if enable_api is not None:
        config.runtime.enable_local_api = enable_api
    return config


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "output_dir": str(config.runtime.output_dir),
            "log_file": config.runtime.log_file,
            "summary_csv": config.runtime.summary_csv,
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "enable_local_api": config.runtime.enable_local_api,
        },
        "formats": {
            "image": list(config.formats.image),
            "video": list(config.formats.video),
        },
        "image": {"quality": config.image.quality},
        "video": {
            "ffmpeg_path": config.video.ffmpeg_path,
            "timeout_s": config.video.timeout_s,
            "extra_args": list(config.video.extra_args),
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)
