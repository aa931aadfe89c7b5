from __future__ import annotations

import shutil
import subprocess
import tempfile
import uuid
from pathlib import Path
from typing import Callable, Sequence, cast

from .base import AdapterResponse, normalize_payload
from ..config import VideoConfig
from ..detection import MediaKind
from ..errors import CodecError
from ..utils import get_extension

CommandRunner = Callable[[Sequence[str], float], subprocess.CompletedProcess]


def run_command(args: Sequence[str], timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(list(args), capture_output=True, timeout=timeout, check=False)


class FFmpegVideoAdapter:
    """Remux/transcode device video containers into fast-start MP4.

    The adapter owns one scratch directory. Every call writes a uniquely named
    input file there, runs ffmpeg, reads the output back and removes both
    files, whether or not ffmpeg succeeded.
    """

    media_kind = MediaKind.VIDEO

    def __init__(self, config: VideoConfig | None = None, runner: CommandRunner | None = None) -> None:
        self._config = config or VideoConfig()
        self._runner = runner or run_command
        self._binary: str | None = None
        self._workdir: Path | None = None

    @property
    def initialized(self) -> bool:
        return self._binary is not None and self._workdir is not None

    @property
    def workdir(self) -> Path | None:
        return self._workdir

    def ensure_initialized(self) -> None:
        if self.initialized:
            return
        binary = self._config.ffmpeg_path or shutil.which("ffmpeg")
        if not binary:
            raise CodecError("ffmpeg executable not found", code="FFMPEG_NOT_FOUND")
        try:
            probe = self._runner([binary, "-hide_banner", "-version"], 30)
        except (OSError, subprocess.SubprocessError) as exc:
            raise CodecError(f"Failed to start ffmpeg: {exc}", code="FFMPEG_NOT_FOUND") from exc
        if probe.returncode != 0:
            raise CodecError("ffmpeg version probe failed", code="FFMPEG_NOT_FOUND")
        self._workdir = Path(tempfile.mkdtemp(prefix="media-converter-"))
        self._binary = binary

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self._binary or "ffmpeg",
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-i",
            str(input_path),
            *self._config.extra_args,
            "-movflags",
            "faststart",
            str(output_path),
        ]

    def convert(self, data: bytes, source_name: str = "") -> AdapterResponse:
        self.ensure_initialized()
        workdir = cast(Path, self._workdir)
        suffix = get_extension(source_name) or "mov"
        input_path = workdir / f"input-{uuid.uuid4().hex}.{suffix}"
        output_path = workdir / f"output-{uuid.uuid4().hex}.mp4"
        try:
            input_path.write_bytes(data)
            try:
                completed = self._runner(self.build_command(input_path, output_path), self._config.timeout_s)
            except subprocess.TimeoutExpired as exc:
                raise CodecError(f"ffmpeg timed out after {exc.timeout}s", code="TIMEOUT") from exc
            except (OSError, subprocess.SubprocessError) as exc:
                raise CodecError(f"Failed to run ffmpeg: {exc}") from exc
            if completed.returncode != 0:
                raise CodecError(f"ffmpeg exited with {completed.returncode}: {_tail(completed.stderr)}")
            if not output_path.exists():
                raise CodecError("ffmpeg produced no output")
            payload = normalize_payload(output_path.read_bytes())
        finally:
            input_path.unlink(missing_ok=True)
            output_path.unlink(missing_ok=True)
        return AdapterResponse(payload=payload, mime_type="video/mp4")

    def close(self) -> None:
        if self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
        self._workdir = None
        self._binary = None


def _tail(stderr: bytes | str | None, limit: int = 400) -> str:
    if not stderr:
        return "no error output"
    text = stderr.decode("utf-8", errors="replace") if isinstance(stderr, bytes) else stderr
    return text.strip()[-limit:]
