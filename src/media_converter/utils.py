from __future__ import annotations

import hashlib
import os
import tempfile
import time
from pathlib import Path


def get_extension(file_name: str) -> str:
    """Lowercase extension without the dot, or ``""`` when there is none."""

    last_dot = file_name.rfind(".")
    if last_dot < 0:
        return ""
    return file_name[last_dot + 1 :].lower()


def replace_extension(file_name: str, extension: str) -> str:
    last_dot = file_name.rfind(".")
    if last_dot < 0:
        return f"{file_name}.{extension}"
    return f"{file_name[:last_dot]}.{extension}"


def join_relative(base_path: str, name: str) -> str:
    return f"{base_path}/{name}" if base_path else name


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent, prefix=".tmp-") as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, data.encode(encoding))
