from __future__ import annotations

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fakes import fake_adapters
from media_converter.api import create_app
from media_converter.config import AppConfig, RuntimeConfig
from media_converter.core import ConversionEngine


def build_client(tmp_path: Path) -> TestClient:
    config = AppConfig(runtime=RuntimeConfig(output_dir=tmp_path / "runs", enable_local_api=True))
    engine = ConversionEngine(config, adapters=fake_adapters())
    return TestClient(create_app(engine=engine))


def wait_for_phase(client: TestClient, phase: str) -> dict:
    for _ in range(200):
        payload = client.get("/status").json()
        if payload["phase"] == phase:
            return payload
        time.sleep(0.02)
    raise AssertionError(f"Batch did not reach {phase}")


def test_disabled_api_refuses_to_start(tmp_path: Path) -> None:
    engine = ConversionEngine(AppConfig(runtime=RuntimeConfig(output_dir=tmp_path)))
    with pytest.raises(RuntimeError):
        create_app(engine=engine)


def test_health(tmp_path: Path) -> None:
    client = build_client(tmp_path)
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/status").json()["phase"] == "idle"


def test_scan_and_convert_folder(tmp_path: Path) -> None:
    album = tmp_path / "album"
    album.mkdir()
    (album / "photo.heic").write_bytes(b"pixels")
    (album / "notes.txt").write_text("hi", encoding="utf-8")
    client = build_client(tmp_path)

    loaded = client.post("/scan", json={"path": str(album)})
    assert loaded.status_code == 200
    assert loaded.json()["phase"] == "ready"
    assert loaded.json()["total_convertible"] == 1

    started = client.post("/convert")
    assert started.status_code == 202

    done = wait_for_phase(client, "completed")
    assert (done["converted"], done["skipped"], done["failed"]) == (1, 1, 0)
    assert done["summary"] == "Done. Converted 1, skipped 1, failed 0."
    assert (album / "photo.jpg").read_bytes() == b"JPEG:pixels"
    assert not (album / "photo.heic").exists()


def test_files_are_overwritten_in_place(tmp_path: Path) -> None:
    clip = tmp_path / "clip.mov"
    clip.write_bytes(b"frames")
    client = build_client(tmp_path)

    loaded = client.post("/files", json={"paths": [str(clip)]})
    assert loaded.json()["summary"] == "Loaded 1 file(s)."
    client.post("/convert")
    wait_for_phase(client, "completed")

    assert clip.read_bytes() == b"MP4:frames"


def test_error_codes(tmp_path: Path) -> None:
    client = build_client(tmp_path)
    missing = client.post("/scan", json={"path": str(tmp_path / "missing")})
    assert missing.status_code == 404
    empty_drop = client.post("/drop", json={"paths": [str(tmp_path / "missing")]})
    assert empty_drop.status_code == 400
    assert empty_drop.json()["detail"] == "CAPABILITY_UNSUPPORTED"
    nothing = client.post("/convert")
    assert nothing.status_code == 409
    assert nothing.json()["detail"] == "NOTHING_LOADED"


def test_shutdown_closes_adapters(tmp_path: Path) -> None:
    adapters = fake_adapters()
    config = AppConfig(runtime=RuntimeConfig(output_dir=tmp_path / "runs", enable_local_api=True))
    engine = ConversionEngine(config, adapters=adapters)

    with TestClient(create_app(engine=engine)) as client:
        assert client.get("/health").status_code == 200
        assert not any(adapter.closed for adapter in adapters.values())

    assert all(adapter.closed for adapter in adapters.values())
