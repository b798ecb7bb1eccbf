"""Shared test helpers for the speedtracker test suite."""

from __future__ import annotations

import os
import socket
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import yaml

# Importing speedtracker.app must not build an app from apps/server/config.yaml.
os.environ.setdefault("SPEEDTRACKER_DISABLE_AUTO_APP", "1")

from speedtracker.domain_models import RawInput  # noqa: E402
from speedtracker.remote_store import RemoteResponse  # noqa: E402

SCENARIO_COUNTS: dict[str, int] = {"a": 60, "b": 95, "c": 15, "d": 1, "e": 0, "f": 0}


def make_raw(day: date = date(2024, 7, 29), **overrides: Any) -> RawInput:
    """RawInput for the reference day (60/95/15/1/0/0), with field overrides."""
    fields: dict[str, Any] = {
        **SCENARIO_COUNTS,
        "revenue": 16945250,
        "note": "Gorengan goreng baru",
        "qc_count": 5,
        "validated": True,
    }
    fields.update(overrides)
    return RawInput(date=day, **fields)


class FakeStore:
    """Stand-in for RemoteRecordStore: records payloads, replays scripted replies."""

    def __init__(
        self,
        response: RemoteResponse | None = None,
        *,
        error: BaseException | None = None,
        on_post: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.response = response or RemoteResponse(200, '{"status": "success"}')
        self.error = error
        self.on_post = on_post
        self.payloads: list[dict[str, Any]] = []

    def post(self, payload: dict[str, Any]) -> RemoteResponse:
        self.payloads.append(payload)
        if self.on_post is not None:
            self.on_post(payload)
        if self.error is not None:
            raise self.error
        return self.response


def write_config(path: Path, payload: dict) -> Path:
    path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_remote_url_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPEEDTRACKER_REMOTE_URL", raising=False)


@contextmanager
def serve_raw_reply(reply: bytes) -> Iterator[str]:
    """Answer one HTTP request on localhost with *reply* as-is, then hang up."""
    listener = socket.create_server(("127.0.0.1", 0))
    listener.settimeout(5.0)
    port = listener.getsockname()[1]

    def _serve() -> None:
        try:
            conn, _addr = listener.accept()
        except OSError:
            return
        with conn:
            conn.settimeout(5.0)
            received = b""
            while b"\r\n\r\n" not in received:
                chunk = conn.recv(65536)
                if not chunk:
                    return
                received += chunk
            head, _, body = received.partition(b"\r\n\r\n")
            length = 0
            for line in head.split(b"\r\n"):
                name, _, value = line.partition(b":")
                if name.strip().lower() == b"content-length":
                    length = int(value.strip())
            while len(body) < length:
                chunk = conn.recv(65536)
                if not chunk:
                    return
                body += chunk
            conn.sendall(reply)

    thread = threading.Thread(target=_serve, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{port}/exec"
    finally:
        thread.join(timeout=5.0)
        listener.close()
