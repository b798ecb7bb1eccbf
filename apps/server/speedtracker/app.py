"""Runtime wiring for config -> history -> sync coordinator -> HTTP API.

Boundary note for maintainers:
- Keep this module focused on wiring, not record math.
- Metric math belongs in `metrics.py`; the submit cycle in `sync.py`.
- API schemas belong in `api_models.py`.
"""

from __future__ import annotations

import argparse
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .history import RecordHistory, load_seed_records
from .metrics import MetricsDeriver
from .remote_store import RemoteRecordStore
from .routes import create_router
from .sync import SyncCoordinator

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeState:
    config: AppConfig
    history: RecordHistory
    coordinator: SyncCoordinator


def build_runtime(config: AppConfig) -> RuntimeState:
    history = RecordHistory(
        load_seed_records(config.history.seed_path, language=config.locale.language)
    )
    store = RemoteRecordStore(config.remote.url, timeout_s=config.remote.timeout_s)
    coordinator = SyncCoordinator(
        store,
        history,
        deriver=MetricsDeriver(config.locale.language),
        field_style=config.remote.field_style,
    )
    return RuntimeState(config=config, history=history, coordinator=coordinator)


def create_app(config_path: Path | None = None) -> FastAPI:
    config = load_config(config_path)
    runtime = build_runtime(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        LOGGER.info(
            "SpeedTracker ready with %d record(s) in history; remote=%s",
            len(runtime.history),
            config.remote.url or "<unset>",
        )
        try:
            yield
        finally:
            if runtime.coordinator.in_flight:
                LOGGER.warning("Shutting down while a submission is still in flight")

    app = FastAPI(title="SpeedTracker", lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


app: FastAPI | None = (
    create_app()
    if __name__ != "__main__" and os.getenv("SPEEDTRACKER_DISABLE_AUTO_APP", "0") != "1"
    else None
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run SpeedTracker server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    level = runtime.config.logging.level
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        runtime_app,
        host=runtime.config.server.host,
        port=runtime.config.server.port,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
