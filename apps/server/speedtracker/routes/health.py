"""Health check endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from ..api_models import HealthResponse

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_health_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        latest = state.history.latest()
        last_result = state.coordinator.last_result
        return {
            "status": "ok",
            "sync_phase": str(state.coordinator.phase),
            "in_flight": state.coordinator.in_flight,
            "record_count": len(state.history),
            "latest_record_date": latest.date.isoformat() if latest is not None else None,
            "last_sync": last_result.to_dict() if last_result is not None else None,
        }

    return router
