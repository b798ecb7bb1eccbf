"""Record endpoints – history listing and the submit cycle."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException

from ..api_models import RecordsResponse, SubmitRecordRequest, SubmitRecordResponse
from ..domain_models import RawInput

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_record_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.get("/api/records", response_model=RecordsResponse)
    async def list_records() -> RecordsResponse:
        return {"records": [record.to_payload() for record in state.history.snapshot()]}

    @router.post("/api/records", response_model=SubmitRecordResponse)
    async def submit_record(req: SubmitRecordRequest) -> SubmitRecordResponse:
        if state.coordinator.in_flight:
            raise HTTPException(status_code=409, detail="A submission is already in progress")
        try:
            raw = RawInput.from_form(req.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        result = await state.coordinator.submit(raw)
        if not result.ok:
            raise HTTPException(status_code=502, detail=result.message)
        return {
            "status": "success",
            "message": result.message,
            "record": result.record.to_payload(),
        }

    return router
