"""Pydantic request/response models for the SpeedTracker HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field

# Form fields arrive as whatever the client typed; coercion happens in
# ``RawInput.from_form`` so that the permissive-parse rule lives in one place.
FormNumber = int | float | str | None

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SubmitRecordRequest(BaseModel):
    date: str = Field(min_length=1, max_length=32)
    a: FormNumber = None
    b: FormNumber = None
    c: FormNumber = None
    d: FormNumber = None
    e: FormNumber = None
    f: FormNumber = None
    revenue: FormNumber = None
    note: str = Field(default="", max_length=500)
    qcCount: FormNumber = None
    validated: bool | str = False


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RecordPayload(BaseModel):
    date: str
    a: int
    b: int
    c: int
    d: int
    e: int
    f: int
    revenue: int
    note: str
    qcCount: int
    validated: bool
    totalCount: int
    overThresholdCount: int
    overThresholdRatio: float
    averageDuration: str
    weekdayName: str


class RecordsResponse(BaseModel):
    records: list[RecordPayload]


class SubmitRecordResponse(BaseModel):
    status: str
    message: str
    record: RecordPayload


class SyncResultPayload(BaseModel):
    status: str
    message: str
    failure: str | None = None
    record: RecordPayload


class HealthResponse(BaseModel):
    status: str
    sync_phase: str
    in_flight: bool
    record_count: int
    latest_record_date: str | None = None
    last_sync: SyncResultPayload | None = None
