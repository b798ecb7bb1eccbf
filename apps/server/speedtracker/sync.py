"""Submission cycle: derive a record, send it once, commit it on acknowledgement.

A cycle moves through ``idle -> deriving -> sending -> idle``.  The record only
enters the history after the remote store acknowledged it; any failure leaves
the history exactly as it was, so the caller can keep the form filled in and
let the operator retry.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any

from .domain_models import DerivedRecord, RawInput, validate_field_style
from .history import RecordHistory
from .metrics import MetricsDeriver
from .remote_store import (
    FailureKind,
    RemoteOutcome,
    RemoteRecordStore,
    RemoteTransportError,
    interpret_response,
    transport_failure,
)

LOGGER = logging.getLogger(__name__)


class SyncPhase(enum.StrEnum):
    idle = "idle"
    deriving = "deriving"
    sending = "sending"


class SyncStatus(enum.StrEnum):
    committed = "committed"
    failed = "failed"


@dataclass(frozen=True, slots=True)
class SyncResult:
    status: SyncStatus
    record: DerivedRecord
    message: str
    failure: FailureKind | None = None

    @property
    def ok(self) -> bool:
        return self.status is SyncStatus.committed

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "failure": self.failure.value if self.failure else None,
            "record": self.record.to_payload(),
        }


class SyncCoordinator:
    """Runs submission cycles against one remote store and one history.

    Holds no lock: a single event loop drives it and callers check
    :attr:`in_flight` before starting another cycle.
    """

    def __init__(
        self,
        store: RemoteRecordStore,
        history: RecordHistory,
        *,
        deriver: MetricsDeriver | None = None,
        field_style: str = "canonical",
    ) -> None:
        self._store = store
        self._history = history
        self._deriver = deriver or MetricsDeriver()
        self._field_style = validate_field_style(field_style)
        self._phase = SyncPhase.idle
        self._in_flight = False
        self._last_result: SyncResult | None = None

    @property
    def history(self) -> RecordHistory:
        return self._history

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def last_result(self) -> SyncResult | None:
        return self._last_result

    async def submit(self, raw: RawInput) -> SyncResult:
        """Run one cycle for *raw*.

        Always returns a result for transport, status and rejection failures.
        Anything else propagates, after the in-flight flag is released.
        """
        self._in_flight = True
        self._phase = SyncPhase.deriving
        try:
            record = self._deriver.derive(raw)
            self._phase = SyncPhase.sending
            outcome = await self._send(record)
            if outcome.acknowledged:
                self._history.prepend(record)
                result = SyncResult(SyncStatus.committed, record, outcome.message)
                LOGGER.info(
                    "Committed record for %s (total=%d over=%d avg=%s)",
                    record.date,
                    record.total_count,
                    record.over_threshold_count,
                    record.average_duration,
                )
            else:
                result = SyncResult(SyncStatus.failed, record, outcome.message, outcome.failure)
                LOGGER.warning(
                    "Record for %s not saved (%s): %s",
                    record.date,
                    outcome.failure,
                    outcome.message,
                )
            self._last_result = result
            return result
        finally:
            self._phase = SyncPhase.idle
            self._in_flight = False

    async def _send(self, record: DerivedRecord) -> RemoteOutcome:
        payload = record.to_payload(self._field_style)
        try:
            response = await asyncio.to_thread(self._store.post, payload)
        except RemoteTransportError as exc:
            return transport_failure(exc)
        return interpret_response(response)
