"""HTTP transport to the remote record store (a spreadsheet web app).

One record per request, one request per submission.  The store acknowledges a
record by answering 2xx with a JSON body whose ``status`` is ``"success"``;
every other answer is a failure.  Redirects are followed by urllib, which is
what Apps Script deployments rely on.
"""

from __future__ import annotations

import enum
import http.client
import logging
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .json_utils import safe_json_dumps, safe_json_loads

LOGGER = logging.getLogger(__name__)

ACK_STATUS = "success"
DEFAULT_TIMEOUT_S = 30.0
ACK_MESSAGE = "Record saved to remote store."
REJECTED_MESSAGE = "Unrecognised response from remote store."


class FailureKind(enum.StrEnum):
    transport = "transport"
    http_status = "http_status"
    rejected = "rejected"


class RemoteTransportError(RuntimeError):
    """The request never produced an HTTP response."""


@dataclass(frozen=True, slots=True)
class RemoteResponse:
    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True, slots=True)
class RemoteOutcome:
    """Tagged interpretation of one remote store exchange."""

    acknowledged: bool
    message: str
    failure: FailureKind | None = None


def validate_url(url: str) -> None:
    if not url.startswith(("https://", "http://")):
        raise ValueError(f"Remote store URL must use http or https: {url!r}")


def _server_message(body: Any) -> str | None:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def interpret_response(response: RemoteResponse) -> RemoteOutcome:
    """Map an HTTP response onto the acknowledge/reject contract."""
    body = safe_json_loads(response.body, context="remote store response")
    message = _server_message(body)
    if not response.ok:
        return RemoteOutcome(
            acknowledged=False,
            message=message or f"Remote store returned HTTP {response.status_code}.",
            failure=FailureKind.http_status,
        )
    if isinstance(body, dict) and body.get("status") == ACK_STATUS:
        return RemoteOutcome(acknowledged=True, message=message or ACK_MESSAGE)
    return RemoteOutcome(
        acknowledged=False,
        message=message or REJECTED_MESSAGE,
        failure=FailureKind.rejected,
    )


def transport_failure(exc: RemoteTransportError) -> RemoteOutcome:
    return RemoteOutcome(acknowledged=False, message=str(exc), failure=FailureKind.transport)


class RemoteRecordStore:
    """POSTs record payloads to the configured endpoint."""

    def __init__(self, url: str, *, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        if url:
            validate_url(url)
        self._url = url
        self._timeout_s = timeout_s

    @property
    def url(self) -> str:
        return self._url

    def post(self, payload: dict[str, Any]) -> RemoteResponse:
        """Send *payload* once.

        Non-2xx answers are returned, not raised.  Raises
        :class:`RemoteTransportError` when no complete HTTP response was obtained.
        """
        if not self._url:
            raise RemoteTransportError("Remote store URL is not configured.")
        body = safe_json_dumps(payload).encode("utf-8")
        req = Request(
            self._url,
            data=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method="POST",
        )
        LOGGER.debug("POST %s (%d bytes)", self._url, len(body))
        try:
            with urlopen(req, timeout=self._timeout_s) as resp:  # noqa: S310
                text = resp.read().decode("utf-8", errors="replace")
                return RemoteResponse(status_code=int(resp.status), body=text)
        except HTTPError as exc:
            try:
                text = exc.read().decode("utf-8", errors="replace")
            except (OSError, http.client.HTTPException):
                text = ""
            LOGGER.warning("Remote store answered HTTP %s", exc.code)
            return RemoteResponse(status_code=int(exc.code), body=text)
        except URLError as exc:
            raise RemoteTransportError(f"Could not reach remote store: {exc.reason}") from exc
        except http.client.HTTPException as exc:
            raise RemoteTransportError(f"Could not reach remote store: {exc!r}") from exc
        except (TimeoutError, OSError) as exc:
            raise RemoteTransportError(f"Could not reach remote store: {exc}") from exc
