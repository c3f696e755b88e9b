"""
HTTP implementation of the remote authority (REST/JSON over httpx).
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from lessonsync.config import Settings
from lessonsync.errors import RemoteError, TransientRemoteError
from lessonsync.schemas import CourseStructure, Enrollment

from .base import RemoteAuthority

logger = logging.getLogger(__name__)


def seconds_to_minutes(seconds: int) -> float:
    """Heartbeat minutes field, rounded to 4 places."""
    return round(seconds / 60, 4)


class HttpRemoteAuthority(RemoteAuthority):
    """
    Remote authority backed by the LMS REST API.

    Owns one httpx.AsyncClient; call `aclose()` (or use as an async context
    manager) when the player shuts down.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API root, e.g. https://lms.example.com/api
            token: Bearer token for the learner
            timeout: Per-request timeout in seconds
            transport: Optional transport (tests use httpx.MockTransport)
        """
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpRemoteAuthority":
        return cls(
            base_url=settings.api_base_url,
            token=settings.api_token,
            timeout=settings.request_timeout_seconds,
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> "HttpRemoteAuthority":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as e:
            raise TransientRemoteError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 500:
            raise TransientRemoteError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise RemoteError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def get_course_structure(self, course_id: str) -> CourseStructure:
        response = await self._request("GET", f"/courses/{course_id}/learn")
        try:
            return CourseStructure.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteError(f"Invalid course structure for {course_id}: {e}") from e

    async def log_access(self, course_id: str, item_id: str) -> None:
        await self._request("POST", "/progress/access", json={
            "course_id": course_id,
            "item_id": item_id,
        })

    async def send_heartbeat(self, course_id: str, seconds_delta: int, sequence: int) -> None:
        await self._request("POST", "/progress/heartbeat", json={
            "course_id": course_id,
            "minutes_delta": seconds_to_minutes(seconds_delta),
            "seconds_delta": seconds_delta,
            "sequence": sequence,
        })

    async def complete_item(self, item_id: str) -> Enrollment:
        response = await self._request("POST", f"/progress/items/{item_id}/complete")
        try:
            return Enrollment.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteError(f"Invalid enrollment in completion response: {e}") from e

    async def claim_certificate(self, course_id: str) -> bytes:
        response = await self._request("POST", "/certificates/claim", json={
            "course_id": course_id,
        })
        return response.content
