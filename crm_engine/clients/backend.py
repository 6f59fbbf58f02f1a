"""Async HTTP client for the CRM backend that owns customers and segments."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from crm_engine.exceptions import BackendError
from crm_engine.schemas.customer import Customer
from crm_engine.schemas.segment import Segment, SegmentCreate
from crm_engine.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"

_customers = TypeAdapter(list[Customer])


def _unwrap(body: Any) -> Any:
    """The backend answers either ``{"data": ...}`` or the bare payload."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class CrmBackendClient:
    """Async wrapper around the CRM backend REST API.

    Every call forwards the caller's bearer token unchanged.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    async def _request(
        self, method: str, path: str, token: str, *, json: Any = None
    ) -> httpx.Response:
        try:
            response = await self._get_http().request(
                method,
                path,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as err:
            logger.warning("CRM backend unreachable: %s %s (%s)", method, path, err)
            raise BackendError(f"CRM backend unreachable: {err}") from err

        if response.is_error:
            logger.warning(
                "CRM backend returned %s for %s %s", response.status_code, method, path
            )
            raise BackendError(
                f"CRM backend returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
            )
        return response

    def _parse(self, adapter: TypeAdapter, response: httpx.Response, what: str):
        try:
            return adapter.validate_python(_unwrap(response.json()))
        except (ValueError, ValidationError) as err:
            raise BackendError(f"CRM backend sent malformed {what}") from err

    async def list_customers(self, token: str) -> list[Customer]:
        """Fetch the full customer collection visible to ``token``."""
        response = await self._request("GET", "/api/customers", token)
        return self._parse(_customers, response, "customers")

    async def list_segments(self, token: str) -> list[Segment]:
        """Fetch stored segments, skipping records that no longer validate.

        Older dashboard builds could store a cleared threshold as null; one
        such record must not hide the rest of the list.
        """
        response = await self._request("GET", "/api/segments", token)
        try:
            records = _unwrap(response.json())
        except ValueError as err:
            raise BackendError("CRM backend sent malformed segments") from err
        if not isinstance(records, list):
            raise BackendError("CRM backend sent malformed segments")

        segments: list[Segment] = []
        for record in records:
            try:
                segments.append(Segment.model_validate(record))
            except ValidationError as err:
                segment_id = record.get("_id") if isinstance(record, dict) else None
                logger.warning(
                    "Skipping stored segment %s: %d validation error(s)",
                    segment_id,
                    err.error_count(),
                )
        return segments

    async def create_segment(self, token: str, segment: SegmentCreate) -> Segment:
        """Persist a validated segment; the backend assigns id and timestamps."""
        response = await self._request(
            "POST",
            "/api/segments",
            token,
            json=segment.model_dump(mode="json", by_alias=True),
        )
        return self._parse(TypeAdapter(Segment), response, "segment")

    async def delete_segment(self, token: str, segment_id: str) -> None:
        await self._request("DELETE", f"/api/segments/{segment_id}", token)

    async def ping(self) -> bool:
        """Cheap reachability probe used by the readiness check."""
        try:
            await self._get_http().get("/", timeout=2.0)
        except httpx.HTTPError:
            return False
        return True

    async def close(self):
        if self._http is not None:
            await self._http.aclose()
            self._http = None
