from __future__ import annotations

import asyncio
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from admin_console.services.exceptions import (
    DownstreamServiceError,
    UnexpectedResponseError,
)

logger = logging.getLogger(__name__)


def extract_server_message(response: httpx.Response) -> str | None:
    """Return the human readable ``message`` of a JSON error body, if any."""

    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


def _is_json(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return "json" in content_type.lower()


class AdminApiClient:
    """Async HTTP client responsible for communicating with the admin backend."""

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout: float = 10.0,
        use_mock_data: bool = True,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._timeout = timeout
        self.use_mock_data = use_mock_data or not self._base_url
        self._headers = {"Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        if not self.use_mock_data and self._base_url:
            self._client = self._build_client()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data or not self._base_url:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def get(
        self, path: str, params: Dict[str, Any] | None = None
    ) -> Any:
        if self.use_mock_data:
            raise RuntimeError("Real HTTP call requested while mock mode is enabled")
        client = await self._ensure_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return json.loads(response.text, parse_float=Decimal)
        except httpx.HTTPStatusError as exc:
            logger.exception("Admin API returned error %s for %s", exc.response.status_code, path)
            raise DownstreamServiceError(
                "Admin API returned an error response",
                status_code=exc.response.status_code,
                server_message=extract_server_message(exc.response),
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach admin API: %s", exc)
            raise DownstreamServiceError(
                "Unable to reach admin API", status_code=None, cause=exc
            ) from exc
        except ValueError as exc:
            logger.exception("Admin API returned a body that is not JSON for %s", path)
            raise UnexpectedResponseError(
                "Admin API returned a body that is not JSON", cause=exc
            ) from exc

    async def post_for_document(self, path: str, payload: Dict[str, Any]) -> bytes:
        """POST a JSON body and return the binary document in the response."""

        if self.use_mock_data:
            raise RuntimeError("Real HTTP call requested while mock mode is enabled")
        client = await self._ensure_client()
        try:
            logger.debug("Posting to admin API %s with payload %s", path, payload)
            response = await client.post(
                path,
                json=payload,
                headers={"Accept": "application/pdf, application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.exception("Admin API returned error %s for %s", exc.response.status_code, path)
            raise DownstreamServiceError(
                "Admin API returned an error response",
                status_code=exc.response.status_code,
                server_message=extract_server_message(exc.response),
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach admin API: %s", exc)
            raise DownstreamServiceError(
                "Unable to reach admin API", status_code=None, cause=exc
            ) from exc

        if _is_json(response):
            logger.error("Admin API answered %s with JSON instead of a document", path)
            raise UnexpectedResponseError(
                "Admin API returned JSON instead of a document",
                server_message=extract_server_message(response),
            )
        if not response.content:
            logger.error("Admin API answered %s with an empty body", path)
            raise UnexpectedResponseError("Admin API returned an empty document")
        return response.content

    async def simulate_latency(self) -> None:
        """Allow services to await for latency even when mocking responses."""

        await asyncio.sleep(0)
