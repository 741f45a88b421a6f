from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from leadrelay.services.exceptions import DownstreamServiceError

logger = logging.getLogger(__name__)


class CrmClient:
    """Async HTTP client for the CRM lead-ingestion API."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._headers = {"Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._client: Optional[httpx.AsyncClient] = None

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

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def get(
        self, path: str, params: Dict[str, Any] | None = None
    ) -> Any:
        client = self._ensure_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "CRM GET %s returned %s: %s",
                path,
                exc.response.status_code,
                exc.response.text,
            )
            raise DownstreamServiceError(
                "CRM returned an error response",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Unable to reach CRM for GET %s: %s", path, exc)
            raise DownstreamServiceError(
                "Unable to reach CRM", status_code=None, cause=exc
            ) from exc
        except ValueError as exc:
            logger.error("CRM GET %s returned a non-JSON body", path)
            raise DownstreamServiceError(
                "CRM returned an unreadable response", status_code=None, cause=exc
            ) from exc

    async def post_form(
        self, path: str, fields: Sequence[Tuple[str, str]]
    ) -> int:
        """POST ``fields`` form-encoded and return the response status code."""

        client = self._ensure_client()
        try:
            response = await client.post(path, data=dict(fields))
            response.raise_for_status()
            return response.status_code
        except httpx.HTTPStatusError as exc:
            logger.error(
                "CRM POST %s returned %s: %s",
                path,
                exc.response.status_code,
                exc.response.text,
            )
            raise DownstreamServiceError(
                "CRM returned an error response",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Unable to reach CRM for POST %s: %s", path, exc)
            raise DownstreamServiceError(
                "Unable to reach CRM", status_code=None, cause=exc
            ) from exc
