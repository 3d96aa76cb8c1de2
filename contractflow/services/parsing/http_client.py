"""Shared POST helper for the extraction services.

Every outbound call is one awaited request with no retry. Any problem
(unconfigured URL, transport error, non-2xx, non-object JSON) becomes a
ParserError so callers only handle one exception type.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from contractflow.core.errors import ParserError


class ServiceClient:
    """Base for one HTTP extraction endpoint."""

    name = "service"

    def __init__(
        self,
        url: str,
        *,
        api_key: str = "",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def _headers(self, content_type: str) -> Dict[str, str]:
        headers = {"content-type": content_type}
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(
        self,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        content: Optional[bytes] = None,
        content_type: str = "application/json",
    ) -> Dict[str, Any]:
        if not self.configured:
            raise ParserError(f"{self.name} endpoint is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                if json_body is not None:
                    r = await client.post(self.url, json=json_body, headers=self._headers(content_type))
                else:
                    r = await client.post(self.url, content=content, headers=self._headers(content_type))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ParserError(f"{self.name} request failed: {e.__class__.__name__}: {e}") from e

        if not r.is_success:
            raise ParserError(f"{self.name} returned HTTP {r.status_code}: {r.text[:500]}")

        try:
            data = r.json()
        except ValueError as e:
            raise ParserError(f"{self.name} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise ParserError(f"{self.name} returned {type(data).__name__}, expected an object")

        return data
