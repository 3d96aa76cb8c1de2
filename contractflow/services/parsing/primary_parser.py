from __future__ import annotations

import base64

from contractflow.services.parsing.http_client import ServiceClient
from contractflow.services.parsing.models import RawExtractionResult


class PrimaryParserClient(ServiceClient):
    """Structured-extraction service: POST {document_base64, mime_type}."""

    name = "primary parser"

    async def parse(self, data: bytes, mime_type: str) -> RawExtractionResult:
        return await self._post(
            json_body={
                "document_base64": base64.b64encode(data).decode("ascii"),
                "mime_type": mime_type,
            }
        )
