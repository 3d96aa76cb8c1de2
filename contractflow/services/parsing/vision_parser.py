from __future__ import annotations

import base64
import logging
from typing import List

from contractflow.core.errors import ParserError
from contractflow.services.parsing.http_client import ServiceClient
from contractflow.services.parsing.models import RawExtractionResult

logger = logging.getLogger("contractflow.parsing")


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class PdfImageConverter(ServiceClient):
    """
    PDF -> page images: POST <raw bytes> -> {images: [...]}.

    convert() never raises. When the service is missing, fails, or
    returns no usable images, the original document is passed through
    as a single data-URI "image".
    """

    name = "image conversion"

    async def convert(self, data: bytes, mime_type: str) -> List[str]:
        try:
            payload = await self._post(content=data, content_type=mime_type)
            images = payload.get("images")
            if not isinstance(images, list):
                raise ParserError(f"{self.name} response has no images list")
            images = [img for img in images if isinstance(img, str) and img]
            if images:
                return images
            logger.warning("IMAGE_CONVERSION_EMPTY passing raw document through")
        except Exception as e:  # conversion never blocks the fallback
            logger.warning("IMAGE_CONVERSION_FAILED passing raw document through: %s", e)

        return [to_data_uri(data, mime_type)]


class VisionParserClient(ServiceClient):
    """Image-based extraction service: POST {images} -> structured JSON."""

    name = "vision parser"

    async def parse(self, images: List[str]) -> RawExtractionResult:
        return await self._post(json_body={"images": images})
