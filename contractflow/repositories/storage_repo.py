from __future__ import annotations

import json
import logging
import mimetypes
from typing import Any, Dict, Tuple

from contractflow.repositories.base import BaseRepository
from contractflow.core.errors import StorageFetchError, StorageWriteError

logger = logging.getLogger("contractflow.storage")

DEFAULT_MIME_TYPE = "application/pdf"


class StorageRepository(BaseRepository):
    """Supabase object storage, bound to one bucket."""

    def __init__(self, sb, bucket: str):
        super().__init__(sb)
        self.bucket = bucket

    @staticmethod
    def guess_mime_type(path: str) -> str:
        mime, _ = mimetypes.guess_type(path)
        return mime or DEFAULT_MIME_TYPE

    def download(self, storage_path: str) -> Tuple[bytes, str]:
        """Return (bytes, mime_type); a missing or empty object is a StorageFetchError."""
        try:
            data = self.sb.storage.from_(self.bucket).download(storage_path)
        except Exception as e:
            raise StorageFetchError(f"Could not download {storage_path}: {e}") from e

        if not data:
            raise StorageFetchError(f"Could not download {storage_path}: object is empty or missing")

        return bytes(data), self.guess_mime_type(storage_path)

    def upload_bytes(self, *, storage_key: str, data: bytes, content_type: str) -> Dict[str, Any]:
        try:
            res = self.sb.storage.from_(self.bucket).upload(
                path=storage_key,
                file=data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            return {"bucket": self.bucket, "path": storage_key, "result": getattr(res, "data", None) or res}
        except Exception as e:
            raise StorageWriteError(f"Storage upload failed: {e}") from e

    def upload_json(self, *, storage_key: str, payload: Dict[str, Any]) -> str:
        body = json.dumps(self._encode(payload), indent=2, ensure_ascii=False).encode("utf-8")
        self.upload_bytes(storage_key=storage_key, data=body, content_type="application/json")
        return storage_key

    def create_signed_upload_url(self, storage_key: str) -> Dict[str, str]:
        if not storage_key:
            raise StorageWriteError("storage_key empty")

        try:
            res = self.sb.storage.from_(self.bucket).create_signed_upload_url(storage_key)
        except Exception as e:
            raise StorageWriteError(f"Create signed upload URL failed: {e}") from e

        data = getattr(res, "data", None) or res or {}
        url = data.get("signedUrl") or data.get("signed_url") or data.get("signedURL")
        if not url:
            raise StorageWriteError(f"Supabase signed upload url fail: {data}")

        logger.info("signed upload url created bucket=%s path=%s", self.bucket, storage_key)
        return {"signed_url": url, "token": data.get("token") or "", "path": storage_key}
