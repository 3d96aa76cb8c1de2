from abc import ABC
from typing import Any, Dict

from fastapi.encoders import jsonable_encoder


class BaseRepository(ABC):
    """Holds the request's Supabase client; all repositories share one."""

    def __init__(self, sb):
        self.sb = sb

    def _encode(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Datetimes, pydantic models and UUIDs -> plain JSON types before they reach Supabase."""
        return jsonable_encoder(payload)
