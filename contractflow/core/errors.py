from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base error mapped onto an HTTP `{error: ...}` response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(AppError):
    status_code = 500


class ValidationError(AppError):
    status_code = 400


class StorageFetchError(AppError):
    """Source document could not be read from storage. Terminal."""

    status_code = 500

    def __init__(self, message: str, run: Any = None):
        super().__init__(message)
        self.run = run


class ExtractionError(AppError):
    """Both the primary parser and the vision fallback failed. Terminal."""

    status_code = 500

    def __init__(self, message: str, run: Any = None):
        super().__init__(message)
        self.run = run


class StorageWriteError(AppError):
    """Upload or signed-URL request rejected by object storage."""

    status_code = 500


class ParserError(Exception):
    """Raised by a parser adapter; the pipeline decides whether it is fatal."""
