from pydantic import BaseModel
from dotenv import load_dotenv
from typing import Optional
import os

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings(BaseModel):
    # Supabase
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    CONTRACTS_BUCKET: str = os.getenv("CONTRACTS_BUCKET", "contracts")
    SUMMARY_FOLDER: str = os.getenv("SUMMARY_FOLDER", "summaries")

    # Extraction services (empty URL = not provisioned)
    PRIMARY_PARSER_URL: str = os.getenv("PRIMARY_PARSER_URL", "")
    PRIMARY_PARSER_API_KEY: str = os.getenv("PRIMARY_PARSER_API_KEY", "")
    PDF_TO_IMAGE_URL: str = os.getenv("PDF_TO_IMAGE_URL", "")
    VISION_PARSER_URL: str = os.getenv("VISION_PARSER_URL", "")
    VISION_PARSER_API_KEY: str = os.getenv("VISION_PARSER_API_KEY", "")

    # None = no client-side timeout, the caller's own HTTP timeout bounds the call
    PARSER_TIMEOUT_SECONDS: Optional[float] = _optional_float("PARSER_TIMEOUT_SECONDS")

    # HTTP
    ALLOWED_ORIGIN: str = os.getenv("ALLOWED_ORIGIN", "https://contractflowai.us")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
