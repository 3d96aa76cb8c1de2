from fastapi import Request

from contractflow.core.config import settings
from contractflow.core.errors import ConfigError
from contractflow.services.parsing.pipeline import (
    ContractParsingPipeline,
    build_contract_parsing_pipeline,
)


def get_sb(request: Request):
    sb = getattr(request.app.state, "sb", None)
    if sb is None:
        raise ConfigError("Supabase client (app.state.sb) is not initialized")
    return sb


def get_contract_parsing_pipeline(request: Request) -> ContractParsingPipeline:
    return build_contract_parsing_pipeline(get_sb(request), settings)
