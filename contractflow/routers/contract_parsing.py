import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from contractflow.core.errors import AppError, ValidationError
from contractflow.routers.deps import get_contract_parsing_pipeline
from contractflow.services.parsing.models import ParseContractRequest, ParseContractResponse
from contractflow.services.parsing.pipeline import ContractParsingPipeline

logger = logging.getLogger("contractflow.api")

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _read_request(request: Request) -> ParseContractRequest:
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError as e:
        raise ValidationError(f"Invalid JSON sent to contract parsing: {e}") from e

    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        return ParseContractRequest.model_validate(body)
    except PydanticValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ValidationError(f"Missing or invalid fields: {fields}") from e


@router.post("/contract-parsing")
async def parse_contract(
    request: Request,
    pipeline: ContractParsingPipeline = Depends(get_contract_parsing_pipeline),
):
    """
    Parse an uploaded contract PDF.

    Body: {contractId?, storagePath, userId, persist?}
    200:  {parsedContract, riskItems, diagnostics, summaryPath}
    4xx/5xx: {error}
    """
    request_id = getattr(request.state, "request_id", None)
    try:
        req = await _read_request(request)
        result = await pipeline.parse_contract(req)
    except AppError as e:
        logger.warning(
            "contract parsing rejected request_id=%s status=%s error=%s",
            request_id,
            e.status_code,
            e.message,
        )
        return _error(e.status_code, e.message)
    except Exception as e:
        logger.exception("contract parsing crashed request_id=%s", request_id)
        return _error(500, str(e))

    response = ParseContractResponse(
        parsed_contract=result.normalized_contract,
        risk_items=result.risk_items,
        diagnostics=result.diagnostics,
        summary_path=result.summary_path,
    )
    return response.model_dump(by_alias=True)
