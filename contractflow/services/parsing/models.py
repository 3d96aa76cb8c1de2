from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict, Any, List, Literal


# Whatever a parser returned. Shape is not guaranteed; narrow per field.
RawExtractionResult = Dict[str, Any]

PARSER_PRIMARY = "primary"
PARSER_VISION_FALLBACK = "vision-fallback"


class RiskItem(BaseModel):
    severity: str = "info"
    description: str


class NormalizedContract(BaseModel):
    """
    Fixed-shape contract extraction.
    Every key is always present; unknown values are null, never missing.
    """

    title: Optional[str] = None
    property_address: Optional[str] = None

    client_name: Optional[str] = None
    client_email: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None

    purchase_price: Optional[str] = None

    closing_date: Optional[str] = None
    inspection_date: Optional[str] = None
    inspection_response_date: Optional[str] = None
    loan_contingency_date: Optional[str] = None
    appraisal_date: Optional[str] = None
    final_walkthrough_date: Optional[str] = None

    summary: Optional[str] = None
    risk_items: List[RiskItem] = Field(default_factory=list)


class ParserDiagnostics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parser: Literal["primary", "vision-fallback"]
    used_fallback: bool = Field(False, alias="usedFallback")
    primary_error: Optional[str] = Field(None, alias="primaryError")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ParseContractRequest(BaseModel):
    """Body of POST /contract-parsing. Required fields are checked by the pipeline."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    owner_id: Optional[str] = Field(None, alias="userId")
    storage_path: Optional[str] = Field(None, alias="storagePath")
    contract_id: Optional[str] = Field(None, alias="contractId")
    persist: bool = True


class ParseContractResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parsed_contract: NormalizedContract = Field(..., alias="parsedContract")
    risk_items: List[RiskItem] = Field(default_factory=list, alias="riskItems")
    diagnostics: ParserDiagnostics
    summary_path: Optional[str] = Field(None, alias="summaryPath")
