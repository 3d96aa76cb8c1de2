from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from contractflow.core.config import Settings
from contractflow.core.errors import (
    ExtractionError,
    StorageFetchError,
    ValidationError,
)
from contractflow.repositories.contract_repo import ContractRepository
from contractflow.repositories.storage_repo import StorageRepository
from contractflow.services.parsing.models import (
    PARSER_PRIMARY,
    PARSER_VISION_FALLBACK,
    NormalizedContract,
    ParseContractRequest,
    ParserDiagnostics,
    RawExtractionResult,
    RiskItem,
)
from contractflow.services.parsing.normalizer import normalize_contract
from contractflow.services.parsing.primary_parser import PrimaryParserClient
from contractflow.services.parsing.vision_parser import PdfImageConverter, VisionParserClient

logger = logging.getLogger("contractflow.parsing")


# -------------------------------------------------
# Run state
# -------------------------------------------------
class PipelineState(str, Enum):
    INIT = "INIT"
    PRIMARY_ATTEMPTED = "PRIMARY_ATTEMPTED"
    FALLBACK_ATTEMPTED = "FALLBACK_ATTEMPTED"
    NORMALIZED = "NORMALIZED"
    PERSISTED = "PERSISTED"


_TRANSITIONS = {
    PipelineState.INIT: {PipelineState.PRIMARY_ATTEMPTED},
    PipelineState.PRIMARY_ATTEMPTED: {PipelineState.FALLBACK_ATTEMPTED, PipelineState.NORMALIZED},
    PipelineState.FALLBACK_ATTEMPTED: {PipelineState.NORMALIZED},
    PipelineState.NORMALIZED: {PipelineState.PERSISTED},
    PipelineState.PERSISTED: set(),
}


@dataclass
class PipelineRun:
    """
    One invocation's progress.
    Only a storage fetch failure (in INIT) and a fallback failure
    (in FALLBACK_ATTEMPTED) ever set terminal_failure.
    """

    state: PipelineState = PipelineState.INIT
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.INIT])
    terminal_failure: bool = False
    error: Optional[str] = None

    def advance(self, nxt: PipelineState) -> None:
        if self.terminal_failure:
            raise RuntimeError(f"run already failed in {self.state.value}")
        if nxt not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal transition {self.state.value} -> {nxt.value}")
        self.state = nxt
        self.history.append(nxt)

    def fail(self, error: str) -> None:
        self.terminal_failure = True
        self.error = error


@dataclass
class ParseContractResult:
    normalized_contract: NormalizedContract
    diagnostics: ParserDiagnostics
    summary_path: Optional[str]
    risk_items: List[RiskItem]
    run: PipelineRun


# -------------------------------------------------
# Pipeline
# -------------------------------------------------
class ContractParsingPipeline:
    """
    Uploaded contract -> normalized extraction + summary artifact.

    RULES:
    - Collaborators are injected; the pipeline keeps no state between calls
    - Terminal: missing input, document fetch, both parsers failing
    - Everything after normalization degrades and logs instead of raising
    """

    def __init__(
        self,
        *,
        storage: StorageRepository,
        contracts: ContractRepository,
        primary: PrimaryParserClient,
        converter: PdfImageConverter,
        vision: VisionParserClient,
        summary_folder: str = "summaries",
    ):
        self.storage = storage
        self.contracts = contracts
        self.primary = primary
        self.converter = converter
        self.vision = vision
        self.summary_folder = summary_folder

    @staticmethod
    def _validate(req: ParseContractRequest) -> None:
        missing = [
            name
            for name, value in (("userId", req.owner_id), ("storagePath", req.storage_path))
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(f"Missing or invalid fields: {', '.join(missing)}")

    def summary_key(self, contract_id: Optional[str]) -> str:
        return f"{self.summary_folder}/{contract_id or uuid.uuid4()}/summary.json"

    # =================================================
    # Main pipeline
    # =================================================
    async def parse_contract(self, req: ParseContractRequest) -> ParseContractResult:
        self._validate(req)
        run = PipelineRun()

        # STEP 1: Retrieve document
        try:
            data, mime_type = self.storage.download(req.storage_path)
        except StorageFetchError as e:
            run.fail(e.message)
            e.run = run
            logger.error("DOCUMENT_FETCH_FAILED path=%s error=%s", req.storage_path, e.message)
            raise

        logger.info("document fetched path=%s bytes=%d mime=%s", req.storage_path, len(data), mime_type)

        # STEP 2: Primary extraction
        primary_error: Optional[str] = None
        raw: Optional[RawExtractionResult] = None
        run.advance(PipelineState.PRIMARY_ATTEMPTED)
        try:
            raw = await self.primary.parse(data, mime_type)
        except Exception as e:  # any primary failure is recoverable
            primary_error = str(e) or e.__class__.__name__
            logger.warning("PRIMARY_PARSER_FAILED switching to vision fallback: %s", primary_error)

        # STEP 3: Vision fallback
        used_fallback = raw is None
        if used_fallback:
            if primary_error is None:
                primary_error = "primary parser returned no result"
            run.advance(PipelineState.FALLBACK_ATTEMPTED)
            images = await self.converter.convert(data, mime_type)
            try:
                raw = await self.vision.parse(images)
            except Exception as e:
                message = f"Unable to parse contract: {str(e) or e.__class__.__name__}"
                run.fail(message)
                logger.error("VISION_FALLBACK_FAILED primary_error=%s fallback_error=%s", primary_error, e)
                raise ExtractionError(message, run=run) from e

        diagnostics = ParserDiagnostics(
            parser=PARSER_VISION_FALLBACK if used_fallback else PARSER_PRIMARY,
            used_fallback=used_fallback,
            primary_error=primary_error,
        )

        # STEP 4: Normalize
        normalized = normalize_contract(raw)
        run.advance(PipelineState.NORMALIZED)

        # STEP 5: Summary artifact
        summary_path = self._write_summary(req.contract_id, normalized, diagnostics)

        # STEP 6: Contract row
        if req.contract_id and req.persist:
            self._update_contract(req, normalized, summary_path)

        run.advance(PipelineState.PERSISTED)
        logger.info(
            "contract parsed contract_id=%s parser=%s summary_path=%s",
            req.contract_id,
            diagnostics.parser,
            summary_path,
        )

        return ParseContractResult(
            normalized_contract=normalized,
            diagnostics=diagnostics,
            summary_path=summary_path,
            risk_items=list(normalized.risk_items),
            run=run,
        )

    # -------------------------------------------------
    # Non-fatal persistence
    # -------------------------------------------------
    def _write_summary(
        self,
        contract_id: Optional[str],
        normalized: NormalizedContract,
        diagnostics: ParserDiagnostics,
    ) -> Optional[str]:
        key = self.summary_key(contract_id)
        artifact = {
            "generated_at": datetime.now(timezone.utc),
            "parsed_contract": normalized.model_dump(),
            "diagnostics": diagnostics.to_payload(),
        }
        try:
            return self.storage.upload_json(storage_key=key, payload=artifact)
        except Exception as e:
            logger.warning("SUMMARY_WRITE_FAILED key=%s error=%s", key, e)
            return None

    def _update_contract(
        self,
        req: ParseContractRequest,
        normalized: NormalizedContract,
        summary_path: Optional[str],
    ) -> None:
        try:
            matched = self.contracts.update_summary(
                contract_id=req.contract_id,
                owner_id=req.owner_id,
                ai_summary=normalized.summary,
                summary_path=summary_path,
            )
        except Exception as e:
            logger.warning("CONTRACT_UPDATE_FAILED contract_id=%s error=%s", req.contract_id, e)
            return

        if not matched:
            logger.warning(
                "CONTRACT_UPDATE_NO_MATCH contract_id=%s owner_id=%s",
                req.contract_id,
                req.owner_id,
            )


def build_contract_parsing_pipeline(sb, settings: Settings) -> ContractParsingPipeline:
    """Wire one pipeline around a Supabase client (one per request)."""
    timeout = settings.PARSER_TIMEOUT_SECONDS
    return ContractParsingPipeline(
        storage=StorageRepository(sb, settings.CONTRACTS_BUCKET),
        contracts=ContractRepository(sb),
        primary=PrimaryParserClient(
            settings.PRIMARY_PARSER_URL,
            api_key=settings.PRIMARY_PARSER_API_KEY,
            timeout=timeout,
        ),
        converter=PdfImageConverter(settings.PDF_TO_IMAGE_URL, timeout=timeout),
        vision=VisionParserClient(
            settings.VISION_PARSER_URL,
            api_key=settings.VISION_PARSER_API_KEY,
            timeout=timeout,
        ),
        summary_folder=settings.SUMMARY_FOLDER,
    )
