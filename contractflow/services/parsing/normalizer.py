"""Raw parser output -> NormalizedContract.

normalize_contract() is total: it accepts any mapping (or anything at all)
and never raises. Each field is narrowed explicitly because neither parser
guarantees its output shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from contractflow.services.parsing.models import (
    NormalizedContract,
    RawExtractionResult,
    RiskItem,
)


DEFAULT_SEVERITY = "info"

# First key holding a usable value wins.
_FIELD_KEYS: Dict[str, Sequence[str]] = {
    "title": ("title", "document_title"),
    "property_address": ("property_address", "address"),
    "client_name": ("client_name", "buyer_name"),
    "client_email": ("client_email", "buyer_email"),
    "buyer_name": ("buyer_name",),
    "buyer_email": ("buyer_email",),
    "seller_name": ("seller_name",),
    "seller_email": ("seller_email",),
    "purchase_price": ("purchase_price", "price"),
    "summary": ("executive_summary", "summary"),
}

_DATE_FIELDS = (
    "closing_date",
    "inspection_date",
    "inspection_response_date",
    "loan_contingency_date",
    "appraisal_date",
    "final_walkthrough_date",
)

_RISK_KEYS = ("risk_items", "risks")

# Ordered: "inspection response" must be tested before "inspection".
_DEADLINE_KEYWORDS = (
    (("inspection response",), "inspection_response_date"),
    (("inspection",), "inspection_date"),
    (("appraisal",), "appraisal_date"),
    (("loan", "financing"), "loan_contingency_date"),
    (("walk",), "final_walkthrough_date"),
    (("close", "closing", "settle"), "closing_date"),
)


# ------------------------------------------------------------------
# Scalar narrowing
# ------------------------------------------------------------------

def _as_text(value: Any) -> Optional[str]:
    """Strings and numbers become trimmed text; everything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return str(int(value)) if value.is_integer() else str(value)
    return None


def _first_text(raw: RawExtractionResult, keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        text = _as_text(raw.get(key))
        if text is not None:
            return text
    return None


def _party_name(raw: RawExtractionResult, role: str) -> Optional[str]:
    parties = raw.get("parties")
    if isinstance(parties, dict):
        return _as_text(parties.get(role))
    return None


# ------------------------------------------------------------------
# Deadlines / risks
# ------------------------------------------------------------------

def map_deadlines(deadlines: Any) -> Dict[str, Optional[str]]:
    """Map a `[{name, date}]` list onto the six milestone date fields."""
    out: Dict[str, Optional[str]] = {field: None for field in _DATE_FIELDS}
    if not isinstance(deadlines, list):
        return out

    for entry in deadlines:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        date = _as_text(entry.get("date"))
        if not isinstance(name, str) or date is None:
            continue

        lowered = name.lower()
        for keywords, field in _DEADLINE_KEYWORDS:
            if any(k in lowered for k in keywords):
                out[field] = date
                break

    return out


def normalize_risk_items(raw: RawExtractionResult) -> List[RiskItem]:
    entries: Any = None
    for key in _RISK_KEYS:
        if isinstance(raw.get(key), list):
            entries = raw[key]
            break
    if not entries:
        return []

    items: List[RiskItem] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        description = entry.get("description")
        if not isinstance(description, str) or not description.strip():
            continue
        severity = entry.get("severity")
        if not isinstance(severity, str) or not severity.strip():
            severity = DEFAULT_SEVERITY
        items.append(RiskItem(severity=severity.strip(), description=description.strip()))
    return items


# ------------------------------------------------------------------
# PUBLIC
# ------------------------------------------------------------------

def normalize_contract(raw: Any) -> NormalizedContract:
    if not isinstance(raw, dict):
        raw = {}

    fields: Dict[str, Any] = {
        name: _first_text(raw, keys) for name, keys in _FIELD_KEYS.items()
    }

    # nested parties object fills names the flat keys left empty
    if fields["buyer_name"] is None:
        fields["buyer_name"] = _party_name(raw, "buyer")
    if fields["seller_name"] is None:
        fields["seller_name"] = _party_name(raw, "seller")
    if fields["client_name"] is None:
        fields["client_name"] = fields["buyer_name"]

    deadline_dates = map_deadlines(raw.get("deadlines"))
    for field in _DATE_FIELDS:
        fields[field] = _as_text(raw.get(field)) or deadline_dates[field]

    fields["risk_items"] = normalize_risk_items(raw)

    return NormalizedContract(**fields)
