"""Validates the vision model's parsed JSON reply and builds VisionFields."""

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from vat_extraction.extractors.exceptions import ServiceError

_MAX_VAT_AMOUNTS = 20
_VALID_DOCUMENT_TYPES = frozenset({"invoice", "receipt", "statement", "other"})


@dataclass(frozen=True)
class VisionFields:
    """Structured fields a vision model reports for one document."""

    document_date: str | None = None
    total_amount: Decimal | None = None
    vat_amounts: list[Decimal] = field(default_factory=list)
    vat_rate: float | None = None
    document_type: str = "other"
    confidence: float = 0.0


def validate_vision_reply(data: dict[str, Any]) -> VisionFields:
    """Validate a parsed reply.

    Raises:
        ServiceError: when the reply does not follow the schema. A model that
            answers off-schema is treated as a failed service call.
    """
    for key in ("vat_amounts", "confidence"):
        if key not in data:
            raise ServiceError(f"Vision reply is missing '{key}'")
    return VisionFields(
        document_date=_optional_str(data.get("document_date"), "document_date"),
        total_amount=_optional_amount(data.get("total_amount"), "total_amount"),
        vat_amounts=_amount_list(data["vat_amounts"]),
        vat_rate=_optional_rate(data.get("vat_rate")),
        document_type=_document_type(data.get("document_type", "other")),
        confidence=_confidence(data["confidence"]),
    )


def _optional_str(raw: Any, name: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ServiceError(f"'{name}' must be a string or null")
    return raw or None


def _to_decimal(raw: Any, name: str) -> Decimal:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise ServiceError(f"'{name}' must be a number")
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ServiceError(f"'{name}' must be a number, got {raw!r}") from exc
    if not value.is_finite():
        raise ServiceError(f"'{name}' must be a finite number")
    return value


def _optional_amount(raw: Any, name: str) -> Decimal | None:
    if raw is None:
        return None
    return _to_decimal(raw, name)


def _amount_list(raw: Any) -> list[Decimal]:
    if not isinstance(raw, list):
        raise ServiceError("'vat_amounts' must be a list")
    if len(raw) > _MAX_VAT_AMOUNTS:
        raise ServiceError(f"Too many VAT amounts: {len(raw)} (max {_MAX_VAT_AMOUNTS})")
    return [_to_decimal(item, f"vat_amounts[{i}]") for i, item in enumerate(raw)]


def _optional_rate(raw: Any) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ServiceError("'vat_rate' must be a number or null")
    try:
        rate = float(raw)
    except OverflowError as exc:
        raise ServiceError("'vat_rate' is out of range") from exc
    if not math.isfinite(rate):
        raise ServiceError(f"'vat_rate' must be finite, got {raw!r}")
    return rate


def _document_type(raw: Any) -> str:
    if not isinstance(raw, str) or raw.lower() not in _VALID_DOCUMENT_TYPES:
        raise ServiceError(
            f"'document_type' must be one of {sorted(_VALID_DOCUMENT_TYPES)}, got {raw!r}"
        )
    return raw.lower()


def _confidence(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ServiceError("'confidence' must be a number")
    try:
        confidence = float(raw)
    except OverflowError as exc:
        raise ServiceError("'confidence' is out of range") from exc
    if math.isnan(confidence):
        raise ServiceError("'confidence' must be a number, got NaN")
    return max(0.0, min(1.0, confidence))
