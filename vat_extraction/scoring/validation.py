"""Turns a RawExtraction into a scored, flagged ExtractionResult."""

from decimal import ROUND_HALF_UP, Decimal

from vat_extraction.documents.models import Document, DocumentCategory
from vat_extraction.extractors.exceptions import ValidationFailure
from vat_extraction.extractors.models import RawExtraction
from vat_extraction.logging.logger import Log
from vat_extraction.patterns.amounts import deduplicate_amounts, filter_sane_amounts, is_sane_amount
from vat_extraction.patterns.vat_patterns import find_vat_number
from vat_extraction.scoring.compliance import (
    is_valid_irish_rate,
    validate_irish_vat_number,
    vat_matches_total,
)
from vat_extraction.scoring.confidence import NO_CANDIDATES_CAP, confidence_flags, score_confidence
from vat_extraction.scoring.models import (
    DocumentType,
    ErrorRecovery,
    ExtractionResult,
    ProcessingMethod,
    ValidationFlag,
)

EXTRACTED_TEXT_LIMIT = 500
OUT_OF_RANGE_PENALTY = 0.8
CALCULATION_MISMATCH_PENALTY = 0.9

_CENT = Decimal("0.01")


def build_result(
    raw: RawExtraction,
    document: Document,
    method: ProcessingMethod,
    recovery: ErrorRecovery | None = None,
    *,
    fallback: bool = False,
) -> ExtractionResult:
    """Score, validate and route one extraction. Never discards salvaged data."""
    accepted, rejected = filter_sane_amounts(_cents(v) for v in raw.candidate_values)
    amounts = deduplicate_amounts(accepted)
    total = _cents(raw.total_amount) if raw.total_amount is not None else None
    if total is not None and not is_sane_amount(total):
        rejected.append(total)
        total = None

    confidence = score_confidence(
        raw.quality_hint, raw.readability_ratio, len(amounts), fallback=fallback
    )
    flags: list[ValidationFlag] = []

    try:
        ensure_within_bounds(rejected)
    except ValidationFailure as exc:
        flags.append(ValidationFlag.AMOUNTS_OUT_OF_RANGE)
        confidence *= OUT_OF_RANGE_PENALTY
        Log.warning(f"{document.filename}: {exc}")

    rate = raw.vat_rate
    if total is not None and rate is not None and rate > 0 and amounts:
        if not any(vat_matches_total(total, rate, amount) for amount in amounts):
            flags.append(ValidationFlag.VAT_CALCULATION_MISMATCH)
            confidence *= CALCULATION_MISMATCH_PENALTY
    if rate is not None and not is_valid_irish_rate(rate):
        flags.append(ValidationFlag.NON_STANDARD_VAT_RATE)
    if not amounts:
        flags.append(ValidationFlag.NO_VAT_AMOUNTS_FOUND)
    vat_number = _checked_vat_number(raw.text, document, flags)
    if fallback:
        flags.append(ValidationFlag.FALLBACK_PROCESSING_USED)

    confidence = round(confidence, 4)
    flags.extend(confidence_flags(confidence))

    values = tuple(_to_float(a) for a in amounts)
    return ExtractionResult(
        sales_vat=values if document.category is DocumentCategory.SALES_INVOICE else (),
        purchase_vat=values if document.category is DocumentCategory.PURCHASE_INVOICE else (),
        total_amount=_to_float(total) if total is not None else None,
        vat_rate=rate,
        confidence=confidence,
        document_type=classify_document(document, raw),
        processing_method=method,
        validation_flags=_unique(flags),
        irish_vat_compliant=is_valid_irish_rate(rate) and not rejected,
        error_recovery=recovery or ErrorRecovery(),
        extracted_text=raw.text[:EXTRACTED_TEXT_LIMIT],
        document_date=raw.document_date,
        vat_number=vat_number,
    )


def ensure_within_bounds(rejected: list[Decimal]) -> None:
    """Raise ValidationFailure naming every amount that fell outside the sanity band."""
    if rejected:
        raise ValidationFailure(
            f"{len(rejected)} amount(s) outside sanity bounds dropped: "
            f"{[str(value) for value in rejected]}"
        )


def minimal_result(document: Document, fallbacks_used: tuple[str, ...] = ()) -> ExtractionResult:
    """The worst-case result: no data, minimum confidence, manual review."""
    return ExtractionResult(
        sales_vat=(),
        purchase_vat=(),
        total_amount=None,
        vat_rate=None,
        confidence=NO_CANDIDATES_CAP,
        document_type=classify_document(document, RawExtraction()),
        processing_method=ProcessingMethod.FALLBACK,
        validation_flags=_unique([
            ValidationFlag.FALLBACK_PROCESSING_USED,
            ValidationFlag.FALLBACK_FAILED,
            ValidationFlag.NO_VAT_AMOUNTS_FOUND,
            ValidationFlag.LOW_CONFIDENCE,
            ValidationFlag.MANUAL_REVIEW_REQUIRED,
        ]),
        irish_vat_compliant=False,
        error_recovery=ErrorRecovery(
            had_errors=True,
            recovery_method="MINIMAL_RESPONSE",
            fallbacks_used=(*fallbacks_used, "EMPTY_RESULT"),
        ),
        extracted_text="Fallback processing found no VAT data - manual review required",
    )


def _checked_vat_number(
    text: str, document: Document, flags: list[ValidationFlag]
) -> str | None:
    """The printed VAT number when it is a valid Irish one; flags it otherwise."""
    printed = find_vat_number(text)
    if printed is None:
        return None
    check = validate_irish_vat_number(printed)
    if not check.is_valid:
        flags.append(ValidationFlag.INVALID_VAT_NUMBER)
        Log.debug(f"{document.filename}: VAT number {printed} rejected: {check.errors}")
        return None
    for warning in check.warnings:
        Log.debug(f"{document.filename}: {warning}")
    return check.vat_number


def classify_document(document: Document, raw: RawExtraction) -> DocumentType:
    """Document type from the declared category, refined by receipt wording."""
    if document.category is DocumentCategory.BANK_STATEMENT:
        return DocumentType.BANK_STATEMENT
    if document.category is DocumentCategory.OTHER:
        return DocumentType.OTHER

    hint = (raw.document_type_hint or "").lower()
    text = raw.text[:EXTRACTED_TEXT_LIMIT * 4].lower()
    is_receipt = hint == "receipt" or (not hint and "receipt" in text and "invoice" not in text)
    if document.category is DocumentCategory.SALES_INVOICE:
        return DocumentType.SALES_RECEIPT if is_receipt else DocumentType.SALES_INVOICE
    return DocumentType.PURCHASE_RECEIPT if is_receipt else DocumentType.PURCHASE_INVOICE


def _cents(value: Decimal) -> Decimal:
    if not is_sane_amount(value):
        return value
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _to_float(value: Decimal) -> float:
    return float(value)


def _unique(flags: list[ValidationFlag]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(flag.value for flag in flags))
