from decimal import Decimal

import pytest

from vat_extraction.documents.models import Document, DocumentCategory
from vat_extraction.extractors.exceptions import ValidationFailure
from vat_extraction.extractors.models import AmountCandidate, RawExtraction
from vat_extraction.scoring.models import (
    DocumentType,
    ErrorRecovery,
    ProcessingMethod,
    ValidationFlag,
)
from vat_extraction.scoring.validation import (
    build_result,
    classify_document,
    ensure_within_bounds,
    minimal_result,
)


def _doc(category: DocumentCategory = DocumentCategory.SALES_INVOICE) -> Document:
    return Document(
        content=b"%PDF-1.4",
        mime_type="application/pdf",
        filename="inv.pdf",
        category=category,
    )


def _raw(*amounts: str, **kwargs: object) -> RawExtraction:
    return RawExtraction(
        candidates=tuple(AmountCandidate(Decimal(a), "test") for a in amounts),
        **kwargs,  # type: ignore[arg-type]
    )


class TestBuildResult:
    def test_clean_vision_result(self) -> None:
        raw = _raw("23.00", total_amount=Decimal("123.00"), vat_rate=23.0, quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.sales_vat == (23.0,)
        assert result.purchase_vat == ()
        assert result.total_amount == 123.0
        assert result.confidence == 0.9
        assert result.validation_flags == ()
        assert result.irish_vat_compliant is True
        assert result.document_type is DocumentType.SALES_INVOICE
        assert result.error_recovery == ErrorRecovery()

    def test_purchase_amounts_go_to_purchase_bucket(self) -> None:
        raw = _raw("13.50", quality_hint=0.8)
        result = build_result(raw, _doc(DocumentCategory.PURCHASE_INVOICE), ProcessingMethod.PRIMARY_AI)
        assert result.sales_vat == ()
        assert result.purchase_vat == (13.5,)

    @pytest.mark.parametrize("category", [DocumentCategory.BANK_STATEMENT, DocumentCategory.OTHER])
    def test_other_categories_fill_neither_bucket(self, category: DocumentCategory) -> None:
        raw = _raw("23.00", total_amount=Decimal("123.00"), quality_hint=0.9)
        result = build_result(raw, _doc(category), ProcessingMethod.PRIMARY_AI)
        assert result.sales_vat == ()
        assert result.purchase_vat == ()
        assert result.total_amount == 123.0

    def test_out_of_range_amounts_dropped_and_penalized(self) -> None:
        raw = _raw("23.00", "150000", vat_rate=23.0, quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.sales_vat == (23.0,)
        assert ValidationFlag.AMOUNTS_OUT_OF_RANGE.value in result.validation_flags
        assert result.confidence == pytest.approx(0.72)
        assert result.irish_vat_compliant is False

    def test_out_of_range_total_is_dropped(self) -> None:
        raw = _raw("23.00", total_amount=Decimal("250000"), quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.total_amount is None
        assert ValidationFlag.AMOUNTS_OUT_OF_RANGE.value in result.validation_flags

    def test_vat_calculation_mismatch(self) -> None:
        raw = _raw("20.00", total_amount=Decimal("123.00"), vat_rate=23.0, quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert ValidationFlag.VAT_CALCULATION_MISMATCH.value in result.validation_flags
        assert result.confidence == pytest.approx(0.81)

    def test_non_standard_rate(self) -> None:
        raw = _raw("21.00", vat_rate=21.0, quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert ValidationFlag.NON_STANDARD_VAT_RATE.value in result.validation_flags
        assert result.irish_vat_compliant is False

    def test_no_candidates(self) -> None:
        result = build_result(_raw(quality_hint=0.9), _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.confidence == 0.1
        assert result.validation_flags == (
            ValidationFlag.NO_VAT_AMOUNTS_FOUND.value,
            ValidationFlag.LOW_CONFIDENCE.value,
            ValidationFlag.MANUAL_REVIEW_REQUIRED.value,
        )
        assert result.needs_manual_review

    def test_fallback_is_flagged_and_capped(self) -> None:
        raw = _raw("23.00", readability_ratio=1.0)
        result = build_result(raw, _doc(), ProcessingMethod.FALLBACK, fallback=True)
        assert result.confidence == 0.3
        assert ValidationFlag.FALLBACK_PROCESSING_USED.value in result.validation_flags
        assert ValidationFlag.LOW_CONFIDENCE.value in result.validation_flags

    def test_amounts_deduplicated_sorted_and_capped(self) -> None:
        raw = _raw("1", "7", "7.00", "3", "9", "2", "5", "4", quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.sales_vat == (9.0, 7.0, 5.0, 4.0, 3.0)

    def test_amounts_rounded_to_cents(self) -> None:
        raw = _raw("23.005", quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.sales_vat == (23.01,)

    def test_extracted_text_is_truncated(self) -> None:
        raw = _raw("1.00", text="x" * 2000, quality_hint=0.9)
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_AI)
        assert len(result.extracted_text) == 500


class TestClassifyDocument:
    def test_receipt_hint(self) -> None:
        raw = RawExtraction(document_type_hint="receipt")
        assert classify_document(_doc(), raw) is DocumentType.SALES_RECEIPT

    def test_receipt_wording_in_text(self) -> None:
        raw = RawExtraction(text="Thank you! Till receipt #44")
        doc = _doc(DocumentCategory.PURCHASE_INVOICE)
        assert classify_document(doc, raw) is DocumentType.PURCHASE_RECEIPT

    def test_invoice_wording_wins(self) -> None:
        raw = RawExtraction(text="Invoice - receipt of payment")
        assert classify_document(_doc(), raw) is DocumentType.SALES_INVOICE

    def test_bank_statement(self) -> None:
        doc = _doc(DocumentCategory.BANK_STATEMENT)
        assert classify_document(doc, RawExtraction()) is DocumentType.BANK_STATEMENT


class TestMinimalResult:
    def test_minimal_result_shape(self) -> None:
        result = minimal_result(_doc(), ("RAW_TEXT_DECODE",))
        assert result.sales_vat == ()
        assert result.purchase_vat == ()
        assert result.confidence == 0.1
        assert result.processing_method is ProcessingMethod.FALLBACK
        assert result.needs_manual_review
        assert ValidationFlag.FALLBACK_FAILED.value in result.validation_flags
        assert result.error_recovery.recovery_method == "MINIMAL_RESPONSE"
        assert result.error_recovery.fallbacks_used == ("RAW_TEXT_DECODE", "EMPTY_RESULT")

    def test_to_dict_uses_camel_case(self) -> None:
        data = minimal_result(_doc()).to_dict()
        assert data["salesVAT"] == []
        assert data["processingMethod"] == "FALLBACK"
        assert data["irishVATCompliant"] is False
        assert data["errorRecovery"] == {
            "hadErrors": True,
            "recoveryMethod": "MINIMAL_RESPONSE",
            "fallbacksUsed": ["EMPTY_RESULT"],
        }


class TestEnsureWithinBounds:
    def test_no_rejections_passes(self) -> None:
        ensure_within_bounds([])

    def test_rejections_raise_validation_failure(self) -> None:
        with pytest.raises(ValidationFailure, match="150000"):
            ensure_within_bounds([Decimal("150000")])


class TestVatNumber:
    def test_valid_irish_number_is_reported(self) -> None:
        raw = _raw("23.00", quality_hint=0.9, text="Acme Ltd VAT No: IE6388047V")
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_TEXT)
        assert result.vat_number == "IE6388047V"
        assert result.to_dict()["vatNumber"] == "IE6388047V"
        assert ValidationFlag.INVALID_VAT_NUMBER.value not in result.validation_flags

    def test_invalid_number_is_flagged_not_reported(self) -> None:
        raw = _raw("23.00", quality_hint=0.9, text="VAT No: GB123456789")
        result = build_result(raw, _doc(), ProcessingMethod.PRIMARY_TEXT)
        assert result.vat_number is None
        assert ValidationFlag.INVALID_VAT_NUMBER.value in result.validation_flags
        assert result.confidence == 0.9

    def test_no_number_printed(self) -> None:
        result = build_result(_raw("23.00", quality_hint=0.9), _doc(), ProcessingMethod.PRIMARY_AI)
        assert result.vat_number is None
        assert ValidationFlag.INVALID_VAT_NUMBER.value not in result.validation_flags
