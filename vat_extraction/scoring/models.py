from dataclasses import dataclass, field
from enum import Enum


class ProcessingMethod(str, Enum):
    PRIMARY_AI = "PRIMARY_AI"
    PRIMARY_OCR = "PRIMARY_OCR"
    PRIMARY_TABULAR = "PRIMARY_TABULAR"
    PRIMARY_TEXT = "PRIMARY_TEXT"
    FALLBACK = "FALLBACK"


class DocumentType(str, Enum):
    SALES_INVOICE = "SALES_INVOICE"
    SALES_RECEIPT = "SALES_RECEIPT"
    PURCHASE_INVOICE = "PURCHASE_INVOICE"
    PURCHASE_RECEIPT = "PURCHASE_RECEIPT"
    BANK_STATEMENT = "BANK_STATEMENT"
    OTHER = "OTHER"


class ValidationFlag(str, Enum):
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    MANUAL_REVIEW_REQUIRED = "MANUAL_REVIEW_REQUIRED"
    FALLBACK_PROCESSING_USED = "FALLBACK_PROCESSING_USED"
    FALLBACK_FAILED = "FALLBACK_FAILED"
    AMOUNTS_OUT_OF_RANGE = "AMOUNTS_OUT_OF_RANGE"
    VAT_CALCULATION_MISMATCH = "VAT_CALCULATION_MISMATCH"
    NON_STANDARD_VAT_RATE = "NON_STANDARD_VAT_RATE"
    NO_VAT_AMOUNTS_FOUND = "NO_VAT_AMOUNTS_FOUND"
    INVALID_VAT_NUMBER = "INVALID_VAT_NUMBER"


@dataclass(frozen=True)
class ErrorRecovery:
    had_errors: bool = False
    recovery_method: str = "NONE"
    fallbacks_used: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "hadErrors": self.had_errors,
            "recoveryMethod": self.recovery_method,
            "fallbacksUsed": list(self.fallbacks_used),
        }


@dataclass(frozen=True)
class ExtractionResult:
    """Canonical VAT extraction output for one document."""

    sales_vat: tuple[float, ...]
    purchase_vat: tuple[float, ...]
    total_amount: float | None
    vat_rate: float | None
    confidence: float
    document_type: DocumentType
    processing_method: ProcessingMethod
    validation_flags: tuple[str, ...] = ()
    irish_vat_compliant: bool = False
    error_recovery: ErrorRecovery = field(default_factory=ErrorRecovery)
    extracted_text: str = ""
    document_date: str | None = None
    vat_number: str | None = None

    @property
    def needs_manual_review(self) -> bool:
        return ValidationFlag.MANUAL_REVIEW_REQUIRED.value in self.validation_flags

    def to_dict(self) -> dict[str, object]:
        """Render with the camelCase keys the VAT-return assembly expects."""
        return {
            "salesVAT": list(self.sales_vat),
            "purchaseVAT": list(self.purchase_vat),
            "totalAmount": self.total_amount,
            "vatRate": self.vat_rate,
            "confidence": self.confidence,
            "documentType": self.document_type.value,
            "processingMethod": self.processing_method.value,
            "validationFlags": list(self.validation_flags),
            "irishVATCompliant": self.irish_vat_compliant,
            "errorRecovery": self.error_recovery.to_dict(),
            "extractedText": self.extracted_text,
            "documentDate": self.document_date,
            "vatNumber": self.vat_number,
        }
