from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class CapabilityKind(str, Enum):
    """Backing capabilities an extractor can depend on."""

    AI = "ai"
    OCR = "ocr"
    TABULAR = "tabular"
    TEXT = "text"


@dataclass(frozen=True)
class AmountCandidate:
    """A numeric amount found in a document, with the rule that produced it."""

    value: Decimal
    source: str


@dataclass(frozen=True)
class RawExtraction:
    """Untyped output of one extractor attempt."""

    text: str = ""
    candidates: tuple[AmountCandidate, ...] = ()
    total_amount: Decimal | None = None
    vat_rate: float | None = None
    quality_hint: float | None = None
    readability_ratio: float | None = None
    document_date: str | None = None
    document_type_hint: str | None = None
    details: dict[str, object] = field(default_factory=dict)

    @property
    def candidate_values(self) -> list[Decimal]:
        return [c.value for c in self.candidates]
