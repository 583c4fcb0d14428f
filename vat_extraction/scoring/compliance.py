"""Irish VAT compliance checks."""

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

IRISH_VAT_RATES: frozenset[float] = frozenset({23.0, 13.5, 9.0, 4.8, 0.0})
VAT_CALCULATION_TOLERANCE = Decimal("0.02")

_IRISH_VAT_NUMBER = re.compile(r"^IE[0-9]{7}[A-Z]{1,2}$")


@dataclass(frozen=True)
class VatNumberCheck:
    is_valid: bool
    vat_number: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def is_valid_irish_rate(rate: float | None) -> bool:
    """True only for a known rate that is exactly one of the Irish rates."""
    return rate is not None and float(rate) in IRISH_VAT_RATES


def vat_matches_total(total: Decimal, rate: float, vat_amount: Decimal) -> bool:
    """Whether vat_amount is the VAT share of a VAT-inclusive total, within 2 cents."""
    rate_dec = Decimal(str(rate))
    expected = (total * rate_dec / (Decimal(100) + rate_dec)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    return abs(expected - vat_amount) <= VAT_CALCULATION_TOLERANCE


def validate_irish_vat_number(vat_number: str) -> VatNumberCheck:
    """Check the IE + 7 digits + 1-2 letters format."""
    cleaned = re.sub(r"\s", "", vat_number or "").upper()
    if not cleaned:
        return VatNumberCheck(is_valid=False, vat_number="", errors=["VAT number is required"])
    if not _IRISH_VAT_NUMBER.match(cleaned):
        errors = ["Invalid Irish VAT number format (expected IE1234567T)"]
        if not cleaned.startswith("IE"):
            errors.append("Irish VAT numbers must start with 'IE'")
        return VatNumberCheck(is_valid=False, vat_number=cleaned, errors=errors)

    warnings = []
    digits = cleaned[2:9]
    if digits == "0000000":
        warnings.append("VAT number appears to contain placeholder digits")
    elif digits == "1234567":
        warnings.append("VAT number appears to be an example/test number")
    return VatNumberCheck(is_valid=True, vat_number=cleaned, warnings=warnings)
