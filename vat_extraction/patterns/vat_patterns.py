"""Regex tiers for locating VAT amounts, totals and rates in document text.

Two tiers are applied in order:

1. PRIMARY - structured patterns anchored on "VAT"/"Tax" keywords, rated VAT
   lines and currency-prefixed amounts next to those keywords.
2. FALLBACK - the loosest possible rules (any currency-prefixed number, a
   keyword followed by any number). Only used once the pipeline is degraded.

All matching runs on lower-cased, whitespace-collapsed text truncated to
MAX_SCAN_CHARS.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from vat_extraction.extractors.models import AmountCandidate

MAX_SCAN_CHARS = 10_000

_CENT = Decimal("0.01")
_NUMBER = r"([0-9][0-9,]*\.?[0-9]*)"
# an amount is never the start of a percentage, even after backtracking
_AMOUNT = rf"{_NUMBER}(?![0-9.,]*\s*%)"
_CURRENCY = r"(?:[€£$]|eur(?![a-z]))"
_RATE_LABEL = r"\s*@?\s*\(?\s*[0-9.]+\s*%"


class PatternTier(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


PRIMARY_VAT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("vat", re.compile(rf"(?:total\s+)?vat[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    ("vat_amount", re.compile(rf"vat\s*amount[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    ("tax", re.compile(rf"(?:total\s+)?tax[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    ("vat_at_23", re.compile(rf"vat\s*@?\s*23%[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    ("vat_at_13_5", re.compile(rf"vat\s*@?\s*13\.5%[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    ("vat_at_9", re.compile(rf"vat\s*@?\s*9%[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    (
        "vat_at_other_rate",
        re.compile(
            rf"vat\s*@?\s*(?!(?:23|13\.5|9)%)[0-9]{{1,2}}(?:\.[0-9]{{1,2}})?%[:\s]*{_CURRENCY}?\s*{_AMOUNT}"
        ),
    ),
    # "€100.00 VAT 23% €23.00": the net amount sits in front of a rate label, not a VAT figure
    ("currency_vat", re.compile(rf"{_CURRENCY}\s*{_AMOUNT}\s*vat(?!{_RATE_LABEL})")),
    ("currency_tax", re.compile(rf"{_CURRENCY}\s*{_AMOUNT}\s*tax(?!{_RATE_LABEL})")),
    ("vat_rate_line", re.compile(rf"vat\s*\([0-9.]+%\)[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
    ("cain_bhreisluacha", re.compile(rf"cáin\s*bhreisluacha[:\s]*{_CURRENCY}?\s*{_AMOUNT}")),
)

FALLBACK_VAT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("any_currency", re.compile(rf"{_CURRENCY}\s*{_AMOUNT}")),
    ("vat_keyword", re.compile(rf"vat\D{{0,20}}?{_AMOUNT}")),
    ("tax_keyword", re.compile(rf"tax\D{{0,20}}?{_AMOUNT}")),
)

_PREFERRED_TOTAL_PATTERNS = (
    re.compile(rf"grand\s*total[:\s]*{_CURRENCY}?\s*{_NUMBER}"),
    re.compile(rf"amount\s*due[:\s]*{_CURRENCY}?\s*{_NUMBER}"),
    re.compile(rf"total\s*(?:due|payable)[:\s]*{_CURRENCY}?\s*{_NUMBER}"),
)
_TOTAL_PATTERN = re.compile(rf"total[:\s]*{_CURRENCY}?\s*{_NUMBER}")

_VAT_NUMBER_PATTERN = re.compile(
    r"vat\s*(?:reg(?:istration)?\.?\s*)?(?:no\.?|number|#)\s*:?\s*([a-z]{2}\s?[0-9]{5,9}(?:\s?[a-z]{1,2})?)\b"
)

_RATE_PATTERNS = (
    re.compile(r"vat\s*@?\s*\(?\s*([0-9]{1,2}(?:\.[0-9]{1,2})?)\s*%"),
    re.compile(r"([0-9]{1,2}(?:\.[0-9]{1,2})?)\s*%\s*vat"),
    re.compile(r"(?:vat\s*)?rate[:\s]+([0-9]{1,2}(?:\.[0-9]{1,2})?)\s*%"),
)

_THOUSANDS = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_DECIMAL_COMMA = re.compile(r"^\d+,\d{1,2}$")


def normalize_text(text: str, limit: int = MAX_SCAN_CHARS) -> str:
    """Lower-case, collapse whitespace and truncate text for pattern matching."""
    return re.sub(r"\s+", " ", text[:limit].lower()).strip()


def parse_amount(raw: str) -> Decimal | None:
    """Parse an amount string into a Decimal, or None if it is not numeric.

    Handles thousands separators (1,234.56) and OCR decimal commas (5,59).
    """
    cleaned = re.sub(r"[€£$¥\s]", "", raw).rstrip(".,")
    if not cleaned:
        return None
    if _THOUSANDS.match(cleaned):
        cleaned = cleaned.replace(",", "")
    elif _DECIMAL_COMMA.match(cleaned):
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def find_vat_amounts(text: str, tier: PatternTier = PatternTier.PRIMARY) -> list[AmountCandidate]:
    """Run one regex tier over text and return every positive amount found."""
    patterns = PRIMARY_VAT_PATTERNS if tier is PatternTier.PRIMARY else FALLBACK_VAT_PATTERNS
    normalized = normalize_text(text)
    candidates: list[AmountCandidate] = []
    for name, pattern in patterns:
        for match in pattern.finditer(normalized):
            value = parse_amount(match.group(1))
            if value is not None and value > 0:
                candidates.append(AmountCandidate(value=value, source=f"{tier.value}:{name}"))
    return candidates


def find_total_amount(text: str) -> Decimal | None:
    """Find the document total: grand total / amount due first, else the largest total."""
    normalized = normalize_text(text)
    for pattern in _PREFERRED_TOTAL_PATTERNS:
        for match in pattern.finditer(normalized):
            value = parse_amount(match.group(1))
            if value is not None and value > 0:
                return value
    totals = [
        value
        for match in _TOTAL_PATTERN.finditer(normalized)
        if (value := parse_amount(match.group(1))) is not None and value > 0
    ]
    return max(totals) if totals else None


def find_vat_rate(text: str) -> float | None:
    """Find an explicit VAT rate percentage (e.g. 'VAT @ 13.5%')."""
    normalized = normalize_text(text)
    for pattern in _RATE_PATTERNS:
        match = pattern.search(normalized)
        if match:
            return float(match.group(1))
    return None


def find_vat_number(text: str) -> str | None:
    """The VAT registration number printed after a "VAT No" label, if any."""
    match = _VAT_NUMBER_PATTERN.search(normalize_text(text))
    return match.group(1).replace(" ", "").upper() if match else None


def derive_vat_from_total(total: Decimal, rate: float) -> Decimal | None:
    """VAT portion of a VAT-inclusive total: total * rate / (100 + rate)."""
    if rate <= 0 or total <= 0:
        return None
    rate_dec = Decimal(str(rate))
    vat = total * rate_dec / (Decimal(100) + rate_dec)
    return vat.quantize(_CENT, rounding=ROUND_HALF_UP)


def extract_from_text(text: str, tier: PatternTier = PatternTier.PRIMARY) -> dict[str, object]:
    """Apply one tier plus total/rate detection to text.

    Returns a dict with 'candidates', 'total_amount' and 'vat_rate'. When no
    explicit VAT amount is found but both total and rate are, the VAT is
    derived from them.
    """
    candidates = find_vat_amounts(text, tier)
    total = find_total_amount(text) if tier is PatternTier.PRIMARY else None
    rate = find_vat_rate(text)
    if not candidates and total is not None and rate is not None:
        derived = derive_vat_from_total(total, rate)
        if derived is not None:
            candidates.append(AmountCandidate(value=derived, source="derived:total_and_rate"))
    return {"candidates": candidates, "total_amount": total, "vat_rate": rate}
