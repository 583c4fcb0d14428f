from collections.abc import Iterable
from decimal import Decimal

from vat_extraction.logging.logger import Log

MIN_AMOUNT_EXCLUSIVE = Decimal("0")
MAX_AMOUNT_EXCLUSIVE = Decimal("100000")
MAX_CANDIDATES = 5


def is_sane_amount(value: Decimal) -> bool:
    """True for amounts strictly between 0 and 100000."""
    return MIN_AMOUNT_EXCLUSIVE < value < MAX_AMOUNT_EXCLUSIVE


def filter_sane_amounts(values: Iterable[Decimal]) -> tuple[list[Decimal], list[Decimal]]:
    """Split amounts into (accepted, rejected) by the sanity band.

    Line-item IDs and reference numbers picked up by loose patterns tend to
    fall outside the band and are rejected here.
    """
    accepted: list[Decimal] = []
    rejected: list[Decimal] = []
    for value in values:
        if is_sane_amount(value):
            accepted.append(value)
        else:
            rejected.append(value)
    if rejected:
        Log.debug(f"Rejected {len(rejected)} out-of-range amounts: {[str(v) for v in rejected]}")
    return accepted, rejected


def deduplicate_amounts(values: Iterable[Decimal], limit: int = MAX_CANDIDATES) -> list[Decimal]:
    """Collapse numerically equal amounts, sort descending, keep at most `limit`."""
    unique: dict[Decimal, Decimal] = {}
    for value in values:
        unique.setdefault(value.normalize(), value)
    return sorted(unique.values(), reverse=True)[:limit]
