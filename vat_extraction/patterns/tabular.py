"""Tax-column detection and exact summing for spreadsheet grids."""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from vat_extraction.patterns.vat_patterns import parse_amount

_CENT = Decimal("0.01")
_TAX_TOKEN = "tax"
_AMOUNT_TOKENS = ("amt", "amount")

Grid = Sequence[Sequence[object]]


@dataclass(frozen=True)
class TaxColumnSummary:
    """Per-column and grand totals for every detected tax column."""

    header_row: int
    columns: list[str] = field(default_factory=list)
    column_totals: dict[str, Decimal] = field(default_factory=dict)
    grand_total: Decimal = Decimal("0.00")
    rows_scanned: int = 0


def is_tax_column(header: object) -> bool:
    """A header names a tax column iff it mentions tax and an amount."""
    if header is None:
        return False
    label = str(header).lower()
    return _TAX_TOKEN in label and any(token in label for token in _AMOUNT_TOKENS)


def find_tax_columns(header: Sequence[object]) -> list[int]:
    """Indexes of tax columns in a header row."""
    return [index for index, cell in enumerate(header) if is_tax_column(cell)]


def find_header_row(grid: Grid) -> int | None:
    """Index of the first row with at least one non-blank cell."""
    for index, row in enumerate(grid):
        if any(not _is_blank(cell) for cell in row):
            return index
    return None


def cell_to_decimal(cell: object) -> Decimal | None:
    """Numeric value of a spreadsheet cell, or None for non-numeric cells."""
    if cell is None or isinstance(cell, bool):
        return None
    if isinstance(cell, Decimal):
        return cell if cell.is_finite() else None
    if isinstance(cell, int):
        return Decimal(cell)
    if isinstance(cell, float):
        if not math.isfinite(cell):
            return None
        # repr-based conversion keeps 3.45 as 3.45 instead of its binary expansion
        return Decimal(str(cell))
    if isinstance(cell, str):
        return parse_amount(cell)
    return None


def sum_tax_columns(grid: Grid) -> TaxColumnSummary | None:
    """Sum every numeric cell below the header in each tax column.

    Returns None when the grid has no header row or no tax columns. Raises
    decimal.InvalidOperation when a total has too many digits to round to cents.
    """
    header_index = find_header_row(grid)
    if header_index is None:
        return None
    header = grid[header_index]
    tax_columns = find_tax_columns(header)
    if not tax_columns:
        return None

    labels = [str(header[i]).strip() for i in tax_columns]
    totals = {label: Decimal("0") for label in labels}
    rows = grid[header_index + 1:]
    for row in rows:
        for index, label in zip(tax_columns, labels):
            if index >= len(row):
                continue
            value = cell_to_decimal(row[index])
            if value is not None:
                totals[label] += value

    column_totals = {label: total.quantize(_CENT) for label, total in totals.items()}
    grand_total = sum(totals.values(), Decimal("0")).quantize(_CENT)
    return TaxColumnSummary(
        header_row=header_index,
        columns=labels,
        column_totals=column_totals,
        grand_total=grand_total,
        rows_scanned=len(rows),
    )


def _is_blank(cell: object) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())
