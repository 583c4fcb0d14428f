from decimal import Decimal, InvalidOperation

import pytest

from vat_extraction.patterns.tabular import (
    cell_to_decimal,
    find_header_row,
    find_tax_columns,
    is_tax_column,
    sum_tax_columns,
)


class TestTaxColumnDetection:
    def test_tax_amount_headers_match(self) -> None:
        assert is_tax_column("Item Tax Amt.")
        assert is_tax_column("Shipping Tax Amt.")
        assert is_tax_column("Order Tax Amount")

    def test_headers_without_amount_do_not_match(self) -> None:
        assert not is_tax_column("Tax Class")
        assert not is_tax_column("Amount")
        assert not is_tax_column(None)

    def test_find_tax_columns_returns_indexes(self) -> None:
        header = ["Order ID", "Item Tax Amt.", "Total", "Shipping Tax Amt."]
        assert find_tax_columns(header) == [1, 3]

    def test_header_row_skips_blank_rows(self) -> None:
        grid = [[None, ""], ["  ", None], ["Order", "Tax Amt"]]
        assert find_header_row(grid) == 2

    def test_no_header_row(self) -> None:
        assert find_header_row([[None], [""]]) is None


class TestCellToDecimal:
    def test_float_keeps_short_repr(self) -> None:
        assert cell_to_decimal(3.45) == Decimal("3.45")

    def test_int(self) -> None:
        assert cell_to_decimal(23) == Decimal(23)

    def test_numeric_string(self) -> None:
        assert cell_to_decimal("1,250.10") == Decimal("1250.10")

    def test_non_numeric_cells(self) -> None:
        assert cell_to_decimal(None) is None
        assert cell_to_decimal(True) is None
        assert cell_to_decimal("n/a") is None
        assert cell_to_decimal(float("nan")) is None


class TestSumTaxColumns:
    def test_woocommerce_export_sums_exactly(self) -> None:
        grid = [
            ["Item Tax Amt.", "Shipping Tax Amt."],
            [23.00, 3.45],
            [46.00, 3.45],
        ]
        summary = sum_tax_columns(grid)
        assert summary is not None
        assert summary.grand_total == Decimal("75.90")
        assert summary.column_totals == {
            "Item Tax Amt.": Decimal("69.00"),
            "Shipping Tax Amt.": Decimal("6.90"),
        }
        assert summary.rows_scanned == 2

    def test_many_small_floats_do_not_drift(self) -> None:
        grid = [["Tax Amount"]] + [[0.1] for _ in range(1000)]
        summary = sum_tax_columns(grid)
        assert summary is not None
        assert summary.grand_total == Decimal("100.00")

    def test_short_rows_and_text_cells_are_skipped(self) -> None:
        grid = [["Order", "Tax Amt"], [1], [2, "pending"], [3, "12.50"]]
        summary = sum_tax_columns(grid)
        assert summary is not None
        assert summary.grand_total == Decimal("12.50")

    def test_no_tax_columns(self) -> None:
        assert sum_tax_columns([["Order", "Total"], [1, 10.0]]) is None

    def test_empty_grid(self) -> None:
        assert sum_tax_columns([]) is None

    def test_total_beyond_cent_precision_raises(self) -> None:
        with pytest.raises(InvalidOperation):
            sum_tax_columns([["Item Tax Amt."], ["1e30"]])
