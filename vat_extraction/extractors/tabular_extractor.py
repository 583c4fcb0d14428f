import csv
import io
import zipfile
from decimal import InvalidOperation
from typing import ClassVar

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from vat_extraction.documents.models import Document
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import (
    MalformedDocumentError,
    ServiceError,
    UnsupportedFormatError,
)
from vat_extraction.extractors.models import AmountCandidate, CapabilityKind, RawExtraction
from vat_extraction.logging.logger import Log
from vat_extraction.patterns.tabular import Grid, sum_tax_columns

_CSV_MIME_TYPES = frozenset({"text/csv", "application/csv"})
_EXCEL_MIME_TYPES = frozenset({
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
})


class TabularExtractor(BaseExtractor):
    """Parses spreadsheet exports into a grid and sums their tax columns."""

    kind: ClassVar[CapabilityKind] = CapabilityKind.TABULAR

    DETECTED_COLUMNS_CONFIDENCE: ClassVar[float] = 0.95

    def extract(self, document: Document) -> RawExtraction:
        grids = self._read_grids(document)
        for sheet_name, grid in grids:
            try:
                summary = sum_tax_columns(grid)
            except InvalidOperation as exc:
                raise MalformedDocumentError(
                    f"Tax columns in {document.filename}/{sheet_name} sum beyond cent precision"
                ) from exc
            if summary is None:
                continue
            Log.info(
                f"Tax columns in {document.filename}/{sheet_name}: {summary.columns} "
                f"-> {summary.grand_total} over {summary.rows_scanned} rows"
            )
            source = "tabular:" + "+".join(summary.columns)
            return RawExtraction(
                text=_grid_preview(grid),
                candidates=(AmountCandidate(value=summary.grand_total, source=source),),
                total_amount=summary.grand_total,
                quality_hint=self.DETECTED_COLUMNS_CONFIDENCE,
                details={
                    "sheet": sheet_name,
                    "columns": summary.columns,
                    "column_totals": {k: str(v) for k, v in summary.column_totals.items()},
                    "rows_scanned": summary.rows_scanned,
                },
            )
        Log.warning(f"No tax columns found in {document.filename}")
        return RawExtraction(text=_grid_preview(grids[0][1]) if grids else "")

    def probe(self) -> bool:
        workbook = openpyxl.Workbook()
        workbook.close()
        return True

    def _read_grids(self, document: Document) -> list[tuple[str, Grid]]:
        mime = document.normalized_mime_type
        if mime in _CSV_MIME_TYPES:
            return [("csv", self._read_csv(document))]
        if mime in _EXCEL_MIME_TYPES:
            return self._read_workbook(document)
        raise UnsupportedFormatError(f"Tabular extractor cannot read {mime}")

    @staticmethod
    def _read_csv(document: Document) -> Grid:
        try:
            text = document.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(f"{document.filename} is not valid UTF-8 CSV") from exc
        try:
            dialect = csv.Sniffer().sniff(text[:2048], delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel
        return [row for row in csv.reader(io.StringIO(text), dialect)]

    @staticmethod
    def _read_workbook(document: Document) -> list[tuple[str, Grid]]:
        try:
            workbook = openpyxl.load_workbook(
                io.BytesIO(document.content), read_only=True, data_only=True
            )
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as exc:
            raise MalformedDocumentError(
                f"{document.filename} is not a readable workbook: {exc}"
            ) from exc
        except Exception as exc:
            raise ServiceError(f"openpyxl failed on {document.filename}: {exc}") from exc
        try:
            return [
                (sheet.title, [list(row) for row in sheet.iter_rows(values_only=True)])
                for sheet in workbook.worksheets
            ]
        finally:
            workbook.close()


def _grid_preview(grid: Grid, max_rows: int = 10) -> str:
    lines = []
    for row in grid[:max_rows]:
        lines.append(" | ".join("" if cell is None else str(cell) for cell in row))
    return "\n".join(lines)
