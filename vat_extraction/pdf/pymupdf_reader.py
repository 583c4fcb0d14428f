import pymupdf

from vat_extraction.logging.logger import Log
from vat_extraction.pdf.base import BasePdfTextReader
from vat_extraction.pdf.exceptions import PdfReadError


class PyMuPdfReader(BasePdfTextReader):
    """Reads the PDF text layer with PyMuPDF."""

    name = "pymupdf"

    def read_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                page_count = doc.page_count
                limit = page_count if self.max_pages is None else min(page_count, self.max_pages)
                texts = [doc[index].get_text() for index in range(limit)]
        except Exception as exc:
            raise PdfReadError(f"pymupdf could not read PDF: {exc}") from exc
        if page_count > len(texts):
            Log.debug(f"pymupdf read {len(texts)} of {page_count} pages")
        return texts
