import io

import pdfplumber

from vat_extraction.logging.logger import Log
from vat_extraction.pdf.base import BasePdfTextReader
from vat_extraction.pdf.exceptions import PdfReadError


class PdfPlumberReader(BasePdfTextReader):
    """Reads the PDF text layer with pdfplumber, one page at a time."""

    name = "pdfplumber"

    def read_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                page_count = len(pdf.pages)
                texts: list[str] = []
                for page in pdf.pages[: self.max_pages]:
                    texts.append(page.extract_text() or "")
                    # drop the parsed layout objects before the next page
                    page.close()
        except Exception as exc:
            raise PdfReadError(f"pdfplumber could not read PDF: {exc}") from exc
        if page_count > len(texts):
            Log.debug(f"pdfplumber read {len(texts)} of {page_count} pages")
        return texts
