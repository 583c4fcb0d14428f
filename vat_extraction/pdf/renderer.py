import pymupdf

from vat_extraction.pdf.exceptions import PdfReadError


class PdfPageRenderer:
    """Rasterizes PDF pages to PNG for the vision and OCR paths."""

    def __init__(self, dpi: int = 200, max_pages: int = 3) -> None:
        self._dpi = dpi
        self._max_pages = max_pages

    @property
    def dpi(self) -> int:
        return self._dpi

    @property
    def max_pages(self) -> int:
        return self._max_pages

    def render_png_pages(self, pdf_bytes: bytes) -> list[bytes]:
        """Render up to max_pages leading pages as PNG bytes.

        Raises:
            PdfReadError: if the bytes are not a readable PDF.
        """
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = []
                for index, page in enumerate(doc):
                    if index >= self._max_pages:
                        break
                    pixmap = page.get_pixmap(dpi=self._dpi)
                    pages.append(pixmap.tobytes("png"))
                return pages
        except Exception as exc:
            raise PdfReadError(f"Could not render PDF pages: {exc}") from exc
