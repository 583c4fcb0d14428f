from abc import ABC, abstractmethod


class BasePdfTextReader(ABC):
    """Contract for PDF text-layer readers.

    Only the first ``max_pages`` pages are read; ``None`` reads them all.
    """

    name: str = ""

    def __init__(self, max_pages: int | None = None) -> None:
        self.max_pages = max_pages

    @abstractmethod
    def read_pages(self, pdf_bytes: bytes) -> list[str]:
        """Return the text layer of each page, in page order.

        Raises:
            PdfReadError: if the bytes are not a readable PDF.
        """

    def read_text(self, pdf_bytes: bytes) -> str:
        """Join all page texts into one string."""
        return "\n".join(page for page in self.read_pages(pdf_bytes) if page).strip()
