from vat_extraction.config.settings import Settings
from vat_extraction.pdf.base import BasePdfTextReader
from vat_extraction.pdf.pdfplumber_reader import PdfPlumberReader
from vat_extraction.pdf.pymupdf_reader import PyMuPdfReader
from vat_extraction.pdf.renderer import PdfPageRenderer


class PdfFactory:
    """Builds the PDF text reader and page renderers the extractors use."""

    READERS: dict[str, type[BasePdfTextReader]] = {
        "pdfplumber": PdfPlumberReader,
        "pymupdf": PyMuPdfReader,
    }

    @classmethod
    def text_reader(cls, settings: Settings) -> BasePdfTextReader:
        """Reader for settings.pdf_engine, limited to settings.pdf_text_max_pages.

        Raises:
            ValueError: if the engine is unknown.
        """
        engine = settings.pdf_engine.lower()
        reader_cls = cls.READERS.get(engine)
        if reader_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.READERS)}"
            )
        return reader_cls(max_pages=settings.pdf_text_max_pages)

    @staticmethod
    def vision_renderer(settings: Settings) -> PdfPageRenderer:
        return PdfPageRenderer(dpi=settings.vision_dpi, max_pages=settings.vision_max_pages)

    @staticmethod
    def ocr_renderer(settings: Settings) -> PdfPageRenderer:
        return PdfPageRenderer(dpi=settings.ocr_dpi, max_pages=settings.ocr_max_pages)
