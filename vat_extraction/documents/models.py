import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum

from vat_extraction.extractors.exceptions import MalformedDocumentError

SPREADSHEET_MIME_TYPES = frozenset({
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
    "text/csv",
    "application/csv",
})


class DocumentCategory(str, Enum):
    """User-assigned category; decides which VAT bucket amounts land in."""

    SALES_INVOICE = "SALES_INVOICE"
    PURCHASE_INVOICE = "PURCHASE_INVOICE"
    BANK_STATEMENT = "BANK_STATEMENT"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Document:
    """An uploaded document. Read-only for the whole pipeline."""

    content: bytes
    mime_type: str
    filename: str
    category: DocumentCategory
    ref: str = field(default="")

    def __post_init__(self) -> None:
        if not self.ref:
            object.__setattr__(self, "ref", self.filename)

    @classmethod
    def from_base64(
        cls,
        data: str,
        *,
        mime_type: str,
        filename: str,
        category: DocumentCategory,
        ref: str = "",
    ) -> "Document":
        """Build a Document from base64 upload data.

        Raises:
            MalformedDocumentError: if data is not valid base64.
        """
        try:
            content = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedDocumentError(f"Invalid base64 payload for {filename}: {exc}") from exc
        return cls(
            content=content,
            mime_type=mime_type,
            filename=filename,
            category=category,
            ref=ref,
        )

    @property
    def normalized_mime_type(self) -> str:
        return self.mime_type.split(";", 1)[0].strip().lower()

    @property
    def is_spreadsheet(self) -> bool:
        return self.normalized_mime_type in SPREADSHEET_MIME_TYPES

    @property
    def is_pdf(self) -> bool:
        return self.normalized_mime_type == "application/pdf"

    @property
    def is_image(self) -> bool:
        return self.normalized_mime_type.startswith("image/")
