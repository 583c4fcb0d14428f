import mimetypes
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from vat_extraction.documents.exceptions import DocumentNotFoundError
from vat_extraction.documents.models import Document, DocumentCategory

_EXTENSION_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
    ".txt": "text/plain",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(path: Path) -> str:
    """MIME type from a file extension, defaulting to octet-stream."""
    known = _EXTENSION_MIME_TYPES.get(path.suffix.lower())
    if known:
        return known
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or DEFAULT_MIME_TYPE


class DocumentSource(ABC):
    """Resolves a document reference into a Document."""

    @abstractmethod
    def load(self, ref: str) -> Document:
        """Return the document for ref.

        Raises:
            DocumentNotFoundError: if ref does not resolve.
        """


class FileDocumentSource(DocumentSource):
    """Reads documents from a directory; refs are paths relative to it."""

    FILES_ROOT = Path("/app/files")

    def __init__(
        self,
        files_root: Path | None = None,
        categories: Mapping[str, DocumentCategory] | None = None,
        default_category: DocumentCategory = DocumentCategory.OTHER,
    ) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT
        self._categories = dict(categories or {})
        self._mime_types: dict[str, str] = {}
        self._default_category = default_category

    def register(
        self,
        ref: str,
        category: DocumentCategory,
        mime_type: str | None = None,
    ) -> None:
        """Assign a category (and optionally a MIME type) to a ref."""
        self._categories[ref] = category
        if mime_type:
            self._mime_types[ref] = mime_type

    def load(self, ref: str) -> Document:
        path = self._resolve_path(ref)
        if not path.is_file():
            raise DocumentNotFoundError(f"File not found: {path}")
        return Document(
            content=path.read_bytes(),
            mime_type=self._mime_types.get(ref) or guess_mime_type(path),
            filename=path.name,
            category=self._categories.get(ref, self._default_category),
            ref=ref,
        )

    def _resolve_path(self, ref: str) -> Path:
        root = self._files_root.resolve()
        path = (root / ref).resolve()
        if not path.is_relative_to(root):
            raise DocumentNotFoundError(f"Reference {ref!r} escapes {root}")
        return path
