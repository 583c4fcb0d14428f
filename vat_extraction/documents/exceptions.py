class DocumentError(Exception):
    """Base exception for document loading errors."""


class DocumentNotFoundError(DocumentError):
    """Raised when a document reference cannot be resolved."""
