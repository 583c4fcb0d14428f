class PdfReadError(Exception):
    """Raised when PDF bytes cannot be opened or read."""
