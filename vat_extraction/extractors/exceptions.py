class ExtractionError(Exception):
    """Base exception for all extraction pipeline errors."""


class ServiceUnavailableError(ExtractionError):
    """Raised when a backing capability is unhealthy or does not answer in time."""


class ServiceError(ServiceUnavailableError):
    """Raised by an adapter when its backing service call fails."""


class ExtractionTimeoutError(ServiceUnavailableError):
    """Raised when an adapter call exceeds its time budget."""


class LowConfidenceExtraction(ExtractionError):
    """Raised when an extraction carries signal but scores below the trust threshold."""


class MalformedDocumentError(ExtractionError):
    """Raised when document bytes do not decode per the declared MIME type."""


class UnsupportedFormatError(ExtractionError):
    """Raised when no adapter is registered for the document's MIME type."""


class ValidationFailure(ExtractionError):
    """Raised when extracted values fail sanity bounds."""
