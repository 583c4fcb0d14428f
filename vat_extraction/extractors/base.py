from abc import ABC, abstractmethod
from typing import ClassVar

from vat_extraction.documents.models import Document
from vat_extraction.extractors.models import CapabilityKind, RawExtraction


class BaseExtractor(ABC):
    """Contract for all extractor adapters.

    Adapters are stateless between calls. The orchestrator runs ``extract``
    in a worker thread and imposes the timeout, so adapters only need to
    raise on failure.
    """

    kind: ClassVar[CapabilityKind]

    @abstractmethod
    def extract(self, document: Document) -> RawExtraction:
        """Extract raw VAT signal from a document.

        Args:
            document: The uploaded document, never mutated.

        Returns:
            RawExtraction with text, amount candidates and quality signals.

        Raises:
            ServiceError: if the backing service fails.
            MalformedDocumentError: if the bytes do not decode per MIME type.
            UnsupportedFormatError: if this adapter cannot handle the MIME type.
        """

    def probe(self) -> bool:
        """Cheap liveness check for the backing capability."""
        return True
