import pytest

from vat_extraction.config.settings import Settings
from vat_extraction.documents.models import Document, DocumentCategory
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import UnsupportedFormatError
from vat_extraction.extractors.factory import ExtractorRegistry, ExtractorRegistryFactory
from vat_extraction.extractors.models import CapabilityKind, RawExtraction
from vat_extraction.extractors.text_extractor import PlainTextExtractor
from vat_extraction.extractors.vision.vision_extractor import VisionExtractor


class _Stub(BaseExtractor):
    def __init__(self, kind: CapabilityKind) -> None:
        self.kind = kind  # type: ignore[misc]

    def extract(self, document: Document) -> RawExtraction:
        return RawExtraction()


def _document(mime_type: str) -> Document:
    return Document(
        content=b"x",
        mime_type=mime_type,
        filename="doc",
        category=DocumentCategory.OTHER,
    )


def _registry(*kinds: CapabilityKind) -> ExtractorRegistry:
    return ExtractorRegistry({kind: _Stub(kind) for kind in kinds})


class TestPreferredKinds:
    @pytest.mark.parametrize(
        ("mime_type", "expected"),
        [
            ("application/pdf", [CapabilityKind.AI, CapabilityKind.OCR, CapabilityKind.TEXT]),
            ("image/jpeg", [CapabilityKind.AI, CapabilityKind.OCR]),
            ("text/csv", [CapabilityKind.TABULAR]),
            (
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                [CapabilityKind.TABULAR],
            ),
            ("text/plain; charset=utf-8", [CapabilityKind.TEXT]),
        ],
    )
    def test_by_mime_type(self, mime_type: str, expected: list[CapabilityKind]) -> None:
        assert ExtractorRegistry.preferred_kinds(_document(mime_type)) == expected


class TestPrimaryChain:
    def test_skips_unregistered_kinds(self) -> None:
        registry = _registry(CapabilityKind.OCR, CapabilityKind.TEXT)
        chain = registry.primary_chain(_document("application/pdf"))
        assert [e.kind for e in chain] == [CapabilityKind.OCR, CapabilityKind.TEXT]

    def test_unsupported_when_nothing_registered(self) -> None:
        registry = _registry(CapabilityKind.TEXT)
        with pytest.raises(UnsupportedFormatError, match="image/png"):
            registry.primary_chain(_document("image/png"))

    def test_kind_mismatch_rejected(self) -> None:
        with pytest.raises(ValueError, match="registered as ocr"):
            ExtractorRegistry({CapabilityKind.OCR: _Stub(CapabilityKind.TEXT)})

    def test_extractors_is_a_copy(self) -> None:
        registry = _registry(CapabilityKind.TEXT)
        registry.extractors.clear()
        assert registry.kinds == [CapabilityKind.TEXT]


class TestExtractorRegistryFactory:
    def test_builds_enabled_capabilities(self) -> None:
        registry = ExtractorRegistryFactory.create(
            Settings(vision_provider="example", ocr_enabled=False)
        )
        assert registry.kinds == [CapabilityKind.AI, CapabilityKind.TABULAR, CapabilityKind.TEXT]
        assert isinstance(registry.extractors[CapabilityKind.AI], VisionExtractor)
        assert isinstance(registry.extractors[CapabilityKind.TEXT], PlainTextExtractor)

    def test_text_is_always_registered(self) -> None:
        registry = ExtractorRegistryFactory.create(
            Settings(vision_enabled=False, ocr_enabled=False, tabular_enabled=False)
        )
        assert registry.kinds == [CapabilityKind.TEXT]
