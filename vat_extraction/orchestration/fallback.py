"""Dependency-free extraction used once the pipeline is degraded.

Pure and deterministic: the same bytes always yield the same RawExtraction.
"""

import base64
import binascii

from vat_extraction.documents.models import Document
from vat_extraction.extractors.models import RawExtraction
from vat_extraction.patterns.text_quality import readability_ratio
from vat_extraction.patterns.vat_patterns import (
    MAX_SCAN_CHARS,
    PatternTier,
    find_total_amount,
    find_vat_amounts,
    find_vat_rate,
)

MIN_READABILITY = 0.3

SALVAGED_TEXT = "PRIMARY_TEXT_REUSE"
BASE64_TEXT = "BASE64_TEXT_DECODE"
DECODED_TEXT = "RAW_TEXT_DECODE"
NO_READABLE_TEXT = "NO_READABLE_TEXT"


class FallbackExtractor:
    """Runs the loosest pattern tier over whatever text can be recovered."""

    def __init__(self, max_chars: int = MAX_SCAN_CHARS) -> None:
        self._max_chars = max_chars

    def extract(self, document: Document, salvaged_text: str = "") -> tuple[RawExtraction, str]:
        """Return the fallback extraction and the name of the text source used."""
        text, source = self._recover_text(document, salvaged_text)
        if not text:
            return RawExtraction(readability_ratio=0.0, details={"text_source": source}), source
        return (
            RawExtraction(
                text=text,
                candidates=tuple(find_vat_amounts(text, PatternTier.FALLBACK)),
                total_amount=find_total_amount(text),
                vat_rate=find_vat_rate(text),
                readability_ratio=readability_ratio(text),
                details={"text_source": source},
            ),
            source,
        )

    def _recover_text(self, document: Document, salvaged_text: str) -> tuple[str, str]:
        if salvaged_text.strip():
            return salvaged_text[:self._max_chars], SALVAGED_TEXT

        # bytes uploaded as base64 text are decoded once more before scanning
        unwrapped = _unwrap_base64(document.content)
        if unwrapped is not None:
            text = self._decode(unwrapped)
            if readability_ratio(text) > MIN_READABILITY:
                return text, BASE64_TEXT

        text = self._decode(document.content)
        if readability_ratio(text) > MIN_READABILITY:
            return text, DECODED_TEXT
        return "", NO_READABLE_TEXT

    def _decode(self, content: bytes) -> str:
        # utf-8 uses at most 4 bytes per character
        return content[: self._max_chars * 4].decode("utf-8", errors="replace")[:self._max_chars]


def _unwrap_base64(content: bytes) -> bytes | None:
    compact = b"".join(content.split())
    if len(compact) < 8 or len(compact) % 4:
        return None
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return None
