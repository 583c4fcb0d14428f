"""AI vision extractor: asks a vision-capable model for structured VAT fields."""

import base64
import json
from pathlib import Path
from typing import ClassVar

from vat_extraction.documents.models import Document
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import (
    MalformedDocumentError,
    ServiceError,
    UnsupportedFormatError,
)
from vat_extraction.extractors.models import AmountCandidate, CapabilityKind, RawExtraction
from vat_extraction.extractors.vision.client_base import BaseVisionClient
from vat_extraction.extractors.vision.prompt_loader import load_json_schema, load_prompt_template
from vat_extraction.extractors.vision.validator import VisionFields, validate_vision_reply
from vat_extraction.logging.logger import Log
from vat_extraction.pdf.exceptions import PdfReadError
from vat_extraction.pdf.renderer import PdfPageRenderer


class VisionExtractor(BaseExtractor):
    """Extracts date, total and VAT figures with a vision model."""

    kind: ClassVar[CapabilityKind] = CapabilityKind.AI

    def __init__(
        self,
        *,
        client: BaseVisionClient,
        renderer: PdfPageRenderer,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
    ) -> None:
        self._client = client
        self._renderer = renderer
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._json_schema = load_json_schema(json_schema_path)
        self._json_schema_dict = json.loads(self._json_schema)

    def extract(self, document: Document) -> RawExtraction:
        image_urls = self._image_data_urls(document)
        prompt = self._prompt_template.format(
            filename=document.filename,
            category=document.category.value,
            json_schema=self._json_schema,
        )
        raw_reply = self._client.create_vision_completion(
            model=self._model,
            temperature=self._temperature,
            prompt=prompt,
            image_data_urls=image_urls,
            json_schema=self._json_schema_dict,
        )
        Log.debug(f"Vision raw reply for {document.filename}:\n{raw_reply}")
        fields = validate_vision_reply(self._parse_json(raw_reply))
        Log.info(
            f"Vision extracted {len(fields.vat_amounts)} VAT amount(s) from "
            f"{document.filename} (confidence {fields.confidence:.2f})"
        )
        return self._to_raw(fields, raw_reply)

    def probe(self) -> bool:
        return self._client.ping()

    def _image_data_urls(self, document: Document) -> list[str]:
        if document.is_image:
            return [_data_url(document.normalized_mime_type, document.content)]
        if document.is_pdf:
            try:
                pages = self._renderer.render_png_pages(document.content)
            except PdfReadError as exc:
                raise MalformedDocumentError(str(exc)) from exc
            if not pages:
                raise MalformedDocumentError(f"{document.filename} has no pages")
            return [_data_url("image/png", page) for page in pages]
        raise UnsupportedFormatError(
            f"Vision extractor cannot read {document.normalized_mime_type}"
        )

    @staticmethod
    def _to_raw(fields: VisionFields, raw_reply: str) -> RawExtraction:
        return RawExtraction(
            text=raw_reply,
            candidates=tuple(
                AmountCandidate(value=amount, source="ai:vat_amounts")
                for amount in fields.vat_amounts
            ),
            total_amount=fields.total_amount,
            vat_rate=fields.vat_rate,
            quality_hint=fields.confidence,
            document_date=fields.document_date,
            document_type_hint=fields.document_type,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ServiceError(f"Vision reply is not valid JSON: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ServiceError("Vision reply must be a JSON object")
        return parsed


def _data_url(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
