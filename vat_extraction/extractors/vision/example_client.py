"""Offline vision client.

Returns a fixed, valid reply without any network call. Used for local
development and tests, and as the template for new provider clients:
implement BaseVisionClient and register the provider in VisionClientFactory.
"""

import json
from typing import ClassVar

from vat_extraction.extractors.vision.client_base import BaseVisionClient


class ExampleVisionClient(BaseVisionClient):
    """Vision client that always answers with DEFAULT_RESPONSE."""

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "document_date": None,
        "total_amount": None,
        "vat_amounts": [],
        "vat_rate": None,
        "document_type": "other",
        "confidence": 0.0,
    }

    def __init__(self, response: dict[str, object] | None = None) -> None:
        self._response = response if response is not None else self.DEFAULT_RESPONSE

    def create_vision_completion(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        image_data_urls: list[str],
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, prompt, image_data_urls, json_schema
        return json.dumps(self._response)
