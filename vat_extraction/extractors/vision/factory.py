from typing import ClassVar

from vat_extraction.config.settings import Settings
from vat_extraction.extractors.vision.client_base import BaseVisionClient
from vat_extraction.extractors.vision.example_client import ExampleVisionClient
from vat_extraction.extractors.vision.openai_client import OpenAIVisionClient


class VisionClientFactory:
    """Creates the vision client for the configured provider."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseVisionClient:
        provider = settings.vision_provider.lower()
        if provider == "example":
            return ExampleVisionClient()
        return OpenAIVisionClient(
            api_key=settings.vision_api_key,
            timeout_seconds=settings.vision_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.vision_base_url.strip()
            if not url:
                raise ValueError(
                    "vision_base_url is required for vision_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return settings.vision_base_url.strip() or default_base_url
        supported = ["example", "openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]
        raise ValueError(f"Unknown vision provider '{provider}'. Choose from: {supported}")
