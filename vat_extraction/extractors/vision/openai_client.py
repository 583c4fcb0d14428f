import httpx
import openai

from vat_extraction.extractors.exceptions import ServiceError
from vat_extraction.extractors.vision.client_base import BaseVisionClient


class OpenAIVisionClient(BaseVisionClient):
    """Vision client built on the OpenAI-compatible chat completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_vision_completion(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        image_data_urls: list[str],
        json_schema: dict[str, object],
    ) -> str:
        content: list[dict[str, object]] = [{"type": "text", "text": prompt}]
        content.extend(
            {"type": "image_url", "image_url": {"url": url, "detail": "high"}}
            for url in image_data_urls
        )
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "vat_extraction",
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[{"role": "user", "content": content}],  # type: ignore[list-item,misc]
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ServiceError(f"Vision provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ServiceError(f"Vision provider API error: {exc}") from exc

        if not response.choices:
            raise ServiceError("Vision provider returned no choices")
        reply = response.choices[0].message.content
        if reply is None:
            raise ServiceError("Vision provider returned an empty response")
        return reply

    def ping(self) -> bool:
        try:
            self._client.models.list()
        except (openai.APIError, httpx.HTTPError):
            return False
        return True
