from abc import ABC, abstractmethod


class BaseVisionClient(ABC):
    """Contract for provider-specific vision model clients."""

    @abstractmethod
    def create_vision_completion(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        image_data_urls: list[str],
        json_schema: dict[str, object],
    ) -> str:
        """Return the provider's reply as plain text."""

    def ping(self) -> bool:
        """Lightweight reachability check. Clients without one report healthy."""
        return True
