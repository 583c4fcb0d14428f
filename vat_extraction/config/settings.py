from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Orchestration
    processing_budget_seconds: float = Field(default=60.0, gt=0)
    adapter_timeout_seconds: float = Field(default=60.0, gt=0)
    adapter_max_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)
    max_concurrent_documents: int = Field(default=4, ge=1)

    # Health monitoring
    health_ttl_seconds: float = Field(default=10.0, ge=0)
    health_probe_timeout_seconds: float = Field(default=2.0, gt=0)
    breaker_failure_threshold: int = Field(default=3, ge=1)
    breaker_success_threshold: int = Field(default=1, ge=1)
    breaker_reset_seconds: float = Field(default=60.0, ge=0)

    # Capabilities
    vision_enabled: bool = True
    ocr_enabled: bool = True
    tabular_enabled: bool = True

    pdf_engine: str = "pdfplumber"
    pdf_text_max_pages: int = Field(default=20, ge=1)

    vision_provider: str = "openai"
    vision_api_key: str = ""
    vision_model_name: str = "gpt-4o-mini"
    vision_base_url: str = ""
    vision_timeout_seconds: int = 30
    vision_temperature: float = 0.0
    vision_max_pages: int = Field(default=2, ge=1)
    vision_dpi: int = Field(default=150, ge=72)

    ocr_language: str = "eng"
    ocr_dpi: int = Field(default=200, ge=72)
    ocr_max_pages: int = Field(default=3, ge=1)

    documents_root: str = "/app/files"
