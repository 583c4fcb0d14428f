from pathlib import Path

import pytest

from vat_extraction.config.settings import Settings


@pytest.fixture()
def files_root(tmp_path: Path) -> Path:
    root = tmp_path / "files"
    root.mkdir()
    return root


@pytest.fixture()
def offline_settings(files_root: Path) -> Settings:
    """Real adapters, no network: example vision client and no tesseract."""
    return Settings(
        vision_provider="example",
        ocr_enabled=False,
        documents_root=str(files_root),
        retry_backoff_seconds=0.0,
    )
