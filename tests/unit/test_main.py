import json
from pathlib import Path
from unittest.mock import patch

import pytest

from vat_extraction.main import main, parse_args

INVOICE_TEXT = "Invoice 17\nVAT @ 23%: €23.00\nTotal: €123.00\n"


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VISION_PROVIDER", "example")
    monkeypatch.setenv("OCR_ENABLED", "false")


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args(["invoice.pdf"])
        assert args.path == Path("invoice.pdf")
        assert args.category == "OTHER"
        assert args.mime_type is None
        assert args.force is False

    def test_rejects_unknown_category(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["invoice.pdf", "--category", "EXPENSES"])


class TestMain:
    def test_prints_result_and_audit_trail(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "invoice.txt"
        path.write_text(INVOICE_TEXT, encoding="utf-8")

        with patch("vat_extraction.main.Log.configure"):
            exit_code = main([str(path), "--category", "SALES_INVOICE"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["result"]["salesVAT"] == [23.0]
        assert payload["result"]["processingMethod"] == "PRIMARY_TEXT"
        assert payload["auditTrail"][0]["step"] == "PENDING"
        assert payload["auditTrail"][-1]["step"] == "SUCCESS"
        assert {h["capability"] for h in payload["capabilities"]} == {"ai", "tabular"}

    def test_mime_type_override(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "upload.bin"
        path.write_text(INVOICE_TEXT, encoding="utf-8")

        with patch("vat_extraction.main.Log.configure"):
            main([str(path), "--mime-type", "text/plain", "--category", "PURCHASE_INVOICE"])

        payload = json.loads(capsys.readouterr().out)
        assert payload["result"]["purchaseVAT"] == [23.0]

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("vat_extraction.main.Log.configure"):
            exit_code = main([str(tmp_path / "missing.pdf")])

        assert exit_code == 1
        assert capsys.readouterr().out == ""
