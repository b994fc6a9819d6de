"""
Tests for the taxdocs command line.
"""
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from taxdocs.cli import build_parser, main
from taxdocs.services.reporting import CSV_COLUMNS

from samples import COMPUTERSHARE_SAMPLE, INVOICE_SAMPLE, LINK_SAMPLE


def write(directory: Path, name: str, text: str) -> str:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestParseCommand:
    """Tests for `taxdocs parse`."""

    def test_parse_text_statement(self, temp_dir: Path, capsys):
        path = write(temp_dir, "cba.txt", COMPUTERSHARE_SAMPLE)
        assert main(["parse", path]) == 0
        out = capsys.readouterr().out
        assert "Company: COMMONWEALTH BANK OF AUSTRALIA" in out
        assert "Parsed 1/1 statement(s), 0 failed" in out

    def test_failed_statement_sets_exit_code(self, temp_dir: Path, capsys):
        good = write(temp_dir, "cba.txt", COMPUTERSHARE_SAMPLE)
        bad = write(temp_dir, "notes.txt", "nothing to see")
        assert main(["parse", good, bad]) == 1
        out = capsys.readouterr().out
        assert "ERROR: Could not extract dividend amount" in out
        assert "Parsed 1/2 statement(s), 1 failed" in out

    def test_missing_file(self, temp_dir: Path, capsys):
        assert main(["parse", str(temp_dir / "missing.txt")]) == 1
        assert "ERROR: Could not read file" in capsys.readouterr().out

    def test_csv_output(self, temp_dir: Path, capsys):
        paths = [write(temp_dir, "cba.txt", COMPUTERSHARE_SAMPLE), write(temp_dir, "bhp.txt", LINK_SAMPLE)]
        csv_path = temp_dir / "dividends.csv"
        assert main(["parse", *paths, "--csv", str(csv_path)]) == 0
        lines = csv_path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == ",".join(CSV_COLUMNS)
        assert len(lines) == 3

    def test_summary_output(self, temp_dir: Path, capsys):
        path = write(temp_dir, "cba.txt", COMPUTERSHARE_SAMPLE)
        assert main(["parse", path, "--summary"]) == 0
        out = capsys.readouterr().out
        assert (
            "2023-2024: 1 dividend(s), total $1075.00, franking credits $461.36, gross income $1536.36"
            in out
        )

    def test_json_output(self, temp_dir: Path, capsys):
        path = write(temp_dir, "cba.txt", COMPUTERSHARE_SAMPLE)
        assert main(["parse", path, "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["successful"] == 1
        assert payload["dividends"][0]["asx_code"] == "CBA"

    def test_pdf_statement(self, temp_dir: Path, sample_pdf_content, capsys):
        """Test PDF files go through the pdfplumber extractor."""
        path = temp_dir / "link.pdf"
        path.write_bytes(sample_pdf_content)
        page = MagicMock()
        page.extract_text.return_value = LINK_SAMPLE
        opened = MagicMock()
        opened.__enter__.return_value.pages = [page]

        with patch("taxdocs.services.text_extraction.pdfplumber.open", return_value=opened):
            assert main(["parse", str(path)]) == 0
        assert "Company: BHP Group Limited" in capsys.readouterr().out


class TestClassifyCommand:
    """Tests for `taxdocs classify`."""

    def test_classify_exports_json(self, temp_dir: Path, capsys):
        paths = [write(temp_dir, "cba.txt", COMPUTERSHARE_SAMPLE), write(temp_dir, "inv.txt", INVOICE_SAMPLE)]
        assert main(["classify", *paths]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert [row["type"] for row in rows] == ["dividend_statement", "invoice"]
        assert rows[0]["file"] == paths[0]
        assert rows[0]["recommended_action"] == "accept"

    def test_unreadable_file_is_unknown(self, temp_dir: Path, capsys):
        path = temp_dir / "broken.pdf"
        path.write_bytes(b"not a pdf")
        assert main(["classify", str(path)]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["type"] == "unknown"
        assert rows[0]["recommended_action"] == "manual"


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
