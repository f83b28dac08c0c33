"""Tests for the formdoc CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from formdoc.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fields_file(tmp_path: Path, sample_fields_raw: list[dict[str, Any]]) -> Path:
    path = tmp_path / "fields.json"
    path.write_text(json.dumps(sample_fields_raw))
    return path


@pytest.fixture
def record_file(tmp_path: Path, sample_record: dict[str, Any]) -> Path:
    path = tmp_path / "record.json"
    path.write_text(json.dumps(sample_record))
    return path


class TestSectionsCommand:
    def test_lists_document_sections(self, fields_file: Path) -> None:
        result = runner.invoke(app, ["sections", str(fields_file)])
        assert result.exit_code == 0
        for title in ("Applicant", "Items", "Findings", "General"):
            assert title in result.output
        assert "4 sections" in result.output

    def test_form_grouping_hides_pdf_only_fields(self, fields_file: Path) -> None:
        result = runner.invoke(app, ["sections", str(fields_file), "--form"])
        assert result.exit_code == 0
        assert "3 sections" in result.output

    def test_accepts_wrapped_field_list(self, tmp_path: Path, sample_fields_raw: list[dict[str, Any]]) -> None:
        path = tmp_path / "template.json"
        path.write_text(json.dumps({"fields": sample_fields_raw}))
        assert runner.invoke(app, ["sections", str(path)]).exit_code == 0

    def test_rejects_non_list(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text('"nope"')
        assert runner.invoke(app, ["sections", str(path)]).exit_code != 0

    def test_rejects_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert runner.invoke(app, ["sections", str(path)]).exit_code != 0


class TestDescribeCommand:
    def test_prints_description(self, fields_file: Path, record_file: Path) -> None:
        result = runner.invoke(app, ["describe", str(fields_file), str(record_file)])
        assert result.exit_code == 0
        assert '"title": "Inspection 42"' in result.output

    def test_writes_description(self, fields_file: Path, record_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "description.json"
        result = runner.invoke(app, ["describe", str(fields_file), str(record_file), "-o", str(out)])
        assert result.exit_code == 0
        assert json.loads(out.read_text())["page_size"] == "LETTER"

    def test_header_option(self, fields_file: Path, record_file: Path, tmp_path: Path) -> None:
        header = tmp_path / "header.json"
        header.write_text(json.dumps({"documentCode": "FRM-9", "documentTitle": "Audit"}))
        out = tmp_path / "description.json"
        result = runner.invoke(
            app, ["describe", str(fields_file), str(record_file), "--header", str(header), "-o", str(out)]
        )
        assert result.exit_code == 0
        assert "FRM-9" in out.read_text()

    def test_empty_template_fails(self, tmp_path: Path, record_file: Path) -> None:
        fields = tmp_path / "empty.json"
        fields.write_text("[]")
        result = runner.invoke(app, ["describe", str(fields), str(record_file)])
        assert result.exit_code == 1


class TestRenderCommand:
    def test_writes_pdf(self, fields_file: Path, record_file: Path, tmp_path: Path) -> None:
        pytest.importorskip("reportlab")
        result = runner.invoke(app, ["render", str(fields_file), str(record_file), "-o", str(tmp_path / "out")])
        assert result.exit_code == 0
        pdf = tmp_path / "out" / "Inspection 42.pdf"
        assert pdf.read_bytes().startswith(b"%PDF")
