"""Tests for the JSONFormatter."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import pytest

from formdoc.builders.document import DocumentBuilder
from formdoc.formatters import IOutputFormatter, JSONFormatter
from formdoc.formatters.description import DocumentDescription
from formdoc.models import FieldDefinition, HeaderConfig


@pytest.fixture
def description(
    sample_fields: list[FieldDefinition],
    sample_record: dict[str, Any],
    header_config: HeaderConfig,
    fixed_now: datetime,
) -> DocumentDescription:
    return DocumentBuilder().build(sample_record, sample_fields, header_config, now=fixed_now)


class TestJSONFormatter:
    def test_format_returns_bytes(self, description: DocumentDescription) -> None:
        assert isinstance(JSONFormatter().format(description), bytes)

    def test_format_is_valid_json(self, description: DocumentDescription) -> None:
        parsed = json.loads(JSONFormatter().format(description))
        assert parsed["title"] == "Inspection 42"
        assert parsed["page_size"] == "LETTER"
        assert len(parsed["content"]) == 4

    def test_header_exported_for_first_page(self, description: DocumentDescription) -> None:
        text = JSONFormatter().format(description).decode()
        assert "Page 1 of 1" in text
        assert "SITE INSPECTION" in text

    def test_no_header(self, description: DocumentDescription) -> None:
        data = JSONFormatter.to_dict(DocumentBuilder().build({}, []))
        assert data["header"] is None

    def test_dates_serialized(self, description: DocumentDescription) -> None:
        parsed = json.loads(JSONFormatter().format(description))
        assert parsed["info"]["creation_date"].startswith("2024-05-01")

    def test_content_type(self) -> None:
        assert JSONFormatter().content_type == "application/json"

    def test_format_to_file(self, description: DocumentDescription, tmp_path) -> None:
        path = tmp_path / "out.json"
        result = JSONFormatter().format_to_file(description, path)
        assert result == path
        assert json.loads(path.read_text())["title"] == "Inspection 42"

    def test_satisfies_protocol(self) -> None:
        assert isinstance(JSONFormatter(), IOutputFormatter)
