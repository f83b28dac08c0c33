"""Shared fixtures for formdoc tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from formdoc.core.config import AppSettings, LayoutConfig
from formdoc.models import FieldDefinition, HeaderConfig, parse_fields


@pytest.fixture
def layout() -> LayoutConfig:
    return LayoutConfig()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_fields_raw() -> list[dict[str, Any]]:
    """Inspection template: a basic section, a table, a choice group and a PDF-only field."""
    return [
        {"id": "title", "label": "Title", "type": "text", "order": 0},
        {"id": "name", "label": "Name", "type": "text", "order": 1, "sectionTitle": "Applicant"},
        {"id": "age", "label": "Age", "type": "number", "order": 2, "sectionTitle": "Applicant"},
        {"id": "born", "label": "Birth date", "type": "date", "order": 3, "sectionTitle": "Applicant"},
        {"id": "notes", "label": "Notes", "type": "textarea", "order": 4, "sectionTitle": "Applicant"},
        {
            "id": "items",
            "label": "Items",
            "type": "repeating_table",
            "order": 5,
            "sectionTitle": "Items",
            "subFields": [
                {"id": "qty", "label": "Quantity", "type": "number", "order": 2},
                {"id": "desc", "label": "Description", "type": "text", "order": 1},
            ],
        },
        {
            "id": "choices",
            "label": "Findings",
            "type": "multi_choice",
            "order": 6,
            "sectionTitle": "Findings",
            "options": [
                {"id": "a", "label": "Alpha", "summary": "first", "description": "The first option"},
                {"id": "b", "label": "Beta", "summary": "second"},
            ],
        },
        {"id": "generationDate", "label": "Generated on", "type": "text", "order": 7, "showInForm": False},
    ]


@pytest.fixture
def sample_fields(sample_fields_raw: list[dict[str, Any]]) -> list[FieldDefinition]:
    return parse_fields(sample_fields_raw)


@pytest.fixture
def sample_record() -> dict[str, Any]:
    return {
        "title": "Inspection 42",
        "name": "Ana",
        "age": 30,
        "born": "1990-05-01",
        "notes": "line one\nline two",
        "items": [{"qty": 2, "desc": "Bolts"}],
        "choices": {"a": True, "b": False},
    }


@pytest.fixture
def header_config() -> HeaderConfig:
    return HeaderConfig(
        document_code="FRM-001",
        document_title="Site inspection",
        version="3",
    )
