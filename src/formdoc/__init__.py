"""formdoc: turns form field definitions plus a submitted record into a
paginated PDF report.

Usage::

    from formdoc import DocumentService, parse_fields

    service = DocumentService()
    fields = parse_fields(raw_fields)
    with service.generate_preview(record, fields) as preview:
        print(preview.uri)

The reportlab-backed ``PDFRenderer`` is loaded lazily.
"""

from __future__ import annotations

from typing import Any

from formdoc.builders.document import DocumentBuilder
from formdoc.core.config import AppSettings
from formdoc.exceptions import (
    FormDocError,
    MissingTemplateError,
    RenderBackendInitError,
    RenderError,
)
from formdoc.formatters.description import DocumentDescription
from formdoc.formatters.json_formatter import JSONFormatter
from formdoc.grouping.sections import group_sections_for_document, group_sections_for_form
from formdoc.models import (
    FieldDefinition,
    FieldOption,
    FieldType,
    HeaderConfig,
    PdfMetadata,
    PdfPermissions,
    parse_fields,
)
from formdoc.services.document_service import DocumentService

__all__ = [
    "AppSettings",
    "DocumentBuilder",
    "DocumentDescription",
    "DocumentService",
    "FieldDefinition",
    "FieldOption",
    "FieldType",
    "FormDocError",
    "HeaderConfig",
    "JSONFormatter",
    "MissingTemplateError",
    "PDFRenderer",
    "PdfMetadata",
    "PdfPermissions",
    "RenderBackendInitError",
    "RenderError",
    "group_sections_for_document",
    "group_sections_for_form",
    "parse_fields",
]


def __getattr__(name: str) -> Any:
    """Lazy-load PDFRenderer so reportlab is only imported when needed."""
    if name == "PDFRenderer":
        from formdoc.formatters.pdf_renderer import PDFRenderer

        return PDFRenderer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
