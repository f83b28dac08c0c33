"""Tests for the top-level DocumentBuilder."""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from formdoc.builders.document import DocumentBuilder, resolve_display_title
from formdoc.core.config import AppSettings, MetadataDefaults, PDFFormattingConfig
from formdoc.formatters.description import Empty, Table
from formdoc.formatters.pdf_styles import get_styles
from formdoc.models import FieldDefinition, HeaderConfig, PdfMetadata, PdfPermissions, parse_fields
from tests.helpers import row_texts


class TestBuildContent:
    def test_single_text_field(self, fixed_now: datetime) -> None:
        fields = parse_fields([{"id": "name", "label": "Name", "type": "text", "order": 1, "sectionTitle": "Basics"}])
        doc = DocumentBuilder().build({"name": "Ana"}, fields, now=fixed_now)
        assert len(doc.content) == 1
        table = doc.content[0]
        assert isinstance(table, Table)
        assert row_texts(table) == [["Basics", ""], ["Name", "Ana"]]

    def test_one_block_per_section(
        self, sample_fields: list[FieldDefinition], sample_record: dict[str, Any], fixed_now: datetime
    ) -> None:
        doc = DocumentBuilder().build(sample_record, sample_fields, now=fixed_now)
        titles = [row_texts(block)[0][0] for block in doc.content]
        assert titles == ["Applicant", "Items", "Findings", "General"]

    def test_last_block_has_no_bottom_margin(
        self, sample_fields: list[FieldDefinition], sample_record: dict[str, Any], fixed_now: datetime
    ) -> None:
        doc = DocumentBuilder().build(sample_record, sample_fields, now=fixed_now)
        assert [block.margin[3] for block in doc.content] == [15.0, 15.0, 15.0, 0.0]

    def test_title_field_not_rendered(
        self, sample_fields: list[FieldDefinition], sample_record: dict[str, Any], fixed_now: datetime
    ) -> None:
        doc = DocumentBuilder().build(sample_record, sample_fields, now=fixed_now)
        texts = [text for block in doc.content for row in row_texts(block) for text in row]
        assert "Title" not in texts
        assert "Inspection 42" not in texts

    def test_declaration_order_does_not_matter(
        self, sample_fields: list[FieldDefinition], sample_record: dict[str, Any], fixed_now: datetime
    ) -> None:
        builder = DocumentBuilder()
        forward = builder.build(sample_record, sample_fields, now=fixed_now)
        backward = builder.build(sample_record, list(reversed(sample_fields)), now=fixed_now)
        assert forward.content == backward.content

    def test_build_is_idempotent(
        self,
        sample_fields: list[FieldDefinition],
        sample_record: dict[str, Any],
        header_config: HeaderConfig,
        fixed_now: datetime,
    ) -> None:
        builder = DocumentBuilder()
        first = builder.build(sample_record, sample_fields, header_config, now=fixed_now)
        second = builder.build(sample_record, sample_fields, header_config, now=fixed_now)
        assert first == second

    def test_record_not_mutated(self, sample_fields: list[FieldDefinition], sample_record: dict[str, Any]) -> None:
        before = copy.deepcopy(sample_record)
        DocumentBuilder().build(sample_record, sample_fields)
        assert sample_record == before

    def test_no_fields_no_content(self, fixed_now: datetime) -> None:
        assert DocumentBuilder().build({}, [], now=fixed_now).content == ()

    def test_section_with_only_special_fields_keeps_margin_slot(self, fixed_now: datetime) -> None:
        fields = parse_fields(
            [
                {"id": "t", "label": "T", "type": "repeating_table", "sectionTitle": "Mixed", "order": 1},
                {"id": "c", "label": "C", "type": "multi_choice", "sectionTitle": "Mixed", "order": 2},
            ]
        )
        doc = DocumentBuilder().build({}, fields, now=fixed_now)
        assert len(doc.content) == 1
        assert isinstance(doc.content[0], Empty)
        assert doc.content[0].margin == (0.0, 0.0, 0.0, 0.0)

    def test_none_record_treated_as_empty(self, sample_fields: list[FieldDefinition], fixed_now: datetime) -> None:
        doc = DocumentBuilder().build(None, sample_fields, now=fixed_now)
        assert len(doc.content) == 4


class TestPageSettings:
    def test_defaults(self, fixed_now: datetime) -> None:
        doc = DocumentBuilder().build({}, [], now=fixed_now)
        assert doc.page_size == "LETTER"
        assert doc.page_orientation == "portrait"
        assert doc.page_margins == (40.0, 110.0, 40.0, 60.0)
        assert doc.default_font == "Helvetica"
        assert doc.default_font_size == 10
        assert doc.styles == get_styles()
        assert doc.header is None

    def test_configured(self, fixed_now: datetime) -> None:
        settings = AppSettings(pdf=PDFFormattingConfig(page_size="a4", page_orientation="landscape"))
        doc = DocumentBuilder(settings).build({}, [], now=fixed_now)
        assert doc.page_size == "A4"
        assert doc.page_orientation == "landscape"

    def test_header_attached(self, header_config: HeaderConfig, fixed_now: datetime) -> None:
        doc = DocumentBuilder().build({}, [], header_config, now=fixed_now)
        assert doc.header is not None
        assert doc.header(1, 2) is not None

    def test_local_logo_passed_to_header(self, header_config: HeaderConfig, fixed_now: datetime) -> None:
        doc = DocumentBuilder(local_logo="QUJD").build({}, [], header_config, now=fixed_now)
        assert doc.header.logo == "data:image/png;base64,QUJD"


class TestDisplayTitle:
    def test_record_title(self) -> None:
        assert resolve_display_title({"title": "  Report 7 "}, "Default") == "Report 7"

    def test_fallbacks(self) -> None:
        assert resolve_display_title({}, "Default") == "Default"
        assert resolve_display_title({"title": "   "}, "Default") == "Default"
        assert resolve_display_title({"title": 42}, "Default") == "Default"
        assert resolve_display_title(None, "Default") == "Default"

    def test_document_title(self, sample_record: dict[str, Any], fixed_now: datetime) -> None:
        doc = DocumentBuilder().build(sample_record, [], now=fixed_now)
        assert doc.title == "Inspection 42"


class TestDocumentInfo:
    def test_defaults(self, fixed_now: datetime) -> None:
        info = DocumentBuilder().build({}, [], now=fixed_now).info
        defaults = MetadataDefaults()
        assert info.title == defaults.title
        assert info.author == defaults.author
        assert info.producer == defaults.producer
        assert info.tagged is True
        assert info.creation_date == fixed_now
        assert info.modification_date == fixed_now

    def test_title_priority(self, header_config: HeaderConfig, fixed_now: datetime) -> None:
        builder = DocumentBuilder()
        record = {"title": "From record"}
        explicit = builder.build(record, [], header_config, PdfMetadata(title="Explicit"), now=fixed_now)
        from_header = builder.build(record, [], header_config, now=fixed_now)
        from_record = builder.build(record, [], now=fixed_now)
        assert explicit.info.title == "Explicit"
        assert from_header.info.title == "Site inspection"
        assert from_record.info.title == "From record"

    def test_metadata_overrides(self, fixed_now: datetime) -> None:
        metadata = PdfMetadata(author="Inspector", keywords="site", tagged=False)
        info = DocumentBuilder().build({}, [], metadata=metadata, now=fixed_now).info
        assert info.author == "Inspector"
        assert info.keywords == "site"
        assert info.subject == MetadataDefaults().subject
        assert info.tagged is False


class TestSecurity:
    def test_no_security_by_default(self, fixed_now: datetime) -> None:
        assert DocumentBuilder().build({}, [], metadata=PdfMetadata(), now=fixed_now).security is None

    def test_passwords(self, fixed_now: datetime) -> None:
        metadata = PdfMetadata(user_password="u", owner_password="o")
        security = DocumentBuilder().build({}, [], metadata=metadata, now=fixed_now).security
        assert security.user_password == "u"
        assert security.owner_password == "o"
        assert (security.printing, security.copying, security.modifying) == (True, True, True)

    def test_permissions_only(self, fixed_now: datetime) -> None:
        metadata = PdfMetadata(permissions=PdfPermissions(copying=False))
        security = DocumentBuilder().build({}, [], metadata=metadata, now=fixed_now).security
        assert security.user_password is None
        assert security.copying is False
        assert security.printing is True
