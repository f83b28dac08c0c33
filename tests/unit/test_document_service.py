"""Tests for the DocumentService preview lifecycle."""

from __future__ import annotations

import base64
from datetime import date, datetime
from typing import Any

import pytest

from formdoc.core.config import AppSettings, LayoutConfig, PDFFormattingConfig
from formdoc.exceptions import FormDocError, MissingTemplateError
from formdoc.models import FieldDefinition, HeaderConfig
from formdoc.services.document_service import (
    GENERATION_DATE_FIELD_ID,
    DocumentService,
    load_logo,
    with_generation_date,
)
from tests.fakes.fake_renderer import FakeRenderer
from tests.helpers import row_texts


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def service(renderer: FakeRenderer) -> DocumentService:
    return DocumentService(renderer=renderer)


class TestGenerationDate:
    def test_adds_formatted_date(self) -> None:
        record = with_generation_date({"a": 1}, date(2024, 5, 1))
        assert record == {"a": 1, GENERATION_DATE_FIELD_ID: "01/05/2024"}

    def test_input_not_mutated(self) -> None:
        original = {"a": 1}
        with_generation_date(original, date(2024, 5, 1))
        assert original == {"a": 1}

    def test_none_record(self) -> None:
        assert with_generation_date(None, date(2024, 5, 1), "%Y-%m-%d") == {GENERATION_DATE_FIELD_ID: "2024-05-01"}


class TestLoadLogo:
    def test_reads_base64(self, tmp_path) -> None:
        path = tmp_path / "logo.png"
        path.write_bytes(b"png-bytes")
        assert load_logo(path) == base64.b64encode(b"png-bytes").decode()

    def test_missing_file(self, tmp_path) -> None:
        assert load_logo(tmp_path / "missing.png") is None

    def test_no_path(self) -> None:
        assert load_logo(None) is None


class TestCreateDescription:
    def test_requires_fields(self, service: DocumentService) -> None:
        with pytest.raises(MissingTemplateError):
            service.create_description({}, [])
        with pytest.raises(MissingTemplateError):
            service.create_description({}, None)

    def test_generation_date_rendered(
        self,
        service: DocumentService,
        sample_fields: list[FieldDefinition],
        sample_record: dict[str, Any],
        fixed_now: datetime,
    ) -> None:
        description = service.create_description(sample_record, sample_fields, now=fixed_now)
        general = description.content[-1]
        assert row_texts(general)[1] == ["Generated on", "01/05/2024"]

    def test_date_format_from_settings(
        self, sample_fields: list[FieldDefinition], sample_record: dict[str, Any], fixed_now: datetime
    ) -> None:
        settings = AppSettings(layout=LayoutConfig(date_format="%Y-%m-%d"))
        description = DocumentService(settings).create_description(sample_record, sample_fields, now=fixed_now)
        assert row_texts(description.content[-1])[1][1] == "2024-05-01"

    def test_record_not_mutated(
        self, service: DocumentService, sample_fields: list[FieldDefinition], sample_record: dict[str, Any]
    ) -> None:
        service.create_description(sample_record, sample_fields)
        assert GENERATION_DATE_FIELD_ID not in sample_record

    def test_local_logo_used_in_header(
        self,
        tmp_path,
        sample_fields: list[FieldDefinition],
        header_config: HeaderConfig,
        fixed_now: datetime,
    ) -> None:
        logo = tmp_path / "logo.png"
        logo.write_bytes(b"LOGO")
        settings = AppSettings(pdf=PDFFormattingConfig(logo_path=logo))
        description = DocumentService(settings).create_description({}, sample_fields, header_config, now=fixed_now)
        assert description.header.logo == "data:image/png;base64," + base64.b64encode(b"LOGO").decode()


class TestPreviewLifecycle:
    def test_generate_preview(
        self,
        service: DocumentService,
        renderer: FakeRenderer,
        sample_fields: list[FieldDefinition],
        sample_record: dict[str, Any],
    ) -> None:
        preview = service.generate_preview(sample_record, sample_fields)
        assert service.current_preview is preview
        assert service.current_description is renderer.rendered[0]
        assert service.current_description.title == "Inspection 42"

    def test_second_preview_releases_first(
        self, service: DocumentService, sample_fields: list[FieldDefinition], sample_record: dict[str, Any]
    ) -> None:
        first = service.generate_preview(sample_record, sample_fields)
        second = service.generate_preview(sample_record, sample_fields)
        assert first.released is True
        assert second.released is False
        assert service.current_preview is second

    def test_failed_build_keeps_previous_preview(
        self, service: DocumentService, sample_fields: list[FieldDefinition], sample_record: dict[str, Any]
    ) -> None:
        first = service.generate_preview(sample_record, sample_fields)
        with pytest.raises(MissingTemplateError):
            service.generate_preview(sample_record, [])
        assert first.released is False
        assert service.current_preview is first

    def test_close_preview(
        self, service: DocumentService, sample_fields: list[FieldDefinition], sample_record: dict[str, Any]
    ) -> None:
        preview = service.generate_preview(sample_record, sample_fields)
        service.close_preview()
        assert preview.released is True
        assert service.current_preview is None
        assert service.current_description is None

    def test_close_without_preview(self, service: DocumentService) -> None:
        service.close_preview()
        assert service.current_preview is None


class TestDownload:
    def test_requires_current_description(self, service: DocumentService, tmp_path) -> None:
        with pytest.raises(FormDocError):
            service.download_current(tmp_path)

    def test_downloads_under_title(
        self,
        service: DocumentService,
        renderer: FakeRenderer,
        sample_fields: list[FieldDefinition],
        sample_record: dict[str, Any],
        tmp_path,
    ) -> None:
        service.generate_preview(sample_record, sample_fields)
        path = service.download_current(tmp_path)
        assert renderer.downloads == [("Inspection 42", tmp_path)]
        assert path.read_bytes().startswith(b"%PDF")
