"""Document service: builds descriptions and manages the preview lifecycle.

Ties the pure document builder to the PDF renderer::

    service = DocumentService()
    preview = service.generate_preview(record, fields, header_config=header)
    ...
    path = service.download_current(Path("out"))
    service.close_preview()
"""

from __future__ import annotations

import base64
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from formdoc.builders.document import DocumentBuilder
from formdoc.core.config import AppSettings
from formdoc.core.types import DataRecord
from formdoc.exceptions import FormDocError, MissingTemplateError
from formdoc.formatters.description import DocumentDescription
from formdoc.models import FieldDefinition, HeaderConfig, PdfMetadata

if TYPE_CHECKING:
    from formdoc.formatters.pdf_renderer import PDFRenderer, PreviewResource

log = logging.getLogger(__name__)

GENERATION_DATE_FIELD_ID = "generationDate"


def with_generation_date(
    record: Optional[Mapping[str, Any]], today: date, fmt: str = "%d/%m/%Y"
) -> DataRecord:
    """A copy of *record* carrying the generation date; the input is not mutated."""
    enriched = dict(record or {})
    enriched[GENERATION_DATE_FIELD_ID] = today.strftime(fmt)
    return enriched


def load_logo(path: Optional[Path]) -> Optional[str]:
    """Read a deployment-bundled logo file as base64, or ``None`` when unavailable."""
    if path is None:
        return None
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        log.warning("Cannot read logo %s: %s", path, exc)
        return None
    return base64.b64encode(data).decode("ascii")


class DocumentService:
    """Builds document descriptions and keeps track of the current preview."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        renderer: Optional[PDFRenderer] = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._renderer = renderer
        self._builder = DocumentBuilder(self._settings, local_logo=load_logo(self._settings.pdf.logo_path))
        self._current: Optional[DocumentDescription] = None
        self._preview: Optional[PreviewResource] = None

    @property
    def renderer(self) -> PDFRenderer:
        """The PDF renderer, created on first use so reportlab loads lazily."""
        if self._renderer is None:
            from formdoc.formatters.pdf_renderer import PDFRenderer

            self._renderer = PDFRenderer(self._settings.pdf)
        return self._renderer

    @property
    def current_description(self) -> Optional[DocumentDescription]:
        return self._current

    @property
    def current_preview(self) -> Optional[PreviewResource]:
        return self._preview

    def create_description(
        self,
        record: Optional[Mapping[str, Any]],
        fields: Optional[Sequence[FieldDefinition]],
        header_config: Optional[HeaderConfig] = None,
        metadata: Optional[PdfMetadata] = None,
        now: Optional[datetime] = None,
    ) -> DocumentDescription:
        """Build the description for *record* against the template *fields*.

        Raises:
            MissingTemplateError: When no field definitions are supplied.
        """
        if not fields:
            raise MissingTemplateError("No field definitions found for this record's template")

        now = now or datetime.now(timezone.utc)
        enriched = with_generation_date(record, now.date(), self._settings.layout.date_format)
        description = self._builder.build(enriched, fields, header_config, metadata, now=now)
        log.info("Built description %r with %d blocks", description.title, len(description.content))
        return description

    def generate_preview(
        self,
        record: Optional[Mapping[str, Any]],
        fields: Optional[Sequence[FieldDefinition]],
        header_config: Optional[HeaderConfig] = None,
        metadata: Optional[PdfMetadata] = None,
    ) -> PreviewResource:
        """Build, render and remember a preview, releasing any previous one."""
        description = self.create_description(record, fields, header_config, metadata)
        preview = self.renderer.to_preview_resource(description)
        self.close_preview()
        self._current = description
        self._preview = preview
        return preview

    def download_current(self, directory: Optional[Path] = None) -> Path:
        """Save the current description under its sanitized title."""
        if self._current is None:
            raise FormDocError("There is no document to download; generate a preview first")
        return self.renderer.download(self._current, self._current.title, directory)

    def close_preview(self) -> None:
        """Release the preview resource and forget the current description."""
        if self._preview is not None:
            self._preview.release()
        self._preview = None
        self._current = None
