"""Top-level document builder.

Sorts the template fields, groups them into sections, dispatches each
section to the first matching section builder, then attaches page chrome,
document info and security settings.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from formdoc.builders.header import PageHeader
from formdoc.builders.sections import ISectionBuilder, default_section_builders, select_builder
from formdoc.core.config import AppSettings
from formdoc.formatters.description import (
    Block,
    DocumentDescription,
    DocumentInfo,
    Empty,
    SecuritySettings,
    Table,
)
from formdoc.formatters.pdf_styles import get_styles
from formdoc.grouping.sections import TITLE_FIELD_ID, group_sections_for_document, sort_fields
from formdoc.models import FieldDefinition, HeaderConfig, PdfMetadata

log = logging.getLogger(__name__)


def resolve_display_title(record: Optional[Mapping[str, Any]], default: str) -> str:
    """The record's own title when it has one, else *default*."""
    title = (record or {}).get(TITLE_FIELD_ID)
    if isinstance(title, str) and title.strip():
        return title.strip()
    return default


def _zero_bottom_margin(block: Block) -> Block:
    if isinstance(block, (Table, Empty)):
        left, top, right, _ = block.margin
        return block.with_margin((left, top, right, 0.0))
    return block


class DocumentBuilder:
    """Builds a :class:`DocumentDescription` from fields and a record."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        section_builders: Optional[list[ISectionBuilder]] = None,
        local_logo: Optional[str] = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._builders = section_builders or default_section_builders(self._settings.layout)
        self._local_logo = local_logo

    def build(
        self,
        record: Optional[Mapping[str, Any]],
        fields: Sequence[FieldDefinition],
        header_config: Optional[HeaderConfig] = None,
        metadata: Optional[PdfMetadata] = None,
        now: Optional[datetime] = None,
    ) -> DocumentDescription:
        record = record or {}
        pdf = self._settings.pdf

        return DocumentDescription(
            title=resolve_display_title(record, pdf.default_title),
            page_size=pdf.page_size.upper(),
            page_orientation=pdf.page_orientation,
            page_margins=tuple(pdf.page_margins),
            content=tuple(self.build_content(record, fields)),
            styles=get_styles(),
            default_font=pdf.font_family,
            default_font_size=pdf.body_font_size,
            header=self._build_header(header_config),
            header_margins=tuple(pdf.header_margins),
            info=self._build_info(record, header_config, metadata, now or datetime.now(timezone.utc)),
            security=self._build_security(metadata),
        )

    def build_content(
        self,
        record: Mapping[str, Any],
        fields: Sequence[FieldDefinition],
    ) -> list[Block]:
        """One block per section, in section order; the last block has no bottom margin."""
        ordered = sort_fields(fields)
        sections = group_sections_for_document(ordered, self._settings.layout)

        blocks: list[Block] = []
        for section in sections:
            builder = select_builder(self._builders, section)
            if builder is None:
                log.warning("No builder found for section %r", section.title)
                blocks.append(Empty())
                continue
            log.debug("Section %r -> %s", section.title, type(builder).__name__)
            blocks.append(builder.build(section, record))

        if blocks:
            blocks[-1] = _zero_bottom_margin(blocks[-1])
        return blocks

    def _build_header(self, header_config: Optional[HeaderConfig]) -> Optional[PageHeader]:
        if header_config is None:
            return None
        pdf = self._settings.pdf
        return PageHeader(
            config=header_config,
            local_logo=self._local_logo,
            logo_width=pdf.logo_width,
            logo_height=pdf.logo_height,
        )

    def _build_info(
        self,
        record: Mapping[str, Any],
        header_config: Optional[HeaderConfig],
        metadata: Optional[PdfMetadata],
        now: datetime,
    ) -> DocumentInfo:
        defaults = self._settings.metadata
        metadata = metadata or PdfMetadata()

        title_candidates = (
            metadata.title,
            header_config.document_title if header_config else None,
            record.get(TITLE_FIELD_ID),
        )
        title = next((t for t in title_candidates if isinstance(t, str) and t.strip()), defaults.title)

        return DocumentInfo(
            title=title,
            author=metadata.author or defaults.author,
            subject=metadata.subject or defaults.subject,
            keywords=metadata.keywords or defaults.keywords,
            creator=metadata.creator or defaults.creator,
            producer=metadata.producer or defaults.producer,
            tagged=True if metadata.tagged is None else metadata.tagged,
            creation_date=now,
            modification_date=now,
        )

    @staticmethod
    def _build_security(metadata: Optional[PdfMetadata]) -> Optional[SecuritySettings]:
        if metadata is None:
            return None
        if not (metadata.user_password or metadata.owner_password or metadata.permissions):
            return None
        permissions = metadata.permissions
        return SecuritySettings(
            user_password=metadata.user_password,
            owner_password=metadata.owner_password,
            printing=permissions.printing if permissions else True,
            copying=permissions.copying if permissions else True,
            modifying=permissions.modifying if permissions else True,
        )

