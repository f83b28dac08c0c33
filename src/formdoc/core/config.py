"""Nested pydantic-settings configuration for the application.

Each sub-config reads its own ``FORMDOC_<GROUP>_*`` env vars and can also be
constructed directly with keyword overrides.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LayoutConfig(BaseSettings):
    """Field grouping and cell text-processing configuration.

    Env vars use ``FORMDOC_LAYOUT_`` prefix::

        export FORMDOC_LAYOUT_SHORT_FIELD_THRESHOLD=40
        export FORMDOC_LAYOUT_DEFAULT_SECTION_TITLE="Información General"
    """

    model_config = {"env_prefix": "FORMDOC_LAYOUT_"}

    short_field_threshold: int = Field(default=45, ge=1)
    max_short_fields_per_row: int = Field(default=3, ge=1, le=6)
    word_break_threshold: int = Field(default=35, ge=2)
    link_visible_max_chars: int = Field(default=45, ge=10)
    default_section_title: str = "General"
    date_format: str = "%d/%m/%Y"
    empty_value_text: str = "(Not filled in)"
    empty_table_text: str = "(No rows added)"
    empty_choice_text: str = "(No option selected)"
    section_bottom_margin: float = Field(default=15.0, ge=0.0)
    exclude_hidden_fields_in_pdf: bool = False
    exclude_hidden_fields_in_form: bool = True


class FontFiles(BaseSettings):
    """TTF file names looked up inside ``PDFFormattingConfig.font_dir``."""

    model_config = {"env_prefix": "FORMDOC_FONT_"}

    normal: str = "regular.ttf"
    bold: str = "bold.ttf"
    italics: str = "italic.ttf"
    bolditalics: str = "bolditalic.ttf"


class PDFFormattingConfig(BaseSettings):
    """PDF page and rendering configuration.

    Env vars use ``FORMDOC_PDF_`` prefix::

        export FORMDOC_PDF_PAGE_SIZE=a4
        export FORMDOC_PDF_FONT_DIR=/opt/fonts/arial
        export FORMDOC_PDF_FONT_FAMILY=Arial
    """

    model_config = {"env_prefix": "FORMDOC_PDF_"}

    page_size: Literal["letter", "a4"] = "letter"
    page_orientation: Literal["portrait", "landscape"] = "portrait"
    page_margins: tuple[float, float, float, float] = (40.0, 110.0, 40.0, 60.0)
    header_margins: tuple[float, float, float, float] = (40.0, 30.0, 40.0, 0.0)
    font_family: str = "Helvetica"
    font_dir: Optional[Path] = None
    fonts: FontFiles = FontFiles()
    body_font_size: int = Field(default=10, ge=6, le=72)
    default_title: str = "Form Report"
    default_filename: str = "document"
    logo_path: Optional[Path] = None
    logo_width: float = Field(default=80.0, gt=0.0)
    logo_height: float = Field(default=40.0, gt=0.0)


class MetadataDefaults(BaseSettings):
    """Fallback document-info values used when ``PdfMetadata`` omits them.

    Env vars use ``FORMDOC_METADATA_`` prefix.
    """

    model_config = {"env_prefix": "FORMDOC_METADATA_"}

    title: str = "Form Report"
    author: str = "formdoc"
    subject: str = "Form report"
    keywords: str = "report, form"
    creator: str = "formdoc"
    producer: str = "formdoc (reportlab)"


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``FORMDOC_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "FORMDOC_OBSERVABILITY_"}

    log_level: str = "INFO"


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs."""

    layout: LayoutConfig = LayoutConfig()
    pdf: PDFFormattingConfig = PDFFormattingConfig()
    metadata: MetadataDefaults = MetadataDefaults()
    observability: ObservabilityConfig = ObservabilityConfig()
