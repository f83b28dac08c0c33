"""Per-page header band: document code, version, page X of Y, title and logo."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from formdoc.builders.cell_content import vertical_center
from formdoc.formatters.description import SPAN, Cell, Empty, Image, Table, Text
from formdoc.formatters.pdf_styles import (
    LABEL,
    PAGE_HEADER,
    PAGE_HEADER_LAYOUT,
    PAGE_HEADER_TITLE,
)
from formdoc.models import HeaderConfig

_DATA_URI_PREFIX = "data:"


def as_data_uri(data: Optional[str], mime: str = "image/png") -> Optional[str]:
    """Normalize raw base64 image data to a data URI."""
    if not data:
        return None
    data = data.strip()
    if data.startswith(_DATA_URI_PREFIX):
        return data
    return f"data:{mime};base64,{data}"


@dataclass(frozen=True)
class PageHeader:
    """Header generator, a pure function of the page position.

    Calling the instance with ``(current_page, page_count)`` returns the
    header table for that page, or ``None`` when no header is configured.
    ``local_logo`` (bundled with the deployment) wins over the logo carried
    by the header configuration.
    """

    config: Optional[HeaderConfig]
    local_logo: Optional[str] = None
    logo_width: float = 80.0
    logo_height: float = 40.0
    widths: tuple[float | str, ...] = (150.0, "*", 110.0)

    @property
    def logo(self) -> Optional[str]:
        if self.local_logo:
            return as_data_uri(self.local_logo)
        if self.config is not None:
            return as_data_uri(self.config.logo_base64)
        return None

    def __call__(self, current_page: int, page_count: int) -> Optional[Table]:
        if self.config is None:
            return None

        left = Cell(content=vertical_center(self._code_box(current_page, page_count)))
        center = Cell(content=vertical_center(self._title_text()), style=PAGE_HEADER_TITLE, alignment="center")
        right = Cell(content=vertical_center(self._logo_block()), alignment="center")

        return Table(
            body=((left, center, right),),
            widths=self.widths,
            layout=PAGE_HEADER_LAYOUT,
        )

    def _title_text(self) -> Text:
        title = self.config.center_text or self.config.document_title or ""
        return Text.plain(title.upper(), style=PAGE_HEADER_TITLE)

    def _logo_block(self) -> Image | Empty:
        logo = self.logo
        if logo is None:
            return Empty()
        return Image(data=logo, width=self.logo_width, height=self.logo_height)

    def _code_box(self, current_page: int, page_count: int) -> Table:
        """Two rows: the document code across both sub-columns, then version and pagination."""
        code = Cell(
            content=vertical_center(Text.plain(self.config.document_code or "", style=LABEL)),
            style=LABEL,
            col_span=2,
            alignment="center",
        )
        version = Cell(
            content=vertical_center(Text.plain(f"Version: {self.config.version or '-'}", style=PAGE_HEADER)),
            style=PAGE_HEADER,
        )
        pages = Cell(
            content=vertical_center(Text.plain(f"Page {current_page} of {page_count}", style=PAGE_HEADER)),
            style=PAGE_HEADER,
        )
        return Table(
            body=((code, SPAN), (version, pages)),
            widths=("*", "*"),
            layout=PAGE_HEADER_LAYOUT,
        )
