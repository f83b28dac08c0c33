"""Renderer-agnostic document description.

A ``DocumentDescription`` is a tree of immutable values: tables made of rows
of cells, cells holding text, stacks, images or nested tables.  Builders
produce new values rather than mutating existing ones, so a description can
be compared, serialized or rendered any number of times.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Union

from formdoc.core.types import Margin, Width

if TYPE_CHECKING:
    from formdoc.builders.header import PageHeader

NO_MARGIN: Margin = (0.0, 0.0, 0.0, 0.0)

# Marker the text pipeline inserts inside long tokens so the layout engine
# may wrap them.
ZERO_WIDTH_SPACE = "\u200b"


# ── Inline text ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextRun:
    """A span of text sharing one set of inline attributes.

    A run whose ``text`` is ``"\\n"`` is an explicit line break.
    """

    text: str
    bold: bool = False
    italics: bool = False
    underline: bool = False
    strike: bool = False
    sub: bool = False
    sup: bool = False
    font_size: Optional[float] = None
    color: Optional[str] = None
    link: Optional[str] = None

    @property
    def is_line_break(self) -> bool:
        return self.text == "\n"


@dataclass(frozen=True)
class Style:
    """A named bundle of paragraph / cell attributes."""

    font_size: Optional[float] = None
    bold: bool = False
    italics: bool = False
    color: Optional[str] = None
    fill_color: Optional[str] = None
    alignment: Optional[str] = None
    margin: Margin = NO_MARGIN


# ── Blocks ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Text:
    """A paragraph of runs; attributes left ``None`` inherit from ``style``."""

    runs: tuple[TextRun, ...]
    style: Optional[str] = None
    bold: Optional[bool] = None
    italics: Optional[bool] = None
    color: Optional[str] = None
    alignment: Optional[str] = None
    font_size: Optional[float] = None
    margin: Margin = NO_MARGIN

    @classmethod
    def plain(cls, text: str, **kwargs) -> Text:
        return cls(runs=(TextRun(text),), **kwargs)

    @property
    def plain_text(self) -> str:
        return "".join(run.text for run in self.runs)


@dataclass(frozen=True)
class Stack:
    """Blocks laid out vertically inside one cell."""

    items: tuple[Block, ...]
    style: Optional[str] = None
    margin: Margin = NO_MARGIN


@dataclass(frozen=True)
class Image:
    """An embedded raster image given as a base64 data URI."""

    data: str
    width: float
    height: float
    alignment: str = "center"


@dataclass(frozen=True)
class TableLayout:
    """Declarative border and padding rules for a table.

    ``group_rows_unpadded`` removes cell padding from every row whose first
    cell is a group cell, so a nested table can sit flush with the borders.
    ``outer_vlines`` / ``hlines`` turn off the outer vertical borders and the
    horizontal borders respectively (nested group tables draw only the
    separators between their columns).
    """

    line_width: float = 0.5
    line_color: str = "#000000"
    padding_h: float = 0.0
    padding_v: float = 0.0
    hlines: bool = True
    outer_vlines: bool = True
    inner_vlines: bool = True
    group_rows_unpadded: bool = False


@dataclass(frozen=True)
class Cell:
    """One table cell.  ``content`` is ``None`` for span placeholders."""

    content: Optional[Block] = None
    style: Optional[str] = None
    col_span: int = 1
    fill_color: Optional[str] = None
    alignment: Optional[str] = None
    margin: Margin = NO_MARGIN
    is_group: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.content is None

    def spanning(self, col_span: int) -> Cell:
        return dataclasses.replace(self, col_span=col_span)


SPAN = Cell()


@dataclass(frozen=True)
class Table:
    """A table block.

    ``heights`` uses the same vocabulary as ``widths``: ``"auto"`` sizes a
    row to its content, ``"*"`` lets it absorb remaining height.
    ``vertical_center`` marks the spacer/content/spacer shim produced by
    :func:`formdoc.builders.cell_content.vertical_center`.
    """

    body: tuple[tuple[Cell, ...], ...]
    widths: tuple[Width, ...]
    layout: TableLayout = TableLayout()
    header_rows: int = 0
    keep_with_header_rows: int = 0
    heights: Optional[tuple[Width, ...]] = None
    margin: Margin = NO_MARGIN
    vertical_center: bool = False

    def with_margin(self, margin: Margin) -> Table:
        return dataclasses.replace(self, margin=margin)


@dataclass(frozen=True)
class Empty:
    """A block that renders nothing (a section with no eligible fields)."""

    margin: Margin = NO_MARGIN

    def with_margin(self, margin: Margin) -> Empty:
        return dataclasses.replace(self, margin=margin)


Block = Union[Text, Stack, Image, Table, Empty]


# ── Document ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DocumentInfo:
    title: str
    author: str
    subject: str
    keywords: str
    creator: str
    producer: str
    tagged: bool = True
    creation_date: Optional[datetime] = None
    modification_date: Optional[datetime] = None


@dataclass(frozen=True)
class SecuritySettings:
    user_password: Optional[str] = None
    owner_password: Optional[str] = None
    printing: bool = True
    copying: bool = True
    modifying: bool = True


@dataclass(frozen=True)
class DocumentDescription:
    """Fully resolved, renderer-agnostic document."""

    title: str
    page_size: str
    page_orientation: str
    page_margins: Margin
    content: tuple[Block, ...]
    styles: dict[str, Style] = field(default_factory=dict)
    default_font: str = "Helvetica"
    default_font_size: float = 10
    header: Optional[PageHeader] = None
    header_margins: Margin = NO_MARGIN
    info: Optional[DocumentInfo] = None
    security: Optional[SecuritySettings] = None
