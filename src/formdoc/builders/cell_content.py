"""Builds the content of individual table cells.

A cell is rendered from one field and a flag telling whether the label or
the value is wanted.  Values go through the text pipeline (unescape,
linkify, long-token breaking, type formatting) before being parsed into
rich-text runs and wrapped in a vertical-centering shim.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from formdoc.builders.markup import parse_markup
from formdoc.builders.text import (
    break_long_words,
    format_iso_date,
    is_empty_value,
    linkify,
    newlines_to_breaks,
    stringify,
    unescape_html,
)
from formdoc.core.config import LayoutConfig
from formdoc.formatters.description import Block, Cell, Empty, Table, Text
from formdoc.formatters.pdf_styles import ANSWER, LABEL, NO_BORDERS_LAYOUT, PLACEHOLDER_COLOR
from formdoc.models import FieldDefinition, FieldType


def vertical_center(block: Block) -> Table:
    """Wrap *block* in a borderless spacer / content / spacer table.

    The outer rows absorb any extra row height, which keeps the content
    vertically centered in a cell taller than it.  Fill colors belong on
    the enclosing cell, never on these inner rows.
    """
    return Table(
        body=((Cell(content=Empty()),), (Cell(content=block),), (Cell(content=Empty()),)),
        widths=("*",),
        heights=("*", "auto", "*"),
        layout=NO_BORDERS_LAYOUT,
        vertical_center=True,
    )


def placeholder_text(text: str, **kwargs: Any) -> Text:
    """The italic gray text used wherever an answer is missing."""
    return Text.plain(text, style=ANSWER, italics=True, color=PLACEHOLDER_COLOR, **kwargs)


class CellContentBuilder:
    """Renders label and value cells for fields of one record."""

    def __init__(self, record: Optional[Mapping[str, Any]], layout: LayoutConfig | None = None) -> None:
        self._record: Mapping[str, Any] = record or {}
        self._layout = layout or LayoutConfig()

    def raw_value(self, field: FieldDefinition) -> Any:
        return self._record.get(field.id)

    def display_value(self, field: FieldDefinition) -> str:
        """The stringified value as the row grouper measures it."""
        return stringify(self.raw_value(field))

    def build(self, field: FieldDefinition, is_label: bool) -> Cell:
        style = LABEL if is_label else ANSWER

        if not is_label and is_empty_value(self.raw_value(field)):
            return Cell(content=vertical_center(placeholder_text(self._layout.empty_value_text)), style=style)

        if is_label:
            content = field.label
        else:
            content = unescape_html(self.display_value(field))
            content = linkify(content, self._layout.link_visible_max_chars)
            content = break_long_words(content, self._layout.word_break_threshold)
            if field.type == FieldType.DATE:
                content = format_iso_date(content, self._layout.date_format)

        if field.type == FieldType.TEXTAREA:
            content = newlines_to_breaks(content)

        text = Text(runs=parse_markup(content))
        return Cell(content=vertical_center(text), style=style)
