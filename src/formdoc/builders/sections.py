"""Section builders: one strategy per section layout.

Builders are tried in priority order and the first whose ``can_handle``
accepts the section builds it.  :class:`StandardSectionBuilder` accepts
everything and must stay last.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional, Protocol, runtime_checkable

from formdoc.builders.cell_content import CellContentBuilder, placeholder_text
from formdoc.builders.table_body import Row, TableBodyBuilder
from formdoc.builders.text import stringify
from formdoc.core.config import LayoutConfig
from formdoc.formatters.description import SPAN, Block, Cell, Empty, Stack, Table, Text, TextRun
from formdoc.formatters.pdf_styles import (
    ANSWER,
    CHOICE_LABEL,
    GROUP_AWARE_TABLE_LAYOUT,
    MAIN_TABLE_LAYOUT,
    REPEATING_TABLE_LAYOUT,
    SECTION_HEADER,
    TABLE_HEADER,
)
from formdoc.grouping.sections import sort_fields
from formdoc.models import FieldType, MultiChoiceField, RepeatingTableField, Section

log = logging.getLogger(__name__)

# Labels may mark line breaks with a literal backslash-n as well as a newline
_LABEL_BREAK_RE = re.compile(r"\\n|\r?\n")


@runtime_checkable
class ISectionBuilder(Protocol):
    """Contract for a section builder."""

    def can_handle(self, section: Section) -> bool:
        """Whether this builder lays out *section*."""
        ...

    def build(self, section: Section, record: Mapping[str, Any]) -> Block:
        """Build the content block for *section* from the submitted *record*."""
        ...


def _title_row(title: str, columns: int) -> Row:
    title_cell = Cell(
        content=Text.plain(title, style=SECTION_HEADER),
        style=SECTION_HEADER,
        col_span=columns,
        alignment="center",
    )
    return (title_cell, *([SPAN] * (columns - 1)))


def _full_width_row(cell: Cell, columns: int) -> Row:
    return (cell.spanning(columns), *([SPAN] * (columns - 1)))


class _SectionBuilderBase:
    def __init__(self, layout: LayoutConfig | None = None) -> None:
        self._layout = layout or LayoutConfig()

    @property
    def _bottom_margin(self) -> tuple[float, float, float, float]:
        return (0.0, 0.0, 0.0, self._layout.section_bottom_margin)


class RepeatingTableSectionBuilder(_SectionBuilderBase):
    """A section made of a single repeating-table field."""

    def can_handle(self, section: Section) -> bool:
        return len(section.fields) == 1 and section.fields[0].type == FieldType.REPEATING_TABLE

    def build(self, section: Section, record: Mapping[str, Any]) -> Block:
        field = section.fields[0]
        columns = sort_fields(field.sub_fields) if isinstance(field, RepeatingTableField) else []
        if not columns:
            log.warning("Repeating table %r has no columns; rendering it empty", field.id)
        width = max(1, len(columns))

        rows_value = record.get(field.id)
        data = [row for row in rows_value if isinstance(row, Mapping)] if isinstance(rows_value, list) else []

        body: list[Row] = [_title_row(section.title, width)]
        if columns:
            body.append(tuple(Cell(content=Text.plain(c.label), style=TABLE_HEADER) for c in columns))
        else:
            body.append((Cell(content=Text.plain(""), style=TABLE_HEADER),))

        if data and columns:
            for row in data:
                cells = CellContentBuilder(row, self._layout)
                body.append(tuple(cells.build(column, False) for column in columns))
        else:
            empty = Cell(
                content=placeholder_text(self._layout.empty_table_text, alignment="center"),
                style=ANSWER,
                alignment="center",
            )
            body.append(_full_width_row(empty, width))

        return Table(
            body=tuple(body),
            widths=("*",) * width,
            layout=REPEATING_TABLE_LAYOUT,
            header_rows=2,
            margin=self._bottom_margin,
        )


class MultiChoiceSectionBuilder(_SectionBuilderBase):
    """A section made of a single multi-choice field; only selected options are listed."""

    def can_handle(self, section: Section) -> bool:
        return len(section.fields) == 1 and section.fields[0].type == FieldType.MULTI_CHOICE

    def build(self, section: Section, record: Mapping[str, Any]) -> Block:
        field = section.fields[0]
        options = field.options if isinstance(field, MultiChoiceField) else []
        if not options:
            log.warning("Multi-choice field %r has no options", field.id)

        selections = record.get(field.id)
        if not isinstance(selections, Mapping):
            selections = {}

        body: list[Row] = [_title_row(section.title, 2)]
        for line in _LABEL_BREAK_RE.split(field.label):
            if not line.strip():
                continue
            label_cell = Cell(
                content=Text.plain(line.strip(), style=CHOICE_LABEL),
                style=CHOICE_LABEL,
                margin=(0, 2, 0, 2),
            )
            body.append(_full_width_row(label_cell, 2))
        header_rows = len(body)

        selected = [option for option in options if selections.get(option.id) is True]
        if not selected:
            empty = Cell(
                content=placeholder_text(self._layout.empty_choice_text, alignment="left"),
                style=ANSWER,
                margin=(5, 5, 0, 5),
            )
            body.append(_full_width_row(empty, 2))
        for option in selected:
            items: list[Block] = [
                Text(runs=(TextRun(f"{option.label}: ", bold=True), TextRun(stringify(option.summary))))
            ]
            if option.description.strip():
                items.append(Text.plain(option.description, margin=(10, 2, 0, 0)))
            option_cell = Cell(content=Stack(items=tuple(items), style=ANSWER), style=ANSWER, margin=(0, 5, 0, 5))
            body.append(_full_width_row(option_cell, 2))

        return Table(
            body=tuple(body),
            widths=("auto", "*"),
            layout=MAIN_TABLE_LAYOUT,
            header_rows=header_rows,
            keep_with_header_rows=1,
            margin=self._bottom_margin,
        )


class StandardSectionBuilder(_SectionBuilderBase):
    """Fallback: a two-column label/value table with short fields merged into shared rows."""

    def can_handle(self, section: Section) -> bool:
        return True

    def build(self, section: Section, record: Mapping[str, Any]) -> Block:
        fields = [
            f for f in section.fields if f.type not in (FieldType.REPEATING_TABLE, FieldType.MULTI_CHOICE)
        ]
        if not fields:
            return Empty(margin=self._bottom_margin)

        body: list[Row] = []
        if section.title:
            body.append(_title_row(section.title, 2))
        body.extend(TableBodyBuilder(record, self._layout).build(fields))

        return Table(
            body=tuple(body),
            widths=("auto", "*"),
            layout=GROUP_AWARE_TABLE_LAYOUT,
            header_rows=1 if section.title else 0,
            margin=self._bottom_margin,
        )


def default_section_builders(layout: LayoutConfig | None = None) -> list[ISectionBuilder]:
    """Builders in priority order; the most specific come first."""
    return [
        RepeatingTableSectionBuilder(layout),
        MultiChoiceSectionBuilder(layout),
        StandardSectionBuilder(layout),
    ]


def select_builder(builders: list[ISectionBuilder], section: Section) -> Optional[ISectionBuilder]:
    return next((b for b in builders if b.can_handle(section)), None)
