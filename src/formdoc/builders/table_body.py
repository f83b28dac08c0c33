"""Turns row groups into the body rows of a two-column label/value table."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from formdoc.builders.cell_content import CellContentBuilder
from formdoc.core.config import LayoutConfig
from formdoc.formatters.description import SPAN, Cell, Table
from formdoc.formatters.pdf_styles import CELL_HORIZONTAL_PADDING, NESTED_TABLE_LAYOUT
from formdoc.grouping.rows import group_rows
from formdoc.models import FieldDefinition, FieldType, LongGroup

log = logging.getLogger(__name__)

Row = tuple[Cell, ...]


class TableBodyBuilder:
    """Builds label/value rows for the standard section table."""

    def __init__(self, record: Optional[Mapping[str, Any]], layout: LayoutConfig | None = None) -> None:
        self._record = record or {}
        self._layout = layout or LayoutConfig()
        self._cells = CellContentBuilder(self._record, self._layout)

    def build(self, fields: Sequence[FieldDefinition]) -> list[Row]:
        groups = group_rows(fields, self._record, self._layout)
        log.debug("Grouped %d fields into %d row groups", len(fields), len(groups))

        body: list[Row] = []
        for group in groups:
            if isinstance(group, LongGroup):
                if group.field.type == FieldType.TEXTAREA:
                    body.extend(self._rows_for_textarea(group.field))
                else:
                    body.append(self._row_for_long_field(group.field))
            elif len(group.fields) == 1:
                body.append(self._row_for_long_field(group.fields[0]))
            else:
                body.append(self._row_for_short_group(group.fields))
        return body

    def _row_for_short_group(self, fields: Sequence[FieldDefinition]) -> Row:
        """One row holding a nested table of interleaved label / value cells.

        The container cell spans both columns, is flagged as a group so the
        outer layout drops its padding, and carries a negative horizontal
        margin cancelling the parent's padding so the nested table is flush
        with the outer borders.
        """
        widths: list[str] = []
        cells: list[Cell] = []
        for field in fields:
            widths.extend(("auto", "*"))
            cells.append(self._cells.build(field, True))
            cells.append(self._cells.build(field, False))

        nested = Table(body=(tuple(cells),), widths=tuple(widths), layout=NESTED_TABLE_LAYOUT)
        container = Cell(
            content=nested,
            col_span=2,
            is_group=True,
            margin=(-CELL_HORIZONTAL_PADDING, 0.0, -CELL_HORIZONTAL_PADDING, 0.0),
        )
        return (container, SPAN)

    def _rows_for_textarea(self, field: FieldDefinition) -> list[Row]:
        """Label row then value row, each spanning both columns."""
        label = self._cells.build(field, True).spanning(2)
        value = self._cells.build(field, False).spanning(2)
        return [(label, SPAN), (value, SPAN)]

    def _row_for_long_field(self, field: FieldDefinition) -> Row:
        return (self._cells.build(field, True), self._cells.build(field, False))
