"""Helpers for inspecting document descriptions in tests."""

from __future__ import annotations

from formdoc.formatters.description import Block, Cell, Table, Text


def unwrap(block: Block | None) -> Block | None:
    """Look through vertical-centering shims."""
    while isinstance(block, Table) and block.vertical_center:
        block = block.body[1][0].content
    return block


def cell_text(cell: Cell) -> str:
    """Plain text shown by a cell."""
    content = unwrap(cell.content)
    return content.plain_text if isinstance(content, Text) else ""


def row_texts(table: Table) -> list[list[str]]:
    return [[cell_text(cell) for cell in row] for row in table.body]
