"""Centralized style constants and table layouts for PDF output."""

from __future__ import annotations

from formdoc.formatters.description import Style, TableLayout

# ── Palette (hex strings) ────────────────────────────────────────────
# Kept as plain hex so the renderer can convert to whatever color object
# the rendering library requires (e.g. reportlab HexColor).

BORDER_COLOR = "#bfbfbf"
HEADER_BG_COLOR = "#59595c"
HEADER_TEXT_COLOR = "#ffffff"
LABEL_BG_COLOR = "#eeeeee"
LABEL_TEXT_COLOR = "#595a5c"
PLACEHOLDER_COLOR = "#808080"
LINK_COLOR = "#1a5fb4"

# ── Padding ──────────────────────────────────────────────────────────
# Exported because builders compute negative margins from them.

CELL_VERTICAL_PADDING = 8.0
CELL_HORIZONTAL_PADDING = 8.0

# ── Style names ──────────────────────────────────────────────────────

LABEL = "label"
ANSWER = "answer"
TABLE_HEADER = "tableHeader"
SECTION_HEADER = "sectionHeader"
CHOICE_LABEL = "detailedChoiceLabel"
PAGE_HEADER = "pageHeader"
PAGE_HEADER_TITLE = "pageHeaderTitle"

# ── Inline tag styles used by the markup parser ──────────────────────

SMALL_FONT_SIZE = 8.0
BIG_FONT_SIZE = 12.0
SCRIPT_FONT_SIZE = 8.0


def get_styles() -> dict[str, Style]:
    """Named styles referenced by cells and text blocks."""
    return {
        LABEL: Style(
            font_size=10,
            bold=True,
            color=LABEL_TEXT_COLOR,
            fill_color=LABEL_BG_COLOR,
            alignment="left",
        ),
        ANSWER: Style(font_size=10, alignment="justify"),
        TABLE_HEADER: Style(
            font_size=10,
            bold=True,
            color=LABEL_TEXT_COLOR,
            fill_color=LABEL_BG_COLOR,
            alignment="center",
        ),
        SECTION_HEADER: Style(
            font_size=12,
            bold=True,
            color=HEADER_TEXT_COLOR,
            fill_color=HEADER_BG_COLOR,
            alignment="center",
            margin=(0, 4, 0, 4),
        ),
        CHOICE_LABEL: Style(
            font_size=10,
            bold=True,
            color=LABEL_TEXT_COLOR,
            fill_color=LABEL_BG_COLOR,
            alignment="center",
        ),
        PAGE_HEADER: Style(font_size=8, alignment="center", color=LABEL_TEXT_COLOR),
        PAGE_HEADER_TITLE: Style(font_size=11, bold=True, alignment="center"),
    }


# ── Table layouts ────────────────────────────────────────────────────

MAIN_TABLE_LAYOUT = TableLayout(
    line_width=0.5,
    line_color=BORDER_COLOR,
    padding_h=CELL_HORIZONTAL_PADDING,
    padding_v=CELL_VERTICAL_PADDING,
)

# Main layout that drops padding on group rows so nested tables are not
# padded twice.
GROUP_AWARE_TABLE_LAYOUT = TableLayout(
    line_width=0.5,
    line_color=BORDER_COLOR,
    padding_h=CELL_HORIZONTAL_PADDING,
    padding_v=CELL_VERTICAL_PADDING,
    group_rows_unpadded=True,
)

# Side-by-side short fields: separators between columns only.
NESTED_TABLE_LAYOUT = TableLayout(
    line_width=0.5,
    line_color=BORDER_COLOR,
    padding_h=CELL_HORIZONTAL_PADDING,
    padding_v=CELL_VERTICAL_PADDING,
    hlines=False,
    outer_vlines=False,
)

REPEATING_TABLE_LAYOUT = MAIN_TABLE_LAYOUT

NO_BORDERS_LAYOUT = TableLayout(
    line_width=0.0,
    hlines=False,
    outer_vlines=False,
    inner_vlines=False,
)

PAGE_HEADER_LAYOUT = TableLayout(
    line_width=0.5,
    line_color=BORDER_COLOR,
    padding_h=4.0,
    padding_v=4.0,
)
