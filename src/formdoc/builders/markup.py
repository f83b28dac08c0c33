"""Small HTML -> ``TextRun`` converter for cell content.

Supports b/strong, i/em, u, s/strike/del, sub, sup, small, big, a, br and
treats block tags (p, div, li) as line breaks so the result always wraps
inline and inherits alignment from its cell.
"""

from __future__ import annotations

import dataclasses
import re
from html.parser import HTMLParser

from formdoc.formatters.description import TextRun
from formdoc.formatters.pdf_styles import (
    BIG_FONT_SIZE,
    LINK_COLOR,
    SCRIPT_FONT_SIZE,
    SMALL_FONT_SIZE,
)

_WHITESPACE_RE = re.compile(r"\s+")

# tag -> attributes it switches on
_INLINE_TAGS: dict[str, dict[str, object]] = {
    "b": {"bold": True},
    "strong": {"bold": True},
    "i": {"italics": True},
    "em": {"italics": True},
    "u": {"underline": True},
    "s": {"strike": True},
    "strike": {"strike": True},
    "del": {"strike": True},
    "sub": {"sub": True, "font_size": SCRIPT_FONT_SIZE},
    "sup": {"sup": True, "font_size": SCRIPT_FONT_SIZE},
    "small": {"font_size": SMALL_FONT_SIZE},
    "big": {"font_size": BIG_FONT_SIZE},
}
_BLOCK_TAGS = frozenset({"p", "div", "li", "ul", "ol", "h1", "h2", "h3", "h4", "blockquote"})


class _RunCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.runs: list[TextRun] = []
        self._stack: list[tuple[str, dict[str, object]]] = []

    def _current_attrs(self) -> dict[str, object]:
        merged: dict[str, object] = {}
        for _, attrs in self._stack:
            merged.update(attrs)
        return merged

    def _line_break(self) -> None:
        if self.runs and not self.runs[-1].is_line_break:
            self.runs.append(TextRun("\n"))

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        tag = tag.lower()
        if tag == "br":
            self.runs.append(TextRun("\n"))
            return
        if tag in _BLOCK_TAGS:
            self._line_break()
            return
        if tag == "a":
            href = dict(attrs).get("href") or ""
            self._stack.append((tag, {"link": href, "color": LINK_COLOR, "underline": True}))
            return
        if tag in _INLINE_TAGS:
            self._stack.append((tag, _INLINE_TAGS[tag]))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag.lower() == "br":
            self.runs.append(TextRun("\n"))

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        if tag in _BLOCK_TAGS:
            self._line_break()
            return
        # pop back to the matching open tag; unmatched end tags are ignored
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index][0] == tag:
                del self._stack[index:]
                break

    def handle_data(self, data: str) -> None:
        text = _WHITESPACE_RE.sub(" ", data)
        if text:
            self.runs.append(TextRun(text, **self._current_attrs()))


def _strip_line(line: list[TextRun]) -> list[TextRun]:
    stripped: list[TextRun] = []
    for run in line:
        text = run.text
        if not stripped or stripped[-1].text.endswith(" "):
            text = text.lstrip(" ")
        if text:
            stripped.append(dataclasses.replace(run, text=text))
    while stripped:
        last = stripped[-1]
        text = last.text.rstrip(" ")
        if text:
            stripped[-1] = dataclasses.replace(last, text=text)
            break
        stripped.pop()
    return stripped


def _trim(runs: list[TextRun]) -> list[TextRun]:
    """Trim blanks at line edges and drop leading / trailing empty lines."""
    lines: list[list[TextRun]] = [[]]
    for run in runs:
        if run.is_line_break:
            lines.append([])
        else:
            lines[-1].append(run)
    cleaned = [_strip_line(line) for line in lines]
    while cleaned and not cleaned[0]:
        cleaned.pop(0)
    while cleaned and not cleaned[-1]:
        cleaned.pop()

    trimmed: list[TextRun] = []
    for index, line in enumerate(cleaned):
        if index:
            trimmed.append(TextRun("\n"))
        trimmed.extend(line)
    return trimmed


def _merge(runs: list[TextRun]) -> list[TextRun]:
    merged: list[TextRun] = []
    for run in runs:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and not previous.is_line_break
            and not run.is_line_break
            and dataclasses.replace(previous, text="") == dataclasses.replace(run, text="")
        ):
            merged[-1] = dataclasses.replace(previous, text=previous.text + run.text)
        else:
            merged.append(run)
    return merged


def parse_markup(markup: str) -> tuple[TextRun, ...]:
    """Parse limited rich-text markup into a flat tuple of runs."""
    collector = _RunCollector()
    collector.feed(markup)
    collector.close()
    return tuple(_merge(_trim(collector.runs)))
