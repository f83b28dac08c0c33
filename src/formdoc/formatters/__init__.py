"""Document description types and output formatters (PDF, JSON)."""

from __future__ import annotations

from typing import Any

from formdoc.formatters.json_formatter import JSONFormatter
from formdoc.formatters.protocols import IOutputFormatter

__all__ = [
    "IOutputFormatter",
    "JSONFormatter",
    "PDFRenderer",
]


def __getattr__(name: str) -> Any:
    """Lazy-load PDFRenderer so reportlab is only imported when needed."""
    if name == "PDFRenderer":
        from formdoc.formatters.pdf_renderer import PDFRenderer

        return PDFRenderer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
