"""Output formatter protocol: the contract every document formatter implements."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from formdoc.formatters.description import DocumentDescription


@runtime_checkable
class IOutputFormatter(Protocol):
    """Protocol for output formatters (PDF, JSON, etc.)."""

    def format(self, description: DocumentDescription, **kwargs: Any) -> bytes:
        """Render the description into output bytes."""
        ...

    def format_to_file(self, description: DocumentDescription, path: Path, **kwargs: Any) -> Path:
        """Render and write to a file. Returns the output path."""
        ...

    @property
    def content_type(self) -> str:
        """MIME type for the output format (e.g. 'application/pdf')."""
        ...


__all__ = ["IOutputFormatter"]
