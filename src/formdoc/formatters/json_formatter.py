"""JSON output formatter: a readable dump of the document description, used for
debugging layouts and in tests."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any

from formdoc.formatters.description import DocumentDescription


class JSONFormatter:
    """Renders a DocumentDescription as indented JSON bytes.

    The page header is a function of the page position, so it is exported
    as its rendition for page 1 of 1.
    """

    def format(self, description: DocumentDescription, **kwargs: Any) -> bytes:
        """Serialize *description* to pretty-printed JSON bytes."""
        return json.dumps(self.to_dict(description), indent=2, default=str).encode()

    def format_to_file(self, description: DocumentDescription, path: Path, **kwargs: Any) -> Path:
        """Write JSON to *path* and return it."""
        path.write_bytes(self.format(description, **kwargs))
        return path

    @property
    def content_type(self) -> str:
        return "application/json"

    @staticmethod
    def to_dict(description: DocumentDescription) -> dict[str, Any]:
        header = description.header(1, 1) if description.header is not None else None
        data = dataclasses.asdict(dataclasses.replace(description, header=None))
        data["header"] = dataclasses.asdict(header) if header is not None else None
        return data
