"""Groups template fields into titled sections.

Two entry points share one algorithm and differ only in their visibility
policy: the document entry point keeps fields hidden from the on-screen
form (auto-computed, document-only values), the form entry point drops them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from formdoc.core.config import LayoutConfig
from formdoc.models import FieldDefinition, Section

# Synthetic pseudo-field holding the document title; never rendered as a row
TITLE_FIELD_ID = "title"


@dataclass(frozen=True)
class VisibilityPolicy:
    """Which fields a grouping call site keeps."""

    exclude_hidden: bool
    excluded_ids: frozenset[str] = frozenset({TITLE_FIELD_ID})

    def keeps(self, field: FieldDefinition) -> bool:
        if field.id in self.excluded_ids:
            return False
        return not (self.exclude_hidden and not field.show_in_form)


def sort_fields(fields: Iterable[FieldDefinition]) -> list[FieldDefinition]:
    """Stable sort by ``order``; ties keep their input position."""
    return sorted(fields, key=lambda f: f.order)


def group_sections(
    fields: Optional[Sequence[FieldDefinition]],
    default_title: str = "General",
) -> list[Section]:
    """Partition *fields* into sections keyed by ``section_title``.

    Fields are order-sorted first; sections come out ordered by the
    ``order`` of their first field, fields inside keep the sorted order.
    """
    if not fields:
        return []

    buckets: dict[str, list[FieldDefinition]] = {}
    for field in sort_fields(fields):
        buckets.setdefault(field.section_title or default_title, []).append(field)

    sections = [Section(title=title, fields=tuple(members)) for title, members in buckets.items()]
    return sorted(sections, key=lambda s: s.fields[0].order)


def _group_with_policy(
    fields: Optional[Sequence[FieldDefinition]],
    policy: VisibilityPolicy,
    layout: LayoutConfig,
) -> list[Section]:
    kept = [f for f in (fields or []) if policy.keeps(f)]
    return group_sections(kept, layout.default_section_title)


def group_sections_for_document(
    fields: Optional[Sequence[FieldDefinition]],
    layout: LayoutConfig | None = None,
) -> list[Section]:
    """Sections as rendered in the PDF document."""
    layout = layout or LayoutConfig()
    return _group_with_policy(fields, VisibilityPolicy(layout.exclude_hidden_fields_in_pdf), layout)


def group_sections_for_form(
    fields: Optional[Sequence[FieldDefinition]],
    layout: LayoutConfig | None = None,
) -> list[Section]:
    """Sections as shown in the on-screen form."""
    layout = layout or LayoutConfig()
    return _group_with_policy(fields, VisibilityPolicy(layout.exclude_hidden_fields_in_form), layout)
