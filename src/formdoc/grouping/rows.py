"""Buckets the fields of a section into long (full-row) and short (shared-row) groups."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from formdoc.builders.text import contains_markup, stringify
from formdoc.core.config import LayoutConfig
from formdoc.models import FieldDefinition, FieldGroup, FieldType, LongGroup, ShortGroup

_NEVER_SHORT = frozenset({FieldType.TEXTAREA.value, FieldType.MULTI_CHOICE.value})


def is_short_field(
    field: Optional[FieldDefinition],
    record: Mapping[str, Any],
    threshold: int = 45,
) -> bool:
    """A field is short when it is single-line, markup-free and label+value stay under *threshold*."""
    if field is None or field.type in _NEVER_SHORT:
        return False
    value = stringify(record.get(field.id))
    if contains_markup(value) or contains_markup(field.label):
        return False
    return len(field.label) + len(value) < threshold


def group_rows(
    fields: Sequence[FieldDefinition],
    record: Optional[Mapping[str, Any]],
    layout: LayoutConfig | None = None,
) -> list[FieldGroup]:
    """Single left-to-right scan producing Long / Short groups.

    Consecutive short fields accumulate until a long field interrupts them
    or the group is full.  A one-member Short group is laid out like a
    Long one by the table body builder.
    """
    layout = layout or LayoutConfig()
    record = record or {}
    threshold = layout.short_field_threshold
    limit = layout.max_short_fields_per_row

    groups: list[FieldGroup] = []
    i = 0
    while i < len(fields):
        if not is_short_field(fields[i], record, threshold):
            groups.append(LongGroup(fields[i]))
            i += 1
            continue

        bucket: list[FieldDefinition] = []
        while i < len(fields) and len(bucket) < limit and is_short_field(fields[i], record, threshold):
            bucket.append(fields[i])
            i += 1

        groups.append(ShortGroup(tuple(bucket)))

    return groups
