"""Tests for long / short row grouping."""

from __future__ import annotations

from formdoc.core.config import LayoutConfig
from formdoc.grouping.rows import group_rows, is_short_field
from formdoc.models import LongGroup, ShortGroup, parse_fields


def _field(field_id: str, label: str = "Label", **kwargs):
    return parse_fields([{"id": field_id, "label": label, "type": "text", **kwargs}])[0]


def _ids(groups):
    return [
        ("long", g.field.id) if isinstance(g, LongGroup) else ("short", tuple(f.id for f in g.fields))
        for g in groups
    ]


class TestIsShortField:
    def test_short_text(self) -> None:
        assert is_short_field(_field("a"), {"a": "x"})

    def test_length_boundary(self) -> None:
        field = _field("a", label="L" * 20)
        assert is_short_field(field, {"a": "v" * 24})
        assert not is_short_field(field, {"a": "v" * 25})

    def test_textarea_and_multi_choice_never_short(self) -> None:
        textarea = _field("a", type="textarea")
        choice = parse_fields([{"id": "m", "label": "M", "type": "multi_choice"}])[0]
        assert not is_short_field(textarea, {"a": "x"})
        assert not is_short_field(choice, {})

    def test_markup_in_value_or_label(self) -> None:
        assert not is_short_field(_field("a"), {"a": "<b>x</b>"})
        assert not is_short_field(_field("a", label="a < b"), {"a": "x"})

    def test_missing_field(self) -> None:
        assert not is_short_field(None, {})

    def test_threshold_is_configurable(self) -> None:
        field = _field("a", label="Label")
        assert not is_short_field(field, {"a": "value"}, threshold=10)


class TestGroupRows:
    def test_resets_at_long_fields(self) -> None:
        fields = [_field("short1"), _field("short2"), _field("long1"), _field("short3")]
        record = {"short1": "a", "short2": "b", "long1": "x" * 60, "short3": "c"}
        assert _ids(group_rows(fields, record)) == [
            ("short", ("short1", "short2")),
            ("long", "long1"),
            ("short", ("short3",)),
        ]

    def test_groups_capped_at_three(self) -> None:
        fields = [_field(f"s{i}") for i in range(5)]
        groups = group_rows(fields, {})
        assert [len(g.fields) for g in groups] == [3, 2]

    def test_capacity_is_configurable(self) -> None:
        fields = [_field(f"s{i}") for i in range(4)]
        groups = group_rows(fields, {}, LayoutConfig(max_short_fields_per_row=2))
        assert [len(g.fields) for g in groups] == [2, 2]

    def test_textarea_is_long(self) -> None:
        groups = group_rows([_field("t", type="textarea")], {"t": "x"})
        assert isinstance(groups[0], LongGroup)

    def test_every_field_once(self) -> None:
        fields = [_field(f"f{i}", type="textarea" if i % 4 == 0 else "text") for i in range(10)]
        record = {f"f{i}": "v" * (i * 7) for i in range(10)}
        groups = group_rows(fields, record)
        seen = [g.field.id if isinstance(g, LongGroup) else f.id for g in groups for f in getattr(g, "fields", (g,))]
        assert seen == [f.id for f in fields]

    def test_short_group_bound(self) -> None:
        fields = [_field(f"f{i}", type="textarea" if i % 3 == 0 else "text") for i in range(12)]
        record = {f"f{i}": "v" * (i * 5) for i in range(12)}
        for group in group_rows(fields, record):
            if isinstance(group, ShortGroup):
                assert len(group.fields) <= 3
                assert all(is_short_field(f, record) for f in group.fields)

    def test_empty(self) -> None:
        assert group_rows([], {}) == []
