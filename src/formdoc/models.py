"""Data models for formdoc.

Field definitions, header and metadata configuration are pydantic models
validated at the boundary: camelCase (as stored by the form layer) and
snake_case keys are both accepted.  Derived per-render structures
(``Section``, ``LongGroup`` / ``ShortGroup``) are plain frozen dataclasses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

# ── Field types ──────────────────────────────────────────────────────


class FieldType(str, Enum):
    """Recognized template field types."""

    TEXT = "text"
    TEXTAREA = "textarea"
    DATE = "date"
    NUMBER = "number"
    REPEATING_TABLE = "repeating_table"
    MULTI_CHOICE = "multi_choice"


# Names used by older templates
_LEGACY_TYPE_NAMES: dict[str, str] = {
    "dynamic_table": FieldType.REPEATING_TABLE.value,
    "detailed_multiple_choice": FieldType.MULTI_CHOICE.value,
}


def _normalize_type(value: Any) -> Any:
    if isinstance(value, FieldType):
        return value.value
    if isinstance(value, str):
        return _LEGACY_TYPE_NAMES.get(value, value)
    return value


def _lenient_order(value: Any) -> float:
    """Coerce ``order`` to a non-negative number; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0
    return int(number) if number.is_integer() else number


class _BoundaryModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ── Field definitions ────────────────────────────────────────────────


class FieldOption(_BoundaryModel):
    """One selectable option of a multi-choice field."""

    id: str
    label: str = ""
    summary: str = ""
    description: str = ""

    @field_validator("label", "summary", "description", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class _FieldBase(_BoundaryModel):
    id: str
    label: str = ""
    order: float = 0
    required: bool = False
    default_value: Any = None
    section_title: Optional[str] = None
    add_row_label: Optional[str] = None
    show_in_form: bool = True

    @field_validator("label", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("required", "show_in_form", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, value: Any) -> float:
        return _lenient_order(value)

    @field_validator("type", mode="before", check_fields=False)
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        return _normalize_type(value)


class LeafField(_FieldBase):
    """A single-valued field: text, textarea, date or number."""

    type: Literal["text", "textarea", "date", "number"] = "text"


class RepeatingTableField(_FieldBase):
    """A field whose value is a list of row records shaped by ``sub_fields``."""

    type: Literal["repeating_table"] = "repeating_table"
    sub_fields: list[FieldDefinition] = Field(
        default_factory=list,
        validation_alias=AliasChoices("subFields", "sub_fields", "fields"),
    )

    @field_validator("sub_fields", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class MultiChoiceField(_FieldBase):
    """A field whose value maps option ids to booleans."""

    type: Literal["multi_choice"] = "multi_choice"
    options: list[FieldOption] = Field(default_factory=list)

    @field_validator("options", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def _field_kind(value: Any) -> str:
    raw = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    kind = _normalize_type(raw)
    if kind in (FieldType.REPEATING_TABLE.value, FieldType.MULTI_CHOICE.value):
        return kind
    return "leaf"


FieldDefinition = Annotated[
    Union[
        Annotated[LeafField, Tag("leaf")],
        Annotated[RepeatingTableField, Tag("repeating_table")],
        Annotated[MultiChoiceField, Tag("multi_choice")],
    ],
    Discriminator(_field_kind),
]

RepeatingTableField.model_rebuild()

_FIELD_LIST_ADAPTER: TypeAdapter[list[FieldDefinition]] = TypeAdapter(list[FieldDefinition])


def parse_fields(raw: Any) -> list[FieldDefinition]:
    """Validate a raw (JSON-decoded) list of field definitions."""
    return _FIELD_LIST_ADAPTER.validate_python(raw or [])


# ── Header / metadata configuration ──────────────────────────────────


class HeaderConfig(_BoundaryModel):
    """Per-page header band configuration."""

    document_code: Optional[str] = None
    document_title: Optional[str] = None
    center_text: Optional[str] = None
    version: Optional[str] = None
    logo_base64: Optional[str] = None


class PdfPermissions(_BoundaryModel):
    printing: bool = True
    copying: bool = True
    modifying: bool = True


class PdfMetadata(_BoundaryModel):
    """Document-info and security settings supplied by the caller."""

    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[str] = None
    creator: Optional[str] = None
    producer: Optional[str] = None
    tagged: Optional[bool] = None
    user_password: Optional[str] = None
    owner_password: Optional[str] = None
    permissions: Optional[PdfPermissions] = None


# ── Derived per-render structures ────────────────────────────────────


@dataclass(frozen=True)
class Section:
    """A titled group of fields rendered together."""

    title: str
    fields: tuple[FieldDefinition, ...]


@dataclass(frozen=True)
class LongGroup:
    """A field that occupies a full table row."""

    field: FieldDefinition


@dataclass(frozen=True)
class ShortGroup:
    """Consecutive short fields that share one table row."""

    fields: tuple[FieldDefinition, ...]


FieldGroup = Union[LongGroup, ShortGroup]
