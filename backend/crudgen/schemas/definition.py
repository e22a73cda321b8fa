"""Table definition document: fields, types, validation rules and masks.

The definition is loaded once at startup and shared read-only by every
request, so all models here are frozen.
"""

import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from crudgen.core.exceptions import MissingPrimaryKeyError, SchemaError
from crudgen.models.enums import FieldType, ValidatorKind

logger = logging.getLogger(__name__)


class RegexRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Compiled on load; an invalid expression rejects the whole definition.
    pattern: re.Pattern[str]
    message: str = ""


class Validation(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ValidatorKind = ValidatorKind.NONE
    regex_rules: tuple[RegexRule, ...] = ()

    @field_validator("type", "regex_rules", mode="before")
    @classmethod
    def null_as_default(cls, v, info):
        if v is None:
            return "" if info.field_name == "type" else ()
        return v


class SchemaField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    type: FieldType
    primary_key: bool = False
    required: bool = False
    validation: Validation = Validation()
    mask: str = ""

    @field_validator("validation", mode="before")
    @classmethod
    def null_validation(cls, v):
        return {} if v is None else v

    @field_validator("mask", mode="before")
    @classmethod
    def null_mask(cls, v):
        return "" if v is None else v

    @property
    def is_text(self) -> bool:
        return self.type in (FieldType.STRING, FieldType.TEXT)


class Schema(BaseModel):
    """A single table: its name and ordered fields."""

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(min_length=1)
    fields: tuple[SchemaField, ...] = Field(min_length=1)

    @model_validator(mode="after")
    def check_fields(self) -> "Schema":
        seen: set[str] = set()
        for f in self.fields:
            if f.name in seen:
                raise ValueError(f"Duplicate field name '{f.name}'.")
            seen.add(f.name)
        keys = [f.name for f in self.fields if f.primary_key]
        if len(keys) > 1:
            raise ValueError(
                f"Only one primary key is supported, got {', '.join(keys)}."
            )
        return self

    @property
    def primary_key(self) -> SchemaField | None:
        for f in self.fields:
            if f.primary_key:
                return f
        return None

    def require_primary_key(self) -> SchemaField:
        """Return the primary key field or raise MissingPrimaryKeyError."""
        pk = self.primary_key
        if pk is None:
            raise MissingPrimaryKeyError(self.table_name)
        return pk

    @property
    def searchable_fields(self) -> tuple[SchemaField, ...]:
        return tuple(f for f in self.fields if f.is_text)

    @property
    def masked_fields(self) -> tuple[SchemaField, ...]:
        return tuple(f for f in self.fields if f.mask)


def load_schema(path: str | Path) -> Schema:
    """Read and validate a table definition from a JSON file.

    Raises SchemaError if the file cannot be read, is not valid JSON, or
    describes an unusable table (unknown types, bad regex, duplicate names).
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaError(f"Could not read schema file '{path}': {exc}") from exc

    try:
        schema = Schema.model_validate_json(raw)
    except ValidationError as exc:
        raise SchemaError(f"Invalid schema file '{path}': {exc}") from exc

    if schema.primary_key is None:
        logger.warning(
            "Table '%s' has no primary key; update and delete are unavailable.",
            schema.table_name,
        )
    return schema
