"""Form validation pipeline: required checks, format checks, regex rules
and type coercion, driven by the table definition.
"""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import date, datetime

from crudgen.core.masks import clean_value
from crudgen.core.validators import FORMAT_CHECKS
from crudgen.models.enums import FieldType
from crudgen.schemas.definition import Schema, SchemaField

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "Campo obrigatório"
INT_MESSAGE = "Valor deve ser um número inteiro"
FLOAT_MESSAGE = "Valor deve ser numérico"
DATE_MESSAGE = "Data inválida. Use AAAA-MM-DD"

# Key for errors that are not tied to a single field.
FORM_ERROR_KEY = "_form"

# Accepted date layouts, each with the zero-padded shape it must match.
DATE_FORMATS = (
    (re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}"), "%Y-%m-%d"),
    (re.compile(r"[0-9]{2}/[0-9]{2}/[0-9]{4}"), "%d/%m/%Y"),
)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

CleanValue = int | float | str | date | None


class CoercionError(ValueError):
    """Raised by a coercer; the message is shown next to the field."""


def _to_int(field: SchemaField, value: str) -> int:
    if _INT_RE.fullmatch(value) is None:
        raise CoercionError(INT_MESSAGE)
    return int(value)


def _to_float(field: SchemaField, value: str) -> float:
    if _FLOAT_RE.fullmatch(value) is None:
        raise CoercionError(FLOAT_MESSAGE)
    return float(value)


def _to_date(field: SchemaField, value: str) -> date:
    for shape, fmt in DATE_FORMATS:
        if shape.fullmatch(value) is None:
            continue
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise CoercionError(DATE_MESSAGE)


def _to_text(field: SchemaField, value: str) -> str:
    return clean_value(field, value)


def _as_is(field: SchemaField, value: str) -> str:
    return value


COERCERS: dict[FieldType, Callable[[SchemaField, str], CleanValue]] = {
    FieldType.INT: _to_int,
    FieldType.FLOAT: _to_float,
    FieldType.DATE: _to_date,
    FieldType.STRING: _to_text,
    FieldType.TEXT: _to_text,
    FieldType.DATETIME: _as_is,
}


def _first_failing_rule(field: SchemaField, value: str) -> str | None:
    for rule in field.validation.regex_rules:
        if rule.pattern.search(value) is None:
            return rule.message
    return None


def validate(
    form: Mapping[str, str],
    schema: Schema,
    check_optional_formats: bool = False,
) -> tuple[dict[str, CleanValue], dict[str, str]]:
    """Validate submitted form values against the table definition.

    Returns ``(clean_data, errors)``. Every field is visited in definition
    order; the first problem found on a field is reported and the rest of its
    checks are skipped, but the remaining fields are still checked.

    Empty optional fields become ``None`` in ``clean_data`` without running
    any validator. Format validators receive the field's required flag, so
    they pass non-empty optional values too unless
    ``check_optional_formats`` is set.
    """
    clean: dict[str, CleanValue] = {}
    errors: dict[str, str] = {}

    for field in schema.fields:
        value = form.get(field.name) or ""

        if value == "":
            if field.required:
                errors[field.name] = REQUIRED_MESSAGE
            else:
                clean[field.name] = None
            continue

        check = FORMAT_CHECKS.get(field.validation.type)
        if check is not None:
            is_valid, message = check
            if not is_valid(value, field.required or check_optional_formats):
                errors[field.name] = message
                continue

        message = _first_failing_rule(field, value)
        if message is not None:
            errors[field.name] = message
            continue

        try:
            clean[field.name] = COERCERS[field.type](field, value)
        except CoercionError as exc:
            errors[field.name] = str(exc)

    if errors:
        logger.debug(
            "Rejected submission for %s: %s", schema.table_name, sorted(errors)
        )
    return clean, errors


def parse_key(field: SchemaField, raw: str) -> CleanValue:
    """Coerce a primary key taken from a URL or form to the key's type.

    Raises ValueError if the value does not fit.
    """
    if field.type == FieldType.INT:
        if _INT_RE.fullmatch(raw) is None:
            raise ValueError(f"Invalid key value '{raw}'.")
        return int(raw)
    return raw
