"""Positional input masks.

A mask is a plain string where ``9`` stands for a digit, ``#`` for a letter
and ``*`` for any character. Every other character is a literal separator,
e.g. ``999.999.999-99`` for a CPF or ``(99) 99999-9999`` for a phone.
"""

from crudgen.schemas.definition import Schema, SchemaField

DIGIT = "9"
LETTER = "#"
ANY = "*"

_SEPARATORS = str.maketrans("", "", ".-()/ _")


def _accepts(mask_char: str, ch: str) -> bool:
    if mask_char == ANY:
        return True
    if mask_char == DIGIT:
        return ch.isdecimal()
    return ch.isalpha()


def clean_value(field: SchemaField, value: str) -> str:
    """Strip separator punctuation from a masked field's value.

    Values of fields without a mask are returned unchanged.
    """
    if not field.mask:
        return value
    return value.translate(_SEPARATORS)


def format_value(mask: str, value: str) -> str:
    """Project ``value`` through ``mask`` for display.

    Literals missing from the value are inserted; literals already present
    are consumed, so formatting an already formatted value is a no-op. The
    walk stops at the first character that does not fit its placeholder and
    returns what was built so far.
    """
    if not mask:
        return value

    out: list[str] = []
    i = 0
    for mask_char in mask:
        if i >= len(value):
            break
        ch = value[i]
        if mask_char in (DIGIT, LETTER, ANY):
            if not _accepts(mask_char, ch):
                break
            out.append(ch)
            i += 1
        else:
            out.append(mask_char)
            if ch == mask_char:
                i += 1
    return "".join(out)


def format_record(schema: Schema, record: dict) -> dict:
    """Return a copy of ``record`` with masked string values formatted."""
    formatted = dict(record)
    for field in schema.masked_fields:
        value = formatted.get(field.name)
        if isinstance(value, str):
            formatted[field.name] = format_value(field.mask, value)
    return formatted


def format_records(schema: Schema, records: list[dict]) -> list[dict]:
    return [format_record(schema, r) for r in records]
