from __future__ import annotations

import csv as _csv
import os
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional

from .errors import LineParsingError, MappingError
from .numlocale import NumberLocale
from .types import Column, Schema

NEWLINE = os.linesep
QUOTE = '"'

_TRUE = {"true", "t", "1", "yes", "y", "on"}
_FALSE = {"false", "f", "0", "no", "n", "off"}


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def format_value(value: Any, locale: NumberLocale) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return format_value(value.value, locale)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        return locale.localize(repr(value) if isinstance(value, float) else str(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _to_bool(text: str) -> bool:
    t = text.strip().lower()
    if t in _TRUE:
        return True
    if t in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {text!r}")


def _to_enum(kind: type, text: str, locale: NumberLocale) -> Enum:
    for member in kind:
        if format_value(member.value, locale) == text or member.name == text:
            return member
    raise ValueError(f"{text!r} is not a valid {kind.__name__}")


def parse_value(text: str, col: Column, locale: NumberLocale) -> Any:
    """
    Convert one cell back to a value of ``col.kind``.

    An empty cell is ``None`` for optional columns, so an ``Optional[str]``
    holding ``""`` reads back as ``None``: a CSV cell cannot tell the two
    apart. Required ``str`` columns read it as ``""``.
    """
    kind = col.kind
    if text == "":
        if col.optional:
            return None
        if issubclass(kind, str) and not issubclass(kind, Enum):
            return kind(text)
        raise ValueError(f"Empty value for non-optional column {col.name!r}")

    if issubclass(kind, Enum):
        return _to_enum(kind, text, locale)
    if issubclass(kind, bool):
        return _to_bool(text)
    if issubclass(kind, int):
        return kind(locale.delocalize(text.strip()))
    if issubclass(kind, float):
        return kind(locale.delocalize(text.strip()))
    if issubclass(kind, Decimal):
        try:
            return kind(locale.delocalize(text.strip()))
        except InvalidOperation:
            raise ValueError(f"Not a decimal number: {text!r}") from None
    if issubclass(kind, datetime):
        return kind.fromisoformat(text.strip())
    if issubclass(kind, date):
        return kind.fromisoformat(text.strip())
    return kind(text)


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------

def needs_quotes(text: str, separator: str) -> bool:
    return any(ch == separator or ch == QUOTE or ch.isspace() for ch in text)


def quote_field(text: str, separator: str) -> str:
    if needs_quotes(text, separator):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def join_fields(fields: List[str], separator: str) -> str:
    if fields == [""]:
        # a lone empty field would read back as a blank line
        return QUOTE * 2
    return separator.join(quote_field(f, separator) for f in fields)


def split_line(line: str, separator: str) -> List[str]:
    """Tokenize one CSV record; raises ``csv.Error`` on malformed input."""
    rows = list(_csv.reader([line], delimiter=separator, quotechar=QUOTE, strict=True))
    if not rows or rows == [[]]:
        raise ValueError("No content to map due to end-of-input")
    if len(rows) > 1:
        raise ValueError(f"Expected a single record, found {len(rows)}")
    return rows[0]


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def encode_row(record: Any, schema: Schema, separator: str, locale: NumberLocale) -> str:
    """Encode ``record`` as one CSV line terminated by ``os.linesep``."""
    fields = []
    for col in schema.columns:
        try:
            value = col.get(record)
        except Exception as e:
            raise MappingError(
                f"Cannot read field {col.dotted!r} of {type(record).__name__}",
                cause=e,
                field=col.name,
            ) from e
        try:
            fields.append(format_value(value, locale))
        except Exception as e:
            raise MappingError(
                f"Cannot format field {col.dotted!r}", cause=e, field=col.name
            ) from e
    return join_fields(fields, separator) + NEWLINE


def decode_row(
    line: str,
    schema: Schema,
    separator: str,
    locale: NumberLocale,
    lineno: Optional[int] = None,
) -> Any:
    """
    Decode one CSV line into a ``schema.record_type`` instance.

    Every failure is raised as LineParsingError; a record is returned only
    when all columns converted and the constructor accepted them.
    """
    where = f"line {lineno}" if lineno is not None else "line"
    try:
        texts = split_line(line, separator)
    except (_csv.Error, ValueError) as e:
        raise LineParsingError(f"Malformed {where}", cause=e, line=line, lineno=lineno) from e

    if len(texts) != len(schema):
        err = ValueError(f"expected {len(schema)} fields, got {len(texts)}")
        raise LineParsingError(
            f"Wrong field count in {where}", cause=err, line=line, lineno=lineno
        ) from err

    values = []
    for col, text in zip(schema.columns, texts):
        try:
            values.append(parse_value(text, col, locale))
        except Exception as e:
            raise LineParsingError(
                f"Cannot convert column {col.name!r} in {where}",
                cause=e,
                field=col.name,
                line=line,
                lineno=lineno,
            ) from e

    try:
        return schema.assemble(values)
    except Exception as e:
        raise LineParsingError(
            f"Cannot build {schema.record_type.__name__} from {where}",
            cause=e,
            line=line,
            lineno=lineno,
        ) from e
