"""
Column schema derivation for dataclass and pydantic record types.

Fields are mapped in declaration order. A field marked as *unwrapped* does not
get a column of its own; the columns of its (dataclass or pydantic) type are
spliced in at its position, recursively:

    @dataclass
    class Inner:
        my_text: str = "my text"

    @dataclass
    class Outer:
        inner: Inner = unwrapped(default_factory=Inner)
        name: str = ""
        number: int = 0

    build_schema(Outer).names == ("my_text", "name", "number")
"""

from __future__ import annotations

import dataclasses
import types as _types
import typing
from datetime import date
from decimal import Decimal
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .errors import SchemaError
from .types import Column, Leaf, Nested, Node, Schema

UNWRAP_KEY = "csv_unwrap"
NAME_KEY = "csv_name"

# bool before int, Enum before str/int: order matters for subclass checks
SCALAR_KINDS: Tuple[type, ...] = (bool, Enum, int, float, Decimal, date, str)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def unwrapped(**kwargs) -> Any:
    """dataclasses.field() whose sub-record columns are flattened into the parent."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[UNWRAP_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def column(name: str, **kwargs) -> Any:
    """dataclasses.field() with an explicit CSV column name."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[NAME_KEY] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def model_unwrapped(**kwargs) -> Any:
    """pydantic Field() counterpart of unwrapped()."""
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[UNWRAP_KEY] = True
    return Field(json_schema_extra=extra, **kwargs)


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class _FieldInfo:
    attr: str
    key: str
    name: str
    annotation: Any
    unwrap: bool


def _is_model(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def _is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def _dataclass_fields(tp: type) -> List[_FieldInfo]:
    try:
        hints = typing.get_type_hints(tp)
    except Exception as e:
        raise SchemaError(f"Cannot resolve type hints of {tp.__name__}: {e}") from e

    out = []
    for f in dataclasses.fields(tp):
        if not f.init:
            continue
        out.append(_FieldInfo(
            attr=f.name,
            key=f.name,
            name=f.metadata.get(NAME_KEY, f.name),
            annotation=hints.get(f.name, f.type),
            unwrap=bool(f.metadata.get(UNWRAP_KEY, False)),
        ))
    return out


def _model_fields(tp: type) -> List[_FieldInfo]:
    out = []
    for attr, info in tp.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        name = info.alias or attr
        out.append(_FieldInfo(
            attr=attr,
            key=name,
            name=name,
            annotation=info.annotation,
            unwrap=bool(extra.get(UNWRAP_KEY, False)),
        ))
    return out


def _record_fields(tp: Any) -> Tuple[List[_FieldInfo], Callable[[Dict[str, Any]], Any]]:
    if _is_model(tp):
        return _model_fields(tp), tp.model_validate
    if _is_dataclass_type(tp):
        return _dataclass_fields(tp), lambda kwargs: tp(**kwargs)
    raise SchemaError(
        f"Cannot introspect {getattr(tp, '__name__', tp)!r}: "
        "expected a dataclass or a pydantic model"
    )


def _split_optional(annotation: Any) -> Tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is getattr(_types, "UnionType", None):
        args = typing.get_args(annotation)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(rest) < len(args):
            return rest[0], True
        raise SchemaError(f"Unsupported union type: {annotation!r}")
    return annotation, False


def _scalar_kind(annotation: Any, where: str) -> type:
    if isinstance(annotation, type):
        for kind in SCALAR_KINDS:
            if issubclass(annotation, kind):
                return annotation
    raise SchemaError(f"Unsupported type for field {where}: {annotation!r}")


def _make_getter(path: Tuple[str, ...]) -> Callable[[Any], Any]:
    first = attrgetter(path[0])
    rest = [attrgetter(p) for p in path[1:]]

    def get(record: Any) -> Any:
        cur = first(record)
        for step in rest:
            # a missing (None) sub-record yields empty columns
            if cur is None:
                return None
            cur = step(cur)
        return cur

    return get


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def _build(tp: Any, prefix: Tuple[str, ...], stack: Tuple[type, ...], optional: bool) -> Schema:
    if tp in stack:
        chain = " -> ".join(t.__name__ for t in stack + (tp,))
        raise SchemaError(f"Cyclic unwrap: {chain}")

    fields, factory = _record_fields(tp)
    nodes: List[Node] = []
    columns: List[Column] = []

    for f in fields:
        path = prefix + (f.attr,)
        where = f"{tp.__name__}.{f.attr}"
        inner, is_optional = _split_optional(f.annotation)

        if f.unwrap:
            if not (_is_model(inner) or _is_dataclass_type(inner)):
                raise SchemaError(
                    f"Unwrapped field {where} must be a dataclass or pydantic model, got {inner!r}"
                )
            sub = _build(inner, path, stack + (tp,), optional or is_optional)
            nodes.append(Nested(key=f.key, schema=sub, optional=is_optional))
            columns.extend(sub.columns)
            continue

        col = Column(
            name=f.name,
            path=path,
            kind=_scalar_kind(inner, where),
            optional=optional or is_optional,
            getter=_make_getter(path),
        )
        nodes.append(Leaf(column=col, key=f.key))
        columns.append(col)

    return Schema(record_type=tp, nodes=tuple(nodes), columns=tuple(columns), factory=factory)


def build_schema(record_type: Any) -> Schema:
    """Derive the ordered, flattened column schema of ``record_type``."""
    schema = _build(record_type, (), (), False)

    if not schema.columns:
        raise SchemaError(f"{record_type.__name__} has no mappable fields")

    seen: Dict[str, Column] = {}
    for col in schema.columns:
        if col.name in seen:
            raise SchemaError(
                f"Duplicate column name {col.name!r} "
                f"({seen[col.name].dotted} and {col.dotted})"
            )
        seen[col.name] = col

    return schema
