from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Tuple, Union


@dataclass(frozen=True)
class Column:
    name: str
    path: Tuple[str, ...]       # attribute path from the root record, e.g. ("inner", "my_text")
    kind: type                  # str|int|float|Decimal|bool|Enum subclass|date|datetime
    optional: bool = False
    getter: Callable[[Any], Any] = field(default=None, repr=False, compare=False)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)

    def get(self, record: Any) -> Any:
        return self.getter(record)


@dataclass(frozen=True)
class Leaf:
    column: Column
    key: str                    # constructor keyword on decode


@dataclass(frozen=True)
class Nested:
    key: str
    schema: "Schema"
    optional: bool = False


Node = Union[Leaf, Nested]


@dataclass(frozen=True)
class Schema:
    record_type: type
    nodes: Tuple[Node, ...]
    columns: Tuple[Column, ...]
    factory: Callable[[Dict[str, Any]], Any] = field(repr=False, compare=False)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def assemble(self, values) -> Any:
        """Build a record from column values given in schema order."""
        it = iter(values)
        record = self._assemble(it)
        if next(it, _END) is not _END:
            raise ValueError(f"Too many values for {self.record_type.__name__}")
        return record

    def _assemble(self, it: Iterator[Any]) -> Any:
        kwargs: Dict[str, Any] = {}
        for node in self.nodes:
            if isinstance(node, Leaf):
                try:
                    kwargs[node.key] = next(it)
                except StopIteration:
                    raise ValueError(
                        f"Missing value for column {node.column.name!r}"
                    ) from None
            else:
                # consume the nested columns first so an empty optional
                # sub-record can be told apart from a partially filled one
                sub_values = [next(it, _END) for _ in node.schema.columns]
                if any(v is _END for v in sub_values):
                    raise ValueError(f"Missing values for sub-record {node.key!r}")
                if node.optional and all(v is None for v in sub_values):
                    kwargs[node.key] = None
                else:
                    kwargs[node.key] = node.schema.assemble(sub_values)
        return self.factory(kwargs)


_END = object()
