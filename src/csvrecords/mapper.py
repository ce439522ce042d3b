from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar, Union

from .codec import decode_row, encode_row, join_fields
from .config import CsvConfig, load_config
from .errors import MappingError
from .numlocale import NumberLocale, resolve_locale
from .schema import build_schema
from .stream import ErrorHandler, Policy, RecordStream, read_records, write_records
from .types import Schema

T = TypeVar("T")


# ---------------------------------------------------------------------------
# CsvBuilder
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CsvBuilder(Generic[T]):
    """
    Chained, immutable mapper settings. Every ``with_*`` call returns a new
    builder; ``build()`` validates and derives the schema once.
    """

    record_type: type
    config: CsvConfig = field(default_factory=CsvConfig)

    def with_separator(self, separator: str) -> "CsvBuilder[T]":
        return replace(self, config=replace(self.config, separator=separator))

    def with_header(self, enabled: bool = True) -> "CsvBuilder[T]":
        return replace(self, config=replace(self.config, include_header=enabled))

    def with_locale(self, locale: Union[NumberLocale, str]) -> "CsvBuilder[T]":
        return replace(self, config=replace(self.config, locale=resolve_locale(locale)))

    def skip_empty_lines(self, enabled: bool = True) -> "CsvBuilder[T]":
        return replace(self, config=replace(self.config, skip_blank_lines=enabled))

    def with_encoding(self, encoding: str) -> "CsvBuilder[T]":
        return replace(self, config=replace(self.config, encoding=encoding))

    def with_config(self, config: CsvConfig) -> "CsvBuilder[T]":
        return replace(self, config=config)

    def build(self) -> "CsvMapper[T]":
        config = self.config.validate()
        return CsvMapper(schema=build_schema(self.record_type), config=config)


# ---------------------------------------------------------------------------
# CsvMapper
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CsvMapper(Generic[T]):
    """
    Maps ``record_type`` instances to CSV lines and back.

    Holds no mutable state; one instance can serve any number of callers.
    """

    schema: Schema
    config: CsvConfig

    @staticmethod
    def builder(record_type: type) -> CsvBuilder:
        return CsvBuilder(record_type)

    @classmethod
    def from_config(cls, record_type: type, source: Union[Dict[str, Any], str, Path, None]) -> "CsvMapper":
        """Build from a config mapping or a YAML file path."""
        if isinstance(source, (str, Path)):
            config = load_config(source)
        else:
            config = CsvConfig.from_config(source)
        return CsvBuilder(record_type).with_config(config).build()

    @property
    def record_type(self) -> type:
        return self.schema.record_type

    # ------------------------------------------------------------------
    # Single records
    # ------------------------------------------------------------------
    def encode(self, record: T) -> str:
        return encode_row(record, self.schema, self.config.separator, self.config.locale)

    def encode_or_collect(self, record: T, on_error: ErrorHandler) -> Optional[str]:
        try:
            return self.encode(record)
        except MappingError as e:
            on_error(e)
            return None

    def decode(self, line: str) -> T:
        return decode_row(line, self.schema, self.config.separator, self.config.locale)

    def decode_or_collect(self, line: str, on_error: ErrorHandler) -> Optional[T]:
        try:
            return self.decode(line)
        except MappingError as e:
            on_error(e)
            return None

    map_to_csv = encode
    map_to_csv_quietly = encode_or_collect
    map_to_object = decode
    map_to_object_quietly = decode_or_collect

    def header_line(self) -> Optional[str]:
        if not self.config.include_header:
            return None
        return join_fields(list(self.schema.names), self.config.separator)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def read_all(
        self,
        path: Union[str, Path],
        on_error: Optional[ErrorHandler] = None,
        *,
        policy: Optional[Policy] = None,
    ) -> RecordStream:
        """
        Lazily decode the records of ``path``.

        Without ``on_error`` the first bad line raises LineParsingError.
        With ``on_error`` bad lines are reported to it and skipped.
        ``policy=Policy.QUIET`` drops bad lines, reporting them to
        ``on_error`` only when one is given.
        """
        return read_records(self, path, policy=policy, on_error=on_error)

    def write_all(
        self,
        records: Iterable[T],
        path: Union[str, Path],
        on_error: Optional[ErrorHandler] = None,
    ) -> int:
        return write_records(self, records, path, on_error=on_error)

    read_file = read_all
    write_file = write_all


def from_type(record_type: type) -> CsvBuilder:
    return CsvBuilder(record_type)
