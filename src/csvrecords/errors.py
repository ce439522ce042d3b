from __future__ import annotations

import os
from typing import List, Optional


class CsvError(Exception):
    """Base class for every error raised by csvrecords."""


class SchemaError(CsvError):
    """A record type cannot be turned into a column schema."""


class ConfigError(CsvError):
    """A mapper configuration value or document is invalid."""


class MappingError(CsvError):
    """
    A single record could not be converted to or from its CSV line.

    The original exception (if any) is chained as ``__cause__`` and kept on
    ``cause`` so callbacks can inspect it without walking the chain.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        field: Optional[str] = None,
        line: Optional[str] = None,
        lineno: Optional[int] = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.field = field
        self.line = line
        self.lineno = lineno
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        msg = super().__str__()
        if self.cause is not None:
            name = type(self.cause).__name__
            detail = str(self.cause)
            msg = f"{msg}: {name}: {detail}" if detail else f"{msg}: {name}"
        return msg


class LineParsingError(MappingError):
    """A CSV line could not be decoded into a record."""


class AggregateMappingError(CsvError):
    """Raised after a bulk write drained its input with one or more failures."""

    PREFIX = "Failed to write lines due to following errors: "

    def __init__(self, errors: List[MappingError]):
        self.errors = list(errors)
        super().__init__(self.PREFIX + join_error_messages(self.errors))


def join_error_messages(errors: List[BaseException]) -> str:
    return "".join(f"{e}," + os.linesep for e in errors)
