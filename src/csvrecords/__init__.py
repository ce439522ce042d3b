from . import errors
from . import numlocale
from . import types
from . import schema
from . import codec
from . import validate
from . import config
from . import stream
from . import mapper

from .config import CsvConfig, load_config
from .errors import (
    AggregateMappingError,
    ConfigError,
    CsvError,
    LineParsingError,
    MappingError,
    SchemaError,
)
from .log import configure_logging
from .mapper import CsvBuilder, CsvMapper, from_type
from .numlocale import NumberLocale
from .schema import build_schema, column, model_unwrapped, unwrapped
from .stream import Policy, RecordStream

__all__ = [
    "errors",
    "numlocale",
    "types",
    "schema",
    "codec",
    "validate",
    "config",
    "stream",
    "mapper",
    "AggregateMappingError",
    "ConfigError",
    "CsvBuilder",
    "CsvConfig",
    "CsvError",
    "CsvMapper",
    "LineParsingError",
    "MappingError",
    "NumberLocale",
    "Policy",
    "RecordStream",
    "SchemaError",
    "build_schema",
    "column",
    "configure_logging",
    "from_type",
    "load_config",
    "model_unwrapped",
    "unwrapped",
]
