from typing import Any, Dict

import jsonschema

from .errors import ConfigError

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "csvrecords mapper configuration",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "profile": {"type": "string"},
        "separator": {"type": "string", "minLength": 1, "maxLength": 1},
        "header": {"type": "boolean"},
        "locale": {"type": "string", "minLength": 1},
        "skip_empty_lines": {"type": "boolean"},
        "encoding": {"type": "string", "minLength": 1},
    },
}


def validate_config_doc(doc: Any) -> None:
    try:
        jsonschema.validate(instance=doc, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        where = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"Invalid mapper configuration at {where}: {e.message}") from e
