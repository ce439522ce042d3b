from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ConfigError
from .numlocale import NumberLocale, resolve_locale
from .validate import validate_config_doc

# ---------------------------------------------------------------------------
# Dialect profiles (optional presets)
# ---------------------------------------------------------------------------

DIALECT_PROFILES: Dict[str, Dict[str, Any]] = {
    "default": {"separator": ","},
    "excel": {"separator": ",", "header": True},
    "excel-semicolon": {"separator": ";", "header": True, "locale": "de_DE"},
    "tsv": {"separator": "\t"},
    "pipe": {"separator": "|"},
}

_FORBIDDEN_SEPARATORS = {'"', "\r", "\n"}


@dataclass(frozen=True)
class CsvConfig:
    """
    Immutable mapper settings.

    Fields:
      separator: column delimiter, one character
      locale: decimal conventions for numeric columns
      include_header: write a header line / skip the first line on read
      skip_blank_lines: drop blank lines on read (after the header skip)
      encoding: text encoding of files
    """

    separator: str = ","
    locale: NumberLocale = field(default_factory=NumberLocale.default)
    include_header: bool = False
    skip_blank_lines: bool = False
    encoding: str = "utf-8"

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_config(cls, cfg: Dict[str, Any] | None) -> "CsvConfig":
        """
        Build from a mapping, e.g. parsed YAML:

        profile: excel-semicolon
        separator: ";"
        header: true
        locale: de_DE
        skip_empty_lines: true
        encoding: utf-8
        """
        if cfg is None:
            return cls()

        validate_config_doc(cfg)
        cfg = dict(cfg)

        profile_name = cfg.pop("profile", None)
        if profile_name is not None and profile_name not in DIALECT_PROFILES:
            known = ", ".join(sorted(DIALECT_PROFILES))
            raise ConfigError(f"Unknown profile {profile_name!r} (known: {known})")
        profile_data = DIALECT_PROFILES.get(profile_name, {}) if profile_name else {}

        merged = {**profile_data, **cfg}

        try:
            locale = resolve_locale(merged.get("locale"))
        except ValueError as e:
            raise ConfigError(str(e)) from e

        return cls(
            separator=merged.get("separator", ","),
            locale=locale,
            include_header=bool(merged.get("header", False)),
            skip_blank_lines=bool(merged.get("skip_empty_lines", False)),
            encoding=merged.get("encoding", "utf-8"),
        ).validate()

    def validate(self) -> "CsvConfig":
        if not isinstance(self.separator, str) or len(self.separator) != 1:
            raise ConfigError(f"Separator must be a single character, got {self.separator!r}")
        if self.separator in _FORBIDDEN_SEPARATORS:
            raise ConfigError(f"Separator cannot be {self.separator!r}")
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ConfigError(f"Unknown encoding {self.encoding!r}") from e
        return self

    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "separator": self.separator,
            "header": self.include_header,
            "locale": self.locale.name,
            "skip_empty_lines": self.skip_blank_lines,
            "encoding": self.encoding,
        }


def load_config(path: str | Path) -> CsvConfig:
    """Read a YAML mapper configuration file."""
    path = Path(path).expanduser().resolve()
    if not path.is_file():
        raise FileNotFoundError(path)

    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML") from e

    return CsvConfig.from_config(doc or {})
