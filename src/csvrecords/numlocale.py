"""
Decimal conventions for numeric columns.

Only the decimal separator matters to the codec; grouping separators are
never written and never accepted.
"""

from __future__ import annotations

import locale as _locale
from dataclasses import dataclass
from typing import Dict

# language/territory -> decimal point
KNOWN_DECIMAL_POINTS: Dict[str, str] = {
    "C": ".",
    "POSIX": ".",
    "en": ".",
    "en_US": ".",
    "en_GB": ".",
    "ja_JP": ".",
    "zh_CN": ".",
    "de": ",",
    "de_DE": ",",
    "de_AT": ",",
    "de_CH": ".",
    "fr": ",",
    "fr_FR": ",",
    "es_ES": ",",
    "it_IT": ",",
    "nl_NL": ",",
    "pl": ",",
    "pl_PL": ",",
    "pt_BR": ",",
    "ru_RU": ",",
    "sv_SE": ",",
}


@dataclass(frozen=True)
class NumberLocale:
    name: str = "C"
    decimal_point: str = "."

    def __post_init__(self):
        if len(self.decimal_point) != 1 or self.decimal_point.isdigit():
            raise ValueError(f"Invalid decimal point: {self.decimal_point!r}")

    @classmethod
    def default(cls) -> "NumberLocale":
        """Locale of the running process (``LC_NUMERIC``)."""
        conv = _locale.localeconv()
        name = _locale.setlocale(_locale.LC_NUMERIC) or "C"
        return cls(name=name, decimal_point=conv.get("decimal_point") or ".")

    @classmethod
    def for_name(cls, name: str) -> "NumberLocale":
        # "de_DE.UTF-8" -> "de_DE"
        base = name.split(".", 1)[0].split("@", 1)[0]
        for key in (base, base.split("_", 1)[0]):
            if key in KNOWN_DECIMAL_POINTS:
                return cls(name=base, decimal_point=KNOWN_DECIMAL_POINTS[key])
        raise ValueError(f"Unknown locale: {name!r}")

    def localize(self, text: str) -> str:
        if self.decimal_point == ".":
            return text
        return text.replace(".", self.decimal_point)

    def delocalize(self, text: str) -> str:
        """Turn locale number text into Python literal syntax."""
        if self.decimal_point == ".":
            return text
        if "." in text:
            raise ValueError(
                f"Unexpected '.' in {text!r}; locale {self.name} uses {self.decimal_point!r}"
            )
        return text.replace(self.decimal_point, ".")


def resolve_locale(value) -> NumberLocale:
    if value is None:
        return NumberLocale.default()
    if isinstance(value, NumberLocale):
        return value
    if isinstance(value, str):
        return NumberLocale.for_name(value)
    raise TypeError(f"Unsupported locale value: {type(value).__name__}")
