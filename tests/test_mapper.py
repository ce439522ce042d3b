import os
import threading
from dataclasses import FrozenInstanceError

import pytest

from csvrecords import (
    ConfigError,
    CsvMapper,
    LineParsingError,
    MappingError,
    NumberLocale,
    SchemaError,
    from_type,
)

from sample_records import Broken, Customer, Inner, TextAndNumber, User

NEWLINE = os.linesep


@pytest.fixture
def users():
    return CsvMapper.builder(User).build()


# ==========================================================
# BUILDER
# ==========================================================


def test_builder_is_immutable_and_chainable():
    base = from_type(User)
    semi = base.with_separator(";")
    assert base.config.separator == ","
    assert semi.config.separator == ";"
    assert semi.with_header().config.include_header is True
    assert semi.config.include_header is False


def test_builder_defaults():
    mapper = from_type(User).build()
    assert mapper.config.separator == ","
    assert mapper.config.include_header is False
    assert mapper.config.skip_blank_lines is False
    assert mapper.config.locale == NumberLocale.default()
    assert mapper.record_type is User


def test_builder_locale_by_name():
    mapper = from_type(User).with_locale("de_DE").build()
    assert mapper.config.locale.decimal_point == ","


@pytest.mark.parametrize("separator", ["", ";;", '"', "\n"])
def test_build_rejects_bad_separator(separator):
    with pytest.raises(ConfigError):
        from_type(User).with_separator(separator).build()


def test_build_rejects_unknown_encoding():
    with pytest.raises(ConfigError, match="Unknown encoding"):
        from_type(User).with_encoding("no-such-codec").build()


def test_build_surfaces_schema_errors():
    with pytest.raises(SchemaError):
        from_type(dict).build()


def test_mapper_is_frozen(users):
    with pytest.raises(FrozenInstanceError):
        users.config = None


# ==========================================================
# SINGLE RECORDS
# ==========================================================


def test_readme_example(users):
    assert users.encode(User("John", "Smith")) == "John,Smith" + NEWLINE
    assert users.decode("Steven,Hawking") == User(name="Steven", surname="Hawking")


def test_legacy_method_names(users):
    assert users.map_to_csv(User("a", "b")) == users.encode(User("a", "b"))
    assert users.map_to_object("a,b") == User("a", "b")


def test_encode_failure_raises_mapping_error():
    mapper = from_type(TextAndNumber).with_separator(";").build()
    with pytest.raises(MappingError):
        mapper.encode(Broken())


def test_encode_or_collect():
    mapper = from_type(TextAndNumber).with_separator(";").build()
    errors = []

    assert mapper.encode_or_collect(TextAndNumber(name="a", number=1), errors.append) == '"my text";a;1' + NEWLINE
    assert errors == []

    assert mapper.encode_or_collect(Broken(), errors.append) is None
    assert len(errors) == 1
    assert isinstance(errors[0], MappingError)


def test_decode_or_collect(users):
    errors = []
    assert users.decode_or_collect("a,b,c" + NEWLINE, errors.append) is None
    assert len(errors) == 1
    assert isinstance(errors[0], LineParsingError)

    assert users.map_to_object_quietly("a,b", errors.append) == User("a", "b")
    assert len(errors) == 1


def test_decode_raises_on_wrong_field_count(users):
    with pytest.raises(LineParsingError):
        users.decode("a,b,c")


# ==========================================================
# HEADER
# ==========================================================


def test_header_line_absent_by_default(users):
    assert users.header_line() is None


def test_header_line_joins_names_with_separator():
    mapper = from_type(Customer).with_separator(";").with_header().build()
    assert mapper.header_line() == "id;street;city;name;lat;lon;e-mail"


def test_header_line_uses_quoting_rule():
    mapper = from_type(TextAndNumber).with_separator("_").with_header().build()
    assert mapper.header_line() == '"my_text"_name_number'


# ==========================================================
# SHARING
# ==========================================================


def test_mapper_can_be_shared_between_threads():
    mapper = from_type(TextAndNumber).with_separator(";").build()
    results = []

    def work(i):
        rec = TextAndNumber(inner=Inner(f"t {i}"), name=f"n{i}", number=i)
        results.append(mapper.decode(mapper.encode(rec)) == rec)

    threads = [threading.Thread(target=work, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == [True] * 8
