import os
from dataclasses import dataclass
from pathlib import Path

import pytest

from csvrecords import AggregateMappingError, NumberLocale, Policy, from_type, unwrapped

NEWLINE = os.linesep


@dataclass
class User:
    name: str = ""
    surname: str = ""


@dataclass
class Inner:
    my_text: str = "my text"


@dataclass
class Outer:
    inner: Inner = unwrapped(default_factory=Inner)
    name: str = ""
    number: int = 0


class Faulty(Outer):
    @property
    def name(self):
        raise ValueError()

    @name.setter
    def name(self, value):
        pass


def test_user_scenario():
    """
    Contract test for the two-column example.
    """
    csv = from_type(User).build()

    assert csv.decode("Steven,Hawking") == User(name="Steven", surname="Hawking")
    assert csv.encode(User(name="John", surname="Smith")) == "John,Smith" + NEWLINE


def test_unwrapped_scenario():
    csv = from_type(Outer).with_separator(";").with_locale(NumberLocale("en_US", ".")).build()

    assert csv.encode(Outer(name="a", number=1)) == '"my text";a;1' + NEWLINE
    assert csv.decode('"my text";a;1') == Outer(name="a", number=1)


def test_quiet_read_of_one_bad_line(tmp_path: Path):
    path = tmp_path / "users.csv"
    path.write_text("a,b\nc,d\nx,y,z\ne,f\n", encoding="utf-8")
    csv = from_type(User).build()

    assert len(list(csv.read_all(path, policy=Policy.QUIET))) == 3

    errors = []
    assert len(list(csv.read_all(path, errors.append))) == 3
    assert len(errors) == 1


def test_fail_fast_write_with_one_faulty_record(tmp_path: Path):
    out = tmp_path / "out.csv"
    csv = from_type(Outer).with_separator(";").build()

    with pytest.raises(AggregateMappingError) as exc:
        csv.write_all([Outer(name="a", number=1), Faulty(), Outer(name="b", number=2)], out)

    assert len(exc.value.errors) == 1
    assert out.read_bytes().decode().splitlines() == ['"my text";a;1', '"my text";b;2']
