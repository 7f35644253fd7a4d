# Quire Sheets
# File: tests/test_record.py
# Version: v1

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pytest

from quire.errors import ShapeError
from quire.record import (
    IGNORE,
    column,
    decode_many,
    decode_one,
    encode,
    encode_many,
    new_record,
    record_type_for,
    shape_of,
)

HEADER = ["ID", "Name", "Age"]


@dataclass
class User:
    id: int = column("ID")
    name: str = column("Name")
    age: int = column("Age")


@dataclass
class Account:
    id: int = column("ID")
    name: str = column("Name")
    secret: str = column(IGNORE, default="")


@dataclass(frozen=True)
class FrozenUser:
    id: int = column("ID")
    name: str = column("Name")


@dataclass
class Address:
    city: str
    zip: str


@dataclass
class Profile:
    tags: List[str] = column("Tags")
    address: Address = column("Address")
    note: str = ""


def test_shape_uses_column_or_field_name() -> None:
    shape = shape_of(Profile)
    assert [b.column for b in shape] == ["Tags", "Address", "note"]
    assert not any(b.ignored for b in shape)


def test_encode_follows_field_order() -> None:
    assert encode(User(id=1, name="Alice", age=30)) == [1, "Alice", 30]


def test_encode_omits_ignored_fields() -> None:
    row = encode(Account(id=7, name="Bob", secret="hunter2"))
    assert row == [7, "Bob"]
    assert len(row) == len(shape_of(Account)) - 1


def test_encode_rejects_non_records() -> None:
    with pytest.raises(ShapeError):
        encode({"ID": 1})
    with pytest.raises(TypeError):
        encode(User)


def test_encode_many() -> None:
    assert encode_many([]) == []
    assert encode_many((User(1, "A", 2), User(3, "B", 4))) == [[1, "A", 2], [3, "B", 4]]

    with pytest.raises(ShapeError):
        encode_many("abc")
    with pytest.raises(ShapeError):
        encode_many(User(1, "A", 2))


def test_decode_is_inverse_of_encode() -> None:
    user = User(id=3, name="Charlie", age=35)
    assert decode_one(encode(user), HEADER, User) == user


def test_decode_is_keyed_by_column_name() -> None:
    header = ["Age", "ID", "Name"]
    assert decode_one([41, 9, "Dana"], header, User) == User(id=9, name="Dana", age=41)


def test_decode_handles_float_cells() -> None:
    assert decode_one([1.0, "Alice", 30.0], HEADER, User) == User(1, "Alice", 30)


def test_bad_cells_fall_back_to_zero_values() -> None:
    assert decode_one(["x", "Bob", "old"], HEADER, User) == User(id=0, name="Bob", age=0)


def test_decode_into_instance_keeps_previous_values() -> None:
    user = User(id=5, name="Old", age=40)
    out = decode_one(["x", "Bob"], HEADER, user)

    assert out is user
    assert user == User(id=5, name="Bob", age=40)


def test_decode_into_frozen_instance_returns_copy() -> None:
    original = FrozenUser(id=1, name="A")
    out = decode_one([2, "B"], ["ID", "Name"], original)

    assert out == FrozenUser(id=2, name="B")
    assert original == FrozenUser(id=1, name="A")


def test_decode_skips_ignored_and_missing_columns() -> None:
    out = decode_one([7, "Bob", "leak"], ["ID", "Name", "-"], Account)
    assert out == Account(id=7, name="Bob", secret="")


def test_decode_structured_cells() -> None:
    header = ["Tags", "Address", "note"]
    row = ['["a", "b"]', '{"city": "Oslo", "zip": "0150"}', "hi"]

    out = decode_one(row, header, Profile)
    assert out.tags == ["a", "b"]
    assert out.address == Address(city="Oslo", zip="0150")
    assert out.note == "hi"


def test_new_record_zero_fills_required_fields() -> None:
    assert new_record(User) == User(id=0, name="", age=0)
    assert new_record(Profile) == Profile(tags=[], address=Address("", ""), note="")

    with pytest.raises(ShapeError):
        new_record(User(1, "A", 2))


def test_decode_many_appends_to_dest() -> None:
    rows = [[1, "Alice", 30], [2, "Bob", 25]]
    dest = [User(0, "existing", 0)]

    out = decode_many(rows, HEADER, User, dest)
    assert out is dest
    assert [u.name for u in dest] == ["existing", "Alice", "Bob"]


def test_decode_many_contract_errors() -> None:
    with pytest.raises(ShapeError):
        decode_many([], HEADER, dict)
    with pytest.raises(ShapeError):
        decode_many([], HEADER, User, dest=())


def test_record_type_for_header() -> None:
    record_type = record_type_for(["ID", "First Name", "class"])
    shape = shape_of(record_type)

    assert [b.column for b in shape] == ["ID", "First Name", "class"]
    assert [b.field_name for b in shape] == ["ID", "First_Name", "col_class"]

    record = decode_one([1, "Ann", "x"], ["ID", "First Name", "class"], record_type)
    assert encode(record) == [1, "Ann", "x"]
    assert encode(record_type()) == [None, None, None]


def test_local_annotations_only_disable_their_own_field() -> None:
    @dataclass
    class Location:
        city: str

    @dataclass
    class Member:
        age: int = column("Age", default=0)
        score: float = column("Score", default=0.0)
        home: Location = column("Home", default=None)

    member = decode_one(["30", "4.5", '{"city":"Oslo"}'], ["Age", "Score", "Home"], Member)

    assert member.age == 30
    assert member.score == 4.5
    # the function-local class cannot be resolved, so the cell is kept as-is
    assert member.home == '{"city":"Oslo"}'
    assert [b.hint for b in shape_of(Member)][:2] == [int, float]
