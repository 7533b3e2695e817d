import enum
import struct
from types import SimpleNamespace

import pytest

from statesgen.schema import (
    ArrayType,
    BasicType,
    EnumType,
    InitArray,
    InitOption,
    InitScalar,
    InitStruct,
    InitTuple,
    OptionType,
    StructType,
    TupleType,
    init_value,
)

BOOL = BasicType("bool")
U8 = BasicType("u8")
I8 = BasicType("i8")
F32 = BasicType("f32")
F64 = BasicType("f64")
STRING = BasicType("String")
UNIT = BasicType("()")

POINT = StructType("Point", [("x", F64), ("y", F64)])
COLOR = EnumType("Color", [("Red", 0), ("Green", 1)])


def _as_f32(x):
    return struct.unpack("<f", struct.pack("<f", x))[0]


def test_bool_literal():
    assert init_value(True, BOOL) == InitScalar("true")


def test_bool_values_differ():
    assert init_value(False, BOOL) != init_value(True, BOOL)
    assert init_value(False, BOOL).text.isalpha()


def test_integer_text_matches_input():
    assert init_value(200, U8).text == "200"
    assert init_value(-128, I8).text == "-128"


def test_zero_float():
    assert init_value(0.0, F32) == InitScalar("0.0")


@pytest.mark.parametrize("value", [0.1, 1.5, 3.14159, 1e-7, 2.5e20, -7.25])
def test_f32_text_round_trips(value):
    text = init_value(value, F32).text
    assert _as_f32(float(text)) == _as_f32(value)
    assert "+" not in text


@pytest.mark.parametrize("value", [0.1, 2.0, 123456.789, 1e-9, 1e20, -3.5])
def test_f64_text_round_trips(value):
    text = init_value(value, F64).text
    assert float(text) == value
    assert "+" not in text


def test_integral_float_keeps_fraction():
    text = init_value(2, F64).text
    assert text.endswith(".0")
    assert float(text) == 2.0


def test_string_escapes_quotes():
    assert init_value('say "hi"', STRING) == InitScalar('"say \\"hi\\"".into()')


def test_string_round_trip_of_plain_text():
    text = init_value("hello", STRING).text
    assert text.startswith('"hello"')


def test_option_none_and_some():
    assert init_value(None, OptionType(U8)) == InitOption(None)
    assert init_value(5, OptionType(U8)) == InitOption(init_value(5, U8))


def test_tuple_value():
    info = TupleType([U8, BOOL])
    assert init_value((1, True), info) == InitTuple((init_value(1, U8), init_value(True, BOOL)))


def test_array_value():
    info = ArrayType(U8, 3)
    result = init_value([1, 2, 3], info)
    assert result == InitArray([init_value(v, U8) for v in (1, 2, 3)])


def test_struct_from_mapping_keeps_declared_order():
    result = init_value({"y": 2.0, "x": 1.0}, POINT)
    assert result == InitStruct(
        "Point", [("x", init_value(1.0, F64)), ("y", init_value(2.0, F64))]
    )


def test_struct_from_attributes_matches_mapping():
    assert init_value(SimpleNamespace(x=1.0, y=2.0), POINT) == init_value(
        {"x": 1.0, "y": 2.0}, POINT
    )


def test_enum_from_name_and_member():
    class Colour(enum.Enum):
        Red = 0
        Green = 1

    by_name = init_value("Green", COLOR)
    assert init_value(Colour.Green, COLOR) == by_name
    assert by_name.text.startswith("Color")
    assert by_name.text.endswith("Green")


@pytest.mark.parametrize(
    "value, info",
    [
        (256, U8),
        (-1, U8),
        (128, I8),
        ([1, 2], ArrayType(U8, 3)),
        ((1,), TupleType([U8, U8])),
        ({"x": 1.0}, POINT),
        ({"x": 1.0, "y": 2.0, "z": 3.0}, POINT),
        ("Blue", COLOR),
        (1e40, F32),
    ],
)
def test_value_errors(value, info):
    with pytest.raises(ValueError):
        init_value(value, info)


@pytest.mark.parametrize(
    "value, info",
    [
        (1, BOOL),
        (True, U8),
        ("1", F64),
        (3, STRING),
        ((), UNIT),
        ("abc", ArrayType(STRING, 3)),
        (1, COLOR),
    ],
)
def test_type_errors(value, info):
    with pytest.raises(TypeError):
        init_value(value, info)


def test_unknown_basic_type():
    with pytest.raises(ValueError):
        BasicType("usize")


def test_tuple_size_limits():
    with pytest.raises(ValueError):
        TupleType([])
    with pytest.raises(ValueError):
        TupleType([U8] * 11)


def test_negative_array_size():
    with pytest.raises(ValueError):
        ArrayType(U8, -1)


def test_struct_equality_and_hash():
    same = StructType("Point", (("x", F64), ("y", F64)))
    other = StructType("Point", [("x", F32), ("y", F64)])
    assert same == POINT
    assert hash(same) == hash(POINT)
    assert other != POINT