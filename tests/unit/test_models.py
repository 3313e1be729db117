"""
Unit tests for field types and schema models.
"""

import pytest
from pydantic import ValidationError

from oml_client.errors import ConfigurationError, SampleValueError
from oml_client.models import FieldDef, FieldType


@pytest.mark.parametrize(
    "name,expected",
    [
        (None, FieldType.STRING),
        ("string", FieldType.STRING),
        ("int32", FieldType.INT32),
        ("DOUBLE", FieldType.DOUBLE),
        (FieldType.DOUBLE, FieldType.DOUBLE),
    ],
)
def test_parse_field_types(name, expected):
    assert FieldType.parse(name) is expected


@pytest.mark.parametrize("alias", ["long", "boolean"])
def test_deprecated_aliases_map_to_int32_with_warning(alias, log_messages):
    assert FieldType.parse(alias) is FieldType.INT32
    assert any(f"'{alias}' is deprecated" in m for m in log_messages)


def test_unknown_type_is_rejected():
    with pytest.raises(ConfigurationError, match="Unknown field type 'blob'"):
        FieldType.parse("blob")


def test_field_def_defaults_to_string():
    f = FieldDef(name="host")
    assert f.type is FieldType.STRING
    assert f.schema_token() == "host:string"


@pytest.mark.parametrize("name", ["", "two words", "a:b"])
def test_field_def_rejects_bad_names(name):
    with pytest.raises(ValidationError):
        FieldDef(name=name, type="int32")


@pytest.mark.parametrize(
    "ftype,value,wire",
    [
        (FieldType.INT32, 42, "42"),
        (FieldType.INT32, -(2**31), "-2147483648"),
        (FieldType.INT32, True, "1"),
        (FieldType.INT32, False, "0"),
        (FieldType.DOUBLE, 0.42, "0.42"),
        (FieldType.DOUBLE, 3, "3.0"),
        (FieldType.DOUBLE, True, "1"),
        (FieldType.STRING, "eth0", "eth0"),
    ],
)
def test_encode(ftype, value, wire):
    assert ftype.to_wire(value) == wire


@pytest.mark.parametrize(
    "ftype,value",
    [
        (FieldType.INT32, 1.5),
        (FieldType.INT32, "1"),
        (FieldType.INT32, 2**31),
        (FieldType.DOUBLE, "0.5"),
        (FieldType.DOUBLE, None),
        (FieldType.DOUBLE, 10**400),
        (FieldType.STRING, 7),
        (FieldType.STRING, "has\ttab"),
        (FieldType.STRING, "has\nnewline"),
    ],
)
def test_encode_rejects_values_that_do_not_fit(ftype, value):
    with pytest.raises(SampleValueError):
        ftype.to_wire(value)


def test_decode():
    assert FieldType.INT32.from_wire("7") == 7
    assert FieldType.DOUBLE.from_wire("0.5") == 0.5
    assert FieldType.STRING.from_wire("x y") == "x y"


def test_field_types_still_behave_as_strings():
    assert FieldType.INT32.encode("utf-8") == b"int32"
    assert FieldType.DOUBLE == "double"
