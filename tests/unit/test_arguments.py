"""Unit tests for typed values and argument parsing."""

from decimal import Decimal

import pytest

from flowkit import cadence
from flowkit.address import Address
from flowkit.arguments import parse_args_from_cli, parse_inline_args, parse_json_args
from flowkit.exceptions import ParseError


class TestInlineArguments:
    """Test parsing of Type:Value arguments."""

    def test_parses_common_types(self):
        """Test strings, integers, fixed point numbers and booleans."""
        args = parse_inline_args(["String:hello", "UInt64:10", "UFix64:1.5", "Bool:true"])

        assert args == [
            cadence.String("hello"),
            cadence.Integer(10, "UInt64"),
            cadence.Fixed(Decimal("1.5"), "UFix64"),
            cadence.Bool(True),
        ]

    def test_value_split_on_first_colon(self):
        """Test that values may contain colons."""
        assert parse_inline_args(["String:a:b"]) == [cadence.String("a:b")]

    def test_address_prefix_added(self):
        """Test that addresses without prefix are accepted."""
        [arg] = parse_inline_args(["Address:f8d6e0586b0a20c7"])
        assert arg == cadence.Address(Address.from_hex("f8d6e0586b0a20c7"))

    def test_missing_separator(self):
        """Test that arguments without a type raise ParseError."""
        with pytest.raises(ParseError, match="Type:Value"):
            parse_inline_args(["hello"])

    @pytest.mark.parametrize(
        "text, expected",
        [("1", True), ("t", True), ("T", True), ("TRUE", True), ("True", True),
         ("0", False), ("f", False), ("F", False), ("FALSE", False), ("False", False)],
    )
    def test_bool_spellings(self, text, expected):
        """Test the accepted short and long spellings of booleans."""
        assert parse_inline_args([f"Bool:{text}"]) == [cadence.Bool(expected)]

    @pytest.mark.parametrize("text", ["yes", "tRuE", "2", ""])
    def test_invalid_bool(self, text):
        """Test that other Bool values raise ParseError."""
        with pytest.raises(ParseError, match="invalid Bool"):
            parse_inline_args([f"Bool:{text}"])

    def test_out_of_range_integer(self):
        """Test that integers are range checked."""
        with pytest.raises(ParseError, match="UInt8"):
            parse_inline_args(["UInt8:256"])


class TestJSONArguments:
    """Test parsing of JSON encoded arguments."""

    def test_parses_array(self):
        """Test a JSON array of typed values."""
        args = parse_json_args('[{"type": "String", "value": "Hello"}, {"type": "Int", "value": "-3"}]')
        assert args == [cadence.String("Hello"), cadence.Integer(-3, "Int")]

    def test_invalid_json(self):
        """Test that malformed JSON raises ParseError."""
        with pytest.raises(ParseError, match="failed to parse JSON arguments"):
            parse_json_args("[{")

    def test_not_an_array(self):
        """Test that a JSON object is rejected."""
        with pytest.raises(ParseError):
            parse_json_args('{"type": "String", "value": "x"}')

    def test_json_wins_over_inline(self):
        """Test that JSON arguments take precedence."""
        args = parse_args_from_cli(["String:inline"], '[{"type": "String", "value": "json"}]')
        assert args == [cadence.String("json")]

    def test_no_arguments(self):
        """Test that no arguments parse to an empty list."""
        assert parse_args_from_cli(None, "") == []


class TestValueEncoding:
    """Test the JSON value encoding."""

    def test_integers_are_strings(self):
        """Test that integers are encoded as decimal strings."""
        assert cadence.encode(cadence.Integer(42, "UInt64")) == {"type": "UInt64", "value": "42"}

    def test_fixed_point_has_eight_decimals(self):
        """Test that fixed point values carry eight decimals."""
        assert cadence.encode(cadence.new_ufix64("1.5")) == {"type": "UFix64", "value": "1.50000000"}

    def test_too_many_decimals(self):
        """Test that more than eight decimals are rejected."""
        with pytest.raises(ParseError):
            cadence.new_ufix64("0.000000001")

    def test_optional(self):
        """Test encoding of empty and present optionals."""
        assert cadence.encode(cadence.Optional()) == {"type": "Optional", "value": None}
        assert cadence.encode(cadence.Optional(cadence.Bool(False))) == {
            "type": "Optional",
            "value": {"type": "Bool", "value": False},
        }

    def test_composite_decoding(self):
        """Test decoding of an event composite."""
        value = cadence.decode(
            {
                "type": "Event",
                "value": {
                    "id": "flow.AccountCreated",
                    "fields": [
                        {"name": "address", "value": {"type": "Address", "value": "0x01"}}
                    ],
                },
            }
        )
        assert value.type_id() == "flow.AccountCreated"
        assert value.to_python() == {"address": "0x0000000000000001"}

    def test_dictionary_round_trip(self):
        """Test that a dictionary survives JSON encoding."""
        value = cadence.new_dictionary([(cadence.String("a"), cadence.Integer(1, "Int"))])
        assert cadence.decode_json(cadence.encode_json(value)) == value

    def test_unknown_type(self):
        """Test that unknown types raise ParseError."""
        with pytest.raises(ParseError, match="unsupported value type"):
            cadence.decode({"type": "Banana", "value": 1})
