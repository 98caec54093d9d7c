"""Parsing of script and transaction arguments from CLI input."""

import json
from typing import Any, Dict, List, Optional

from . import cadence
from .exceptions import ParseError

_BOOL_VALUES = {
    **dict.fromkeys(("1", "t", "T", "TRUE", "true", "True"), True),
    **dict.fromkeys(("0", "f", "F", "FALSE", "false", "False"), False),
}


def parse_inline_args(args: List[str]) -> List[cadence.Value]:
    """
    Parse arguments given as Type:Value pairs.

    The value is split on the first colon. Address values without a 0x prefix
    get one, Bool values become booleans, and everything else is handed to the
    typed value decoder as a string.

    Args:
        args: Arguments such as ["String:hello", "UInt64:10"]

    Returns:
        List of typed values

    Raises:
        ParseError: If an argument has no separator or cannot be decoded
    """
    encoded: List[Dict[str, Any]] = []
    for arg in args:
        parts = arg.split(":", 1)
        if len(parts) != 2:
            raise ParseError(
                "argument not passed in correct format, correct format is: Type:Value, "
                f"got {arg}"
            )

        arg_type, arg_value = parts
        value: Any = arg_value

        if arg_type == "Address" and not arg_value.startswith("0x"):
            value = "0x" + arg_value
        elif arg_type == "Bool":
            try:
                value = _BOOL_VALUES[arg_value]
            except KeyError:
                raise ParseError(f"invalid Bool value {arg_value} in argument {arg}") from None

        encoded.append({"type": arg_type, "value": value})

    return [cadence.decode(obj) for obj in encoded]


def parse_json_args(args: str) -> List[cadence.Value]:
    """
    Parse arguments given as a JSON array of {"type", "value"} objects.

    Raises:
        ParseError: If the JSON is malformed or a value cannot be decoded
    """
    try:
        raw = json.loads(args)
    except json.JSONDecodeError as e:
        raise ParseError(f"failed to parse JSON arguments: {e}") from e

    if not isinstance(raw, list):
        raise ParseError("JSON arguments must be an array of {type, value} objects")

    return [cadence.decode(obj) for obj in raw]


def parse_args_from_cli(
    inline_args: Optional[List[str]], json_args: Optional[str]
) -> List[cadence.Value]:
    """JSON arguments win when given, otherwise inline arguments are used."""
    if json_args:
        return parse_json_args(json_args)
    return parse_inline_args(inline_args or [])
