"""
Typed Cadence values and the JSON value encoding used for arguments and results.

Every value is encoded as {"type": <type>, "value": <value>}. Integers travel as
decimal strings and fixed-point numbers carry exactly eight decimals.
"""

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional as Opt, Tuple, Union

from .address import Address as FlowAddress
from .exceptions import ParseError

# Integer type name -> (min, max), None meaning unbounded
INTEGER_RANGES: Dict[str, Tuple[Opt[int], Opt[int]]] = {
    "Int": (None, None),
    "Int8": (-(2**7), 2**7 - 1),
    "Int16": (-(2**15), 2**15 - 1),
    "Int32": (-(2**31), 2**31 - 1),
    "Int64": (-(2**63), 2**63 - 1),
    "Int128": (-(2**127), 2**127 - 1),
    "Int256": (-(2**255), 2**255 - 1),
    "UInt": (0, None),
    "UInt8": (0, 2**8 - 1),
    "UInt16": (0, 2**16 - 1),
    "UInt32": (0, 2**32 - 1),
    "UInt64": (0, 2**64 - 1),
    "UInt128": (0, 2**128 - 1),
    "UInt256": (0, 2**256 - 1),
    "Word8": (0, 2**8 - 1),
    "Word16": (0, 2**16 - 1),
    "Word32": (0, 2**32 - 1),
    "Word64": (0, 2**64 - 1),
}

FIX_SCALE = Decimal("0.00000001")
FIXED_RANGES = {
    "Fix64": (Decimal("-92233720368.54775808"), Decimal("92233720368.54775807")),
    "UFix64": (Decimal("0"), Decimal("184467440737.09551615")),
}

COMPOSITE_KINDS = ("Struct", "Resource", "Event", "Contract", "Enum")


class Value:
    """Base class for typed values."""

    def type_id(self) -> str:
        raise NotImplementedError

    def to_python(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class Void(Value):
    def type_id(self) -> str:
        return "Void"

    def to_python(self) -> Any:
        return None


@dataclass(frozen=True)
class Optional(Value):
    value: Opt[Value] = None

    def type_id(self) -> str:
        inner = self.value.type_id() if self.value is not None else "Never"
        return f"{inner}?"

    def to_python(self) -> Any:
        return self.value.to_python() if self.value is not None else None


@dataclass(frozen=True)
class Bool(Value):
    value: bool

    def type_id(self) -> str:
        return "Bool"

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class String(Value):
    value: str

    def type_id(self) -> str:
        return "String"

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Character(Value):
    value: str

    def type_id(self) -> str:
        return "Character"

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Address(Value):
    value: FlowAddress

    def type_id(self) -> str:
        return "Address"

    def to_python(self) -> Any:
        return self.value.hex_with_prefix()


@dataclass(frozen=True)
class Integer(Value):
    """Any of the fixed or arbitrary width integer types, tagged by kind."""

    value: int
    kind: str = "Int"

    def __post_init__(self):
        if self.kind not in INTEGER_RANGES:
            raise ParseError(f"unknown integer type {self.kind}")
        low, high = INTEGER_RANGES[self.kind]
        if (low is not None and self.value < low) or (high is not None and self.value > high):
            raise ParseError(f"value {self.value} out of range for {self.kind}")

    def type_id(self) -> str:
        return self.kind

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Fixed(Value):
    """Fix64 or UFix64 value."""

    value: Decimal
    kind: str = "UFix64"

    def __post_init__(self):
        if self.kind not in FIXED_RANGES:
            raise ParseError(f"unknown fixed point type {self.kind}")
        low, high = FIXED_RANGES[self.kind]
        if self.value < low or self.value > high:
            raise ParseError(f"value {self.value} out of range for {self.kind}")
        if self.value != self.value.quantize(FIX_SCALE):
            raise ParseError(f"value {self.value} has more than 8 decimal places")

    def type_id(self) -> str:
        return self.kind

    def to_python(self) -> Any:
        return self.value

    def format(self) -> str:
        return str(self.value.quantize(FIX_SCALE))


@dataclass(frozen=True)
class Array(Value):
    values: Tuple[Value, ...] = ()

    def type_id(self) -> str:
        element = self.values[0].type_id() if self.values else "AnyStruct"
        return f"[{element}]"

    def to_python(self) -> Any:
        return [v.to_python() for v in self.values]


@dataclass(frozen=True)
class Dictionary(Value):
    pairs: Tuple[Tuple[Value, Value], ...] = ()

    def type_id(self) -> str:
        if not self.pairs:
            return "{AnyStruct: AnyStruct}"
        key, value = self.pairs[0]
        return f"{{{key.type_id()}: {value.type_id()}}}"

    def to_python(self) -> Any:
        return {k.to_python(): v.to_python() for k, v in self.pairs}


@dataclass(frozen=True)
class Composite(Value):
    """Struct, Resource, Event, Contract or Enum value with named fields."""

    id: str
    fields: Tuple[Tuple[str, Value], ...] = ()
    kind: str = "Struct"

    def type_id(self) -> str:
        return self.id

    def field(self, name: str) -> Opt[Value]:
        for field_name, value in self.fields:
            if field_name == name:
                return value
        return None

    def to_python(self) -> Any:
        return {name: value.to_python() for name, value in self.fields}


@dataclass(frozen=True)
class Path(Value):
    domain: str
    identifier: str

    def type_id(self) -> str:
        return {"storage": "StoragePath", "public": "PublicPath"}.get(self.domain, "PrivatePath")

    def to_python(self) -> Any:
        return f"/{self.domain}/{self.identifier}"


@dataclass(frozen=True)
class TypeValue(Value):
    static_type: str = ""

    def type_id(self) -> str:
        return "Type"

    def to_python(self) -> Any:
        return self.static_type


@dataclass(frozen=True)
class Capability(Value):
    path: Path
    address: FlowAddress
    borrow_type: str = ""

    def type_id(self) -> str:
        return f"Capability<{self.borrow_type}>" if self.borrow_type else "Capability"

    def to_python(self) -> Any:
        return {
            "path": self.path.to_python(),
            "address": self.address.hex_with_prefix(),
            "borrowType": self.borrow_type,
        }


def encode(value: Value) -> Dict[str, Any]:
    """Encode a typed value to its JSON object form."""
    match value:
        case Void():
            return {"type": "Void"}
        case Optional(value=inner):
            return {"type": "Optional", "value": encode(inner) if inner is not None else None}
        case Bool() | String() | Character():
            return {"type": value.type_id(), "value": value.value}
        case Address(value=address):
            return {"type": "Address", "value": address.hex_with_prefix()}
        case Integer(value=number, kind=kind):
            return {"type": kind, "value": str(number)}
        case Fixed(kind=kind):
            return {"type": kind, "value": value.format()}
        case Array(values=values):
            return {"type": "Array", "value": [encode(v) for v in values]}
        case Dictionary(pairs=pairs):
            return {
                "type": "Dictionary",
                "value": [{"key": encode(k), "value": encode(v)} for k, v in pairs],
            }
        case Composite(id=type_id, fields=fields, kind=kind):
            return {
                "type": kind,
                "value": {
                    "id": type_id,
                    "fields": [{"name": n, "value": encode(v)} for n, v in fields],
                },
            }
        case Path(domain=domain, identifier=identifier):
            return {"type": "Path", "value": {"domain": domain, "identifier": identifier}}
        case TypeValue(static_type=static_type):
            return {"type": "Type", "value": {"staticType": static_type}}
        case Capability():
            return {
                "type": "Capability",
                "value": {
                    "path": encode(value.path),
                    "address": value.address.hex_with_prefix(),
                    "borrowType": value.borrow_type,
                },
            }
    raise ParseError(f"cannot encode value of type {type(value).__name__}")


def encode_json(value: Value) -> bytes:
    """Encode a typed value to compact JSON bytes."""
    return json.dumps(encode(value), separators=(",", ":")).encode("utf-8")


def _require_str(value: Any, type_name: str) -> str:
    if not isinstance(value, str):
        raise ParseError(f"invalid value for {type_name}: expected string, got {value!r}")
    return value


def _decode_address(raw: Any) -> FlowAddress:
    try:
        return FlowAddress.from_hex(_require_str(raw, "Address"))
    except ValueError as e:
        raise ParseError(f"invalid address value {raw!r}: {e}") from e


def decode(obj: Any) -> Value:
    """
    Decode a typed value from its JSON object form.

    Raises:
        ParseError: If the type is unknown or the value is malformed
    """
    if not isinstance(obj, dict) or "type" not in obj:
        raise ParseError(f"invalid encoded value {obj!r}: missing type")

    type_name = obj["type"]
    raw = obj.get("value")

    if type_name == "Void":
        return Void()
    if type_name == "Optional":
        return Optional(decode(raw) if raw is not None else None)
    if type_name == "Bool":
        if not isinstance(raw, bool):
            raise ParseError(f"invalid value for Bool: {raw!r}")
        return Bool(raw)
    if type_name == "String":
        return String(_require_str(raw, type_name))
    if type_name == "Character":
        return Character(_require_str(raw, type_name))
    if type_name == "Address":
        return Address(_decode_address(raw))
    if type_name in INTEGER_RANGES:
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise ParseError(f"invalid value for {type_name}: {raw!r}")
        try:
            return Integer(int(raw), type_name)
        except ValueError as e:
            raise ParseError(f"invalid value for {type_name}: {raw!r}") from e
    if type_name in FIXED_RANGES:
        try:
            return Fixed(Decimal(_require_str(raw, type_name)), type_name)
        except InvalidOperation as e:
            raise ParseError(f"invalid value for {type_name}: {raw!r}") from e
    if type_name == "Array":
        if not isinstance(raw, list):
            raise ParseError(f"invalid value for Array: {raw!r}")
        return Array(tuple(decode(v) for v in raw))
    if type_name == "Dictionary":
        if not isinstance(raw, list):
            raise ParseError(f"invalid value for Dictionary: {raw!r}")
        try:
            return Dictionary(tuple((decode(p["key"]), decode(p["value"])) for p in raw))
        except (KeyError, TypeError) as e:
            raise ParseError(f"invalid dictionary entry in {raw!r}") from e
    if type_name in COMPOSITE_KINDS:
        try:
            fields = tuple((f["name"], decode(f["value"])) for f in raw["fields"])
            return Composite(raw["id"], fields, type_name)
        except (KeyError, TypeError) as e:
            raise ParseError(f"invalid {type_name} value {raw!r}") from e
    if type_name == "Path":
        try:
            return Path(raw["domain"], raw["identifier"])
        except (KeyError, TypeError) as e:
            raise ParseError(f"invalid Path value {raw!r}") from e
    if type_name == "Type":
        static = raw.get("staticType", "") if isinstance(raw, dict) else raw
        if isinstance(static, dict):
            static = static.get("typeID", "")
        return TypeValue(static or "")
    if type_name == "Capability":
        try:
            path = decode(raw["path"])
            return Capability(path, _decode_address(raw["address"]), raw.get("borrowType", ""))
        except (KeyError, TypeError) as e:
            raise ParseError(f"invalid Capability value {raw!r}") from e

    raise ParseError(f"unsupported value type {type_name}")


def decode_json(data: Union[str, bytes]) -> Value:
    """
    Decode a typed value from JSON text.

    Raises:
        ParseError: If the JSON is malformed or the value cannot be decoded
    """
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON value: {e}") from e
    return decode(obj)


def new_string(value: str) -> String:
    return String(value)


def new_ufix64(text: str) -> Fixed:
    """
    Raises:
        ParseError: If the text is not a decimal with at most 8 places
    """
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ParseError(f"invalid UFix64 value {text}") from e
    return Fixed(value, "UFix64")


def new_array(values: List[Value]) -> Array:
    return Array(tuple(values))


def new_dictionary(pairs: List[Tuple[Value, Value]]) -> Dictionary:
    return Dictionary(tuple(pairs))


def composite_fields(value: Value) -> Dict[str, Value]:
    """Field map of a composite value, or an empty dict for other values."""
    if isinstance(value, Composite):
        return dict(value.fields)
    return {}


__all__ = [
    "Value",
    "Void",
    "Optional",
    "Bool",
    "String",
    "Character",
    "Address",
    "Integer",
    "Fixed",
    "Array",
    "Dictionary",
    "Composite",
    "Path",
    "TypeValue",
    "Capability",
    "encode",
    "encode_json",
    "decode",
    "decode_json",
    "composite_fields",
]
