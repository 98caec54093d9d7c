"""Account addresses and chain-scoped address validity."""

from enum import Enum
from typing import Iterator, Optional

ADDRESS_LENGTH = 8

# Parity check columns of the [64,45] linear code used for account addresses
_PARITY_CHECK_COLUMNS = (
    0x00001, 0x00002, 0x00004, 0x00008, 0x00010, 0x00020, 0x00040, 0x00080,
    0x00100, 0x00200, 0x00400, 0x00800, 0x01000, 0x02000, 0x04000, 0x08000,
    0x10000, 0x20000, 0x40000, 0x7328D, 0x6689A, 0x6112F, 0x6084B, 0x433FD,
    0x42AAB, 0x41951, 0x233CE, 0x22A81, 0x21948, 0x1EF60, 0x1DECA, 0x1C639,
    0x1BDD8, 0x1A535, 0x194AC, 0x18C46, 0x1632B, 0x1529B, 0x14A43, 0x13184,
    0x12942, 0x118C1, 0x0F812, 0x0E027, 0x0D00E, 0x0C83C, 0x0B01D, 0x0A831,
    0x0982B, 0x07034, 0x0682A, 0x05819, 0x03807, 0x007D2, 0x00727, 0x0068E,
    0x0067C, 0x0059D, 0x004EB, 0x003B4, 0x0036A, 0x002D9, 0x001C7, 0x0003F,
)

# Generator rows; address n is the XOR of the rows of the set bits of n
_GENERATOR_ROWS = (
    0xE467B9DD11FA00DF, 0xF233DCEE88FE0ABE, 0xF919EE77447B7497, 0xFC8CF73BA23A260D,
    0xFE467B9DD11EE2A1, 0xFF233DCEE888D807, 0xFF919EE774476CE6, 0x7FC8CF73BA231D10,
    0x3FE467B9DD11B183, 0x1FF233DCEE8F96D6, 0x8FF919EE774757BA, 0x47FC8CF73BA2B331,
    0x23FE467B9DD27F6C,
)

MAX_ADDRESS_INDEX = (1 << len(_GENERATOR_ROWS)) - 1


class ChainID(Enum):
    """
    Chains an address can belong to.

    Value strings are the chain identifiers reported by access nodes.
    """

    MAINNET = "flow-mainnet"
    TESTNET = "flow-testnet"
    EMULATOR = "flow-emulator"

    @property
    def network(self) -> str:
        """Default network name for the chain."""
        return self.value.split("-", 1)[1]

    @classmethod
    def from_network(cls, network: str) -> "ChainID":
        for chain in cls:
            if chain.network == network or chain.value == network:
                return chain
        raise ValueError(f"unknown chain for network {network}")


_CHAIN_CODEWORDS = {
    ChainID.MAINNET: 0x0000000000000000,
    ChainID.TESTNET: 0x6834BA37B3980209,
    ChainID.EMULATOR: 0x1CB159857AF02018,
}


class Address:
    """Fixed-width account address."""

    __slots__ = ("_value",)

    def __init__(self, value: int = 0):
        if value < 0 or value >= 1 << (8 * ADDRESS_LENGTH):
            raise ValueError("could not parse address")
        self._value = value

    @classmethod
    def from_hex(cls, text: str) -> "Address":
        """
        Parse an address from hex, with or without 0x prefix.

        Shorter values are left-padded with zeros.

        Raises:
            ValueError: If the value is not hex or longer than 8 bytes
        """
        raw = text.strip()
        if raw.startswith(("0x", "0X")):
            raw = raw[2:]
        if raw == "" or len(raw) > 2 * ADDRESS_LENGTH:
            raise ValueError("could not parse address")
        try:
            return cls(int(raw, 16))
        except ValueError as e:
            raise ValueError("could not parse address") from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "Address":
        if len(data) > ADDRESS_LENGTH:
            raise ValueError("could not parse address")
        return cls(int.from_bytes(data, "big"))

    def to_bytes(self) -> bytes:
        return self._value.to_bytes(ADDRESS_LENGTH, "big")

    def hex(self) -> str:
        return f"{self._value:016x}"

    def hex_with_prefix(self) -> str:
        return "0x" + self.hex()

    def is_empty(self) -> bool:
        return self._value == 0

    def is_valid(self, chain: ChainID) -> bool:
        """Check the address against the chain's parity check."""
        codeword = self._value ^ _CHAIN_CODEWORDS[chain]
        if codeword == 0:
            return False

        parity = 0
        for i, column in enumerate(_PARITY_CHECK_COLUMNS):
            if (codeword >> i) & 1:
                parity ^= column
        return parity == 0

    def __int__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Address({self.hex_with_prefix()})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


EMPTY_ADDRESS = Address(0)


def get_address_network(address: Address) -> ChainID:
    """
    Find the chain an address is valid on.

    Raises:
        ValueError: If the address is not valid on any known chain
    """
    for chain in (ChainID.MAINNET, ChainID.TESTNET, ChainID.EMULATOR):
        if address.is_valid(chain):
            return chain
    raise ValueError(f"address {address.hex()} is not valid on any known chain")


def address_at_index(chain: ChainID, index: int) -> Address:
    """
    Get the n-th generated address of a chain (index 1 is the service account).

    Raises:
        ValueError: If the index is out of the supported range
    """
    if index < 1 or index > MAX_ADDRESS_INDEX:
        raise ValueError(f"address index {index} out of range")

    value = 0
    for i, row in enumerate(_GENERATOR_ROWS):
        if (index >> i) & 1:
            value ^= row
    return Address(value ^ _CHAIN_CODEWORDS[chain])


def service_address(chain: ChainID) -> Address:
    """Service account address of a chain."""
    return address_at_index(chain, 1)


class AddressGenerator:
    """Sequential address generator for a chain, starting at the service account."""

    def __init__(self, chain: ChainID, start: int = 1):
        self.chain = chain
        self._index = start

    def next(self) -> Address:
        address = address_at_index(self.chain, self._index)
        self._index += 1
        return address

    def __iter__(self) -> Iterator[Address]:
        while self._index <= MAX_ADDRESS_INDEX:
            yield self.next()


def parse_address(text: Optional[str]) -> Address:
    """Parse a non-empty address string, raising ValueError otherwise."""
    if not text:
        raise ValueError("could not parse address")
    return Address.from_hex(text)
