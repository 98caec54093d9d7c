"""Unit tests for account addresses and chain validity."""

import pytest

from flowkit.address import (
    Address,
    AddressGenerator,
    ChainID,
    address_at_index,
    get_address_network,
    parse_address,
    service_address,
)


class TestServiceAddresses:
    """Test the generated service account address of each chain."""

    def test_emulator_service_address(self):
        """Test the emulator service address."""
        assert service_address(ChainID.EMULATOR).hex() == "f8d6e0586b0a20c7"

    def test_testnet_service_address(self):
        """Test the testnet service address."""
        assert service_address(ChainID.TESTNET).hex() == "8c5303eaa26202d6"

    def test_mainnet_service_address(self):
        """Test the mainnet service address."""
        assert service_address(ChainID.MAINNET).hex() == "e467b9dd11fa00df"

    def test_first_user_account_on_emulator(self):
        """Test that index 5 is the first account after the system accounts."""
        assert address_at_index(ChainID.EMULATOR, 5).hex() == "01cf0e2f2f715450"

    def test_index_out_of_range(self):
        """Test that index 0 is rejected."""
        with pytest.raises(ValueError):
            address_at_index(ChainID.EMULATOR, 0)


class TestAddressValidity:
    """Test chain membership of addresses."""

    def test_generated_addresses_are_valid_on_their_chain(self):
        """Test that generated addresses pass their chain's parity check."""
        for chain in ChainID:
            for index in (1, 2, 5, 100):
                assert address_at_index(chain, index).is_valid(chain)

    def test_generated_address_invalid_on_other_chain(self):
        """Test that an emulator address is not a testnet address."""
        assert not service_address(ChainID.EMULATOR).is_valid(ChainID.TESTNET)

    def test_get_address_network(self):
        """Test that the chain of an address is detected."""
        assert get_address_network(Address.from_hex("8c5303eaa26202d6")) == ChainID.TESTNET
        assert get_address_network(Address.from_hex("f8d6e0586b0a20c7")) == ChainID.EMULATOR

    def test_get_address_network_unknown(self):
        """Test that an address valid on no chain raises ValueError."""
        with pytest.raises(ValueError):
            get_address_network(Address.from_hex("0000000000000001"))


class TestAddressParsing:
    """Test parsing and formatting of addresses."""

    def test_parse_with_prefix(self):
        """Test that a 0x prefix is accepted."""
        assert Address.from_hex("0xf8d6e0586b0a20c7") == Address.from_hex("f8d6e0586b0a20c7")

    def test_short_values_are_padded(self):
        """Test that short values are left-padded."""
        assert Address.from_hex("0x1").hex() == "0000000000000001"

    def test_prefix_formatting(self):
        """Test the 0x-prefixed form."""
        assert Address.from_hex("01").hex_with_prefix() == "0x0000000000000001"

    def test_bytes_round_trip(self):
        """Test conversion to and from bytes."""
        address = Address.from_hex("f8d6e0586b0a20c7")
        assert Address.from_bytes(address.to_bytes()) == address
        assert len(address.to_bytes()) == 8

    @pytest.mark.parametrize("text", ["", None, "xyz", "0x" + "1" * 17])
    def test_parse_address_rejects_invalid(self, text):
        """Test that invalid values raise ValueError."""
        with pytest.raises(ValueError, match="could not parse address"):
            parse_address(text)

    def test_empty_address(self):
        """Test the empty address."""
        assert Address(0).is_empty()
        assert not Address.from_hex("01").is_empty()


class TestAddressGenerator:
    """Test sequential address generation."""

    def test_starts_at_service_account(self):
        """Test that generation starts at the service account."""
        generator = AddressGenerator(ChainID.EMULATOR)
        assert generator.next() == service_address(ChainID.EMULATOR)

    def test_generates_in_index_order(self):
        """Test that generated addresses follow the index order."""
        generator = AddressGenerator(ChainID.TESTNET, start=3)
        assert generator.next() == address_at_index(ChainID.TESTNET, 3)
        assert generator.next() == address_at_index(ChainID.TESTNET, 4)


class TestChainID:
    """Test chain identifiers."""

    def test_network_name(self):
        """Test the network name of each chain."""
        assert ChainID.EMULATOR.network == "emulator"
        assert ChainID.TESTNET.network == "testnet"

    def test_from_network(self):
        """Test lookup by network name and chain value."""
        assert ChainID.from_network("mainnet") == ChainID.MAINNET
        assert ChainID.from_network("flow-testnet") == ChainID.TESTNET

    def test_from_unknown_network(self):
        """Test that unknown networks raise ValueError."""
        with pytest.raises(ValueError):
            ChainID.from_network("custom")
