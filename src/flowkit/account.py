"""Project accounts with their signing keys."""

import os
from typing import List

from . import config
from .address import Address, ChainID, service_address
from .constants import DEFAULT_EMULATOR_SERVICE_ACCOUNT, MIN_SEED_LENGTH
from .crypto import HashAlgorithm, SignatureAlgorithm, generate_private_key
from .exceptions import NotFoundError
from .keys import AccountKey, HexAccountKey, account_key_from_config


class Account:
    """A named account at an address, holding one signing key."""

    def __init__(self, name: str, address: Address, key: AccountKey):
        self.name = name
        self.address = address
        self.key = key

    @classmethod
    def from_config(cls, account: config.Account) -> "Account":
        return cls(account.name, account.address, account_key_from_config(account.key))

    def to_config(self, use_advanced_format: bool = False) -> config.Account:
        return config.Account(
            name=self.name,
            address=self.address,
            key=self.key.to_config(),
            use_advanced_format=use_advanced_format,
        )

    def __repr__(self) -> str:
        return f"Account({self.name}, {self.address.hex_with_prefix()})"


class Accounts(list):
    """Accounts of a project, unique by name."""

    def by_name(self, name: str) -> Account:
        """
        Raises:
            NotFoundError: If no account has the name
        """
        for account in self:
            if account.name == name:
                return account
        raise NotFoundError(f"could not find account with name {name} in the configuration")

    def by_address(self, address: Address) -> Account:
        """
        Raises:
            NotFoundError: If no account has the address
        """
        for account in self:
            if account.address == address:
                return account
        raise NotFoundError(
            f"could not find account with address {address.hex()} in the configuration"
        )

    def add_or_update(self, account: Account) -> None:
        for i, existing in enumerate(self):
            if existing.name == account.name:
                self[i] = account
                return
        self.append(account)

    def remove(self, name: str) -> None:
        account = self.by_name(name)
        super().remove(account)

    def names(self) -> List[str]:
        return [a.name for a in self]


def accounts_from_config(conf: config.Config) -> Accounts:
    return Accounts(Account.from_config(a) for a in conf.accounts)


def generate_emulator_service_account(
    sig_algo: SignatureAlgorithm, hash_algo: HashAlgorithm
) -> Account:
    """Create the emulator service account with a fresh random key."""
    private_key = generate_private_key(sig_algo, os.urandom(MIN_SEED_LENGTH))
    return Account(
        name=DEFAULT_EMULATOR_SERVICE_ACCOUNT,
        address=service_address(ChainID.EMULATOR),
        key=HexAccountKey.from_private_key(0, hash_algo, private_key),
    )
