"""Rewriting of path imports into address imports."""

import logging
from typing import Dict, Iterable, Mapping

from .exceptions import UnresolvedImport
from .program import Program, absolute_path, clean_path

logger = logging.getLogger(__name__)


class ImportReplacer:
    """
    Replaces string-location imports with the address the imported contract
    is deployed to, or aliased at, on a network.

    Args:
        contracts: Contracts with `name`, `location` and `target` attributes
        aliases: Location or contract name to hex address
    """

    def __init__(self, contracts: Iterable, aliases: Mapping[str, str]):
        self.contracts = list(contracts)
        self.aliases = dict(aliases)

    def _locations(self) -> Dict[str, str]:
        locations: Dict[str, str] = {}
        for contract in self.contracts:
            target = contract.target.hex()
            locations[clean_path(contract.location)] = target
            locations[contract.name] = target

        locations.update(self.aliases)
        return locations

    def replace(self, program: Program) -> Program:
        """
        Rewrite every import of the program.

        Raises:
            UnresolvedImport: If an import matches no contract and no alias
        """
        locations = self._locations()

        for location in program.imports():
            import_path = absolute_path(program.location, location)
            address = locations.get(import_path) or locations.get(location)
            if not address:
                raise UnresolvedImport(
                    f"import {location} could not be resolved from provided contracts"
                )

            logger.debug("replacing import %s with 0x%s", location, address)
            program = program.replace_import(location, address)

        return program
