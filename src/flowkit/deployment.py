"""Dependency ordering of the contracts deployed to a network."""

import heapq
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional

from . import cadence
from .address import Address
from .exceptions import AmbiguousDeployment, ImportCycle, UnresolvedImport
from .program import Program, absolute_path, clean_path
from .resolver import ImportReplacer


@dataclass
class ResolvedContract:
    """
    Contract bound to the account it deploys to on a network.

    Attributes:
        name: Contract name from the configuration
        location: Source file path
        target: Address of the deploying account
        account_name: Name of the deploying account
        args: Initializer arguments
        code: Source code
    """

    name: str
    location: str
    target: Address
    account_name: str = ""
    args: List[cadence.Value] = field(default_factory=list)
    code: str = ""

    def program(self) -> Program:
        return Program(self.code, self.location, self.args)


class Deployment:
    """
    Dependency graph over a network's contracts.

    Args:
        contracts: Contracts to deploy, in configuration order
        aliases: Locations and names of contracts that already live on chain
    """

    def __init__(self, contracts: List[ResolvedContract], aliases: Mapping[str, str]):
        self.aliases = dict(aliases)
        self.contracts: List[ResolvedContract] = []
        self._programs: List[Program] = []
        self._by_location: Dict[str, int] = {}
        self._by_name: Dict[str, int] = {}
        self._dependencies: Dict[int, List[int]] = {}

        for contract in contracts:
            self.add(contract)

    def add(self, contract: ResolvedContract) -> None:
        index = len(self.contracts)
        self.contracts.append(contract)
        self._programs.append(contract.program())
        self._by_location[clean_path(contract.location)] = index
        self._by_name[contract.name] = index

    def _conflict_exists(self) -> bool:
        names = [c.name for c in self.contracts]
        return len(names) != len(set(names))

    def _build_dependencies(self) -> None:
        self._dependencies = {}
        for index, contract in enumerate(self.contracts):
            dependencies: List[int] = []
            for location in self._programs[index].imports():
                import_path = absolute_path(contract.location, location)

                if import_path in self._by_location:
                    dependency = self._by_location[import_path]
                elif location in self._by_name:
                    dependency = self._by_name[location]
                elif import_path in self.aliases or location in self.aliases:
                    continue
                else:
                    raise UnresolvedImport(
                        f"import from {contract.name} could not be found: {location}, "
                        "make sure import path is correct, and the contract is added "
                        "to deployments or has an alias"
                    )

                if dependency not in dependencies:
                    dependencies.append(dependency)
            self._dependencies[index] = dependencies

    def dependencies(self, name: str) -> List[str]:
        """Names of the in-project contracts a contract imports."""
        if not self._dependencies and self.contracts:
            self._build_dependencies()
        return [self.contracts[i].name for i in self._dependencies[self._by_name[name]]]

    def _find_cycle(self) -> Optional[List[str]]:
        unvisited, visiting, done = 0, 1, 2
        state = [unvisited] * len(self.contracts)
        stack: List[int] = []

        def visit(node: int) -> Optional[List[int]]:
            state[node] = visiting
            stack.append(node)
            for dependency in self._dependencies[node]:
                if state[dependency] == visiting:
                    return stack[stack.index(dependency):]
                if state[dependency] == unvisited:
                    cycle = visit(dependency)
                    if cycle:
                        return cycle
            stack.pop()
            state[node] = done
            return None

        for node in range(len(self.contracts)):
            if state[node] == unvisited:
                cycle = visit(node)
                if cycle:
                    return [self.contracts[i].name for i in cycle]
        return None

    def sort(self) -> List[ResolvedContract]:
        """
        Order contracts so every contract follows the contracts it imports.

        Contracts without an ordering constraint keep their insertion order.

        Raises:
            AmbiguousDeployment: If a contract name is deployed more than once
            UnresolvedImport: If an import matches no contract and no alias
            ImportCycle: If contracts import each other in a cycle
        """
        if self._conflict_exists():
            raise AmbiguousDeployment(
                "the same contract cannot be deployed to multiple accounts on the same network"
            )

        self._build_dependencies()

        cycle = self._find_cycle()
        if cycle:
            raise ImportCycle(
                f"contracts: import cycle(s) detected: [[{' '.join(cycle)}]]", cycle=cycle
            )

        remaining = {node: len(deps) for node, deps in self._dependencies.items()}
        dependents: Dict[int, List[int]] = {node: [] for node in remaining}
        for node, deps in self._dependencies.items():
            for dependency in deps:
                dependents[dependency].append(node)

        ready = [node for node, count in remaining.items() if count == 0]
        heapq.heapify(ready)
        order: List[int] = []
        while ready:
            node = heapq.heappop(ready)
            order.append(node)
            for dependent in dependents[node]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, dependent)

        return [self.contracts[i] for i in order]

    def plan(self) -> List[ResolvedContract]:
        """
        Sort the contracts and rewrite their imports to deployed addresses.

        Returns:
            Contracts in deployment order, with deploy-ready code
        """
        ordered = self.sort()
        replacer = ImportReplacer(ordered, self.aliases)
        return [replace(c, code=replacer.replace(c.program()).code) for c in ordered]
