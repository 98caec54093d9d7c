"""Contract, transaction and script source programs and their imports."""

import posixpath
import re
from typing import List, Optional

from . import cadence
from .exceptions import ParseError

_IMPORT_FROM_PATTERN = re.compile(r'\bimport\s+([\w\s,]+?)\s+from\s+"([^"]+)"')
_IMPORT_NAME_PATTERN = re.compile(r'\bimport\s+"([^"]+)"')
_CONTRACT_PATTERN = re.compile(r"\bcontract\s+(interface\s+)?(\w+)")
_TRANSACTION_PATTERN = re.compile(r"\btransaction\s*[({]")
_PREPARE_PATTERN = re.compile(r"\bprepare\s*\(([^)]*)\)")


def _scan(code: str, keep_strings: bool) -> str:
    """
    Blank out comments, and string literal contents unless keep_strings is set.

    Blanked characters become spaces (newlines are kept) so offsets into the
    result match offsets into the original code.
    """
    out = list(code)
    i, n = 0, len(code)
    depth = 0

    while i < n:
        c = code[i]
        nxt = code[i + 1] if i + 1 < n else ""

        if depth > 0:
            if c == "/" and nxt == "*":
                depth += 1
                out[i] = out[i + 1] = " "
                i += 2
            elif c == "*" and nxt == "/":
                depth -= 1
                out[i] = out[i + 1] = " "
                i += 2
            else:
                if c != "\n":
                    out[i] = " "
                i += 1
            continue

        if c == "/" and nxt == "/":
            while i < n and code[i] != "\n":
                out[i] = " "
                i += 1
        elif c == "/" and nxt == "*":
            depth = 1
            out[i] = out[i + 1] = " "
            i += 2
        elif c == '"':
            i += 1
            while i < n and code[i] != '"' and code[i] != "\n":
                if code[i] == "\\" and i + 1 < n:
                    if not keep_strings:
                        out[i] = out[i + 1] = " "
                    i += 2
                    continue
                if not keep_strings:
                    out[i] = " "
                i += 1
            i += 1
        else:
            i += 1

    return "".join(out)


def clean_path(path: str) -> str:
    """Lexically normalize a slash-separated path."""
    return posixpath.normpath(path.replace("\\", "/")) if path else "."


def absolute_path(base_location: str, relative: str) -> str:
    """Resolve an import location relative to the importing file's directory."""
    return clean_path(posixpath.join(posixpath.dirname(base_location.replace("\\", "/")), relative))


class Program:
    """
    Source code of a contract, transaction or script.

    Attributes:
        code: Source code
        location: Path the code was loaded from, empty when given inline
        args: Typed arguments for the program
    """

    def __init__(
        self,
        code: str,
        location: str = "",
        args: Optional[List[cadence.Value]] = None,
    ):
        if isinstance(code, bytes):
            code = code.decode("utf-8")
        self.code = code
        self.location = location
        self.args = list(args or [])

    def imports(self) -> List[str]:
        """String locations of imports that still need resolving, in source order."""
        stripped = _scan(self.code, keep_strings=True)
        found = []
        for match in _IMPORT_FROM_PATTERN.finditer(stripped):
            found.append((match.start(), match.group(2)))
        for match in _IMPORT_NAME_PATTERN.finditer(stripped):
            found.append((match.start(), match.group(1)))

        locations: List[str] = []
        for _, location in sorted(found):
            if location not in locations:
                locations.append(location)
        return locations

    def has_imports(self) -> bool:
        return len(self.imports()) > 0

    def name(self) -> str:
        """
        Name of the single contract or contract interface the code declares.

        Raises:
            ParseError: If the code does not declare exactly one contract
        """
        stripped = _scan(self.code, keep_strings=False)
        names = [m.group(2) for m in _CONTRACT_PATTERN.finditer(stripped)]
        if len(names) != 1:
            raise ParseError(
                "the code must declare exactly one contract or contract interface"
                + (f": {self.location}" if self.location else "")
            )
        return names[0]

    def prepare_parameters(self) -> Optional[List[str]]:
        """
        Parameters of the transaction's prepare block, None without a prepare block.

        Raises:
            ParseError: If the code does not declare exactly one transaction
        """
        stripped = _scan(self.code, keep_strings=False)
        declarations = _TRANSACTION_PATTERN.findall(stripped)
        if len(declarations) != 1:
            raise ParseError(
                "can only support one transaction declaration per file, "
                f"found {len(declarations)}"
            )

        match = _PREPARE_PATTERN.search(stripped)
        if not match:
            return None
        return [p.strip() for p in match.group(1).split(",") if p.strip()]

    def replace_import(self, location: str, address: str) -> "Program":
        """
        Rewrite imports of a string location into imports from an address.

        Returns:
            New program with the rewritten code
        """
        address = address[2:] if address.startswith("0x") else address
        quoted = re.escape(location)

        code = re.sub(
            rf'\bimport\s+([\w\s,]+?)\s+from\s+"{quoted}"',
            lambda m: f"import {m.group(1)} from 0x{address}",
            self.code,
        )
        identifier = posixpath.splitext(posixpath.basename(location))[0]
        code = re.sub(
            rf'\bimport\s+"{quoted}"',
            lambda m: f"import {identifier} from 0x{address}",
            code,
        )
        return Program(code, self.location, self.args)

    def __repr__(self) -> str:
        return f"Program({self.location or '<inline>'})"
