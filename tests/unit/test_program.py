"""Unit tests for source programs and import rewriting."""

import pytest

from flowkit.address import Address
from flowkit.deployment import ResolvedContract
from flowkit.exceptions import ParseError, UnresolvedImport
from flowkit.program import Program, absolute_path, clean_path
from flowkit.resolver import ImportReplacer


class TestImports:
    """Test detection of string-location imports."""

    def test_imports_in_source_order(self):
        """Test that imports are listed once, in the order they appear."""
        program = Program(
            'import A from "./A.cdc"\n'
            'import "B"\n'
            'import C from "./A.cdc"\n'
            "import FungibleToken from 0xee82856bf20e2aa6\n"
        )
        assert program.imports() == ["./A.cdc", "B"]
        assert program.has_imports()

    def test_commented_imports_ignored(self):
        """Test that imports inside comments are not reported."""
        program = Program(
            '// import A from "./A.cdc"\n'
            '/* import B from "./B.cdc" /* nested */ */\n'
            "pub contract Foo {}\n"
        )
        assert program.imports() == []
        assert not program.has_imports()

    def test_bytes_code(self):
        """Test that code may be given as bytes."""
        assert Program(b'import A from "./A.cdc"').imports() == ["./A.cdc"]


class TestName:
    """Test detection of the declared contract."""

    def test_contract_name(self):
        """Test a contract declaration."""
        assert Program("pub contract Kibble {\n}").name() == "Kibble"

    def test_interface_name(self):
        """Test a contract interface declaration."""
        assert Program("pub contract interface NonFungibleToken {}").name() == "NonFungibleToken"

    def test_ignores_strings_and_comments(self):
        """Test that contract keywords in strings and comments are ignored."""
        code = '// contract Fake {}\npub contract Real {\n  let s = "contract Other"\n}'
        assert Program(code).name() == "Real"

    def test_multiple_contracts(self):
        """Test that several declarations raise ParseError."""
        with pytest.raises(ParseError, match="exactly one contract"):
            Program("pub contract A {}\npub contract B {}", location="AB.cdc").name()

    def test_no_contract(self):
        """Test that a script has no contract name."""
        with pytest.raises(ParseError):
            Program("pub fun main(): Int { return 1 }").name()


class TestPrepareParameters:
    """Test parsing of transaction prepare blocks."""

    def test_parameters(self):
        """Test a prepare block with two signers."""
        code = "transaction {\n  prepare(a: AuthAccount, b: AuthAccount) {}\n}"
        assert Program(code).prepare_parameters() == ["a: AuthAccount", "b: AuthAccount"]

    def test_empty_prepare(self):
        """Test a prepare block without parameters."""
        assert Program("transaction { prepare() {} }").prepare_parameters() == []

    def test_without_prepare(self):
        """Test a transaction without a prepare block."""
        assert Program("transaction(amount: UFix64) { execute {} }").prepare_parameters() is None

    def test_multiple_transactions(self):
        """Test that several transaction declarations raise ParseError."""
        with pytest.raises(ParseError, match="found 2"):
            Program("transaction {}\ntransaction {}").prepare_parameters()

    def test_no_transaction(self):
        """Test that a script is not a transaction."""
        with pytest.raises(ParseError, match="found 0"):
            Program("pub fun main() {}").prepare_parameters()


class TestReplaceImport:
    """Test rewriting imports into address imports."""

    def test_replaces_from_import(self):
        """Test an import with a declared name."""
        program = Program('import NonFungibleToken from "./NonFungibleToken.cdc"\n')
        replaced = program.replace_import("./NonFungibleToken.cdc", "0x01cf0e2f2f715450")

        assert replaced.code == "import NonFungibleToken from 0x01cf0e2f2f715450\n"
        assert program.code.startswith('import NonFungibleToken from "')

    def test_replaces_name_import(self):
        """Test an import of a location only."""
        replaced = Program('import "contracts/Foo.cdc"').replace_import("contracts/Foo.cdc", "f8d6e0586b0a20c7")
        assert replaced.code == "import Foo from 0xf8d6e0586b0a20c7"

    def test_other_imports_untouched(self):
        """Test that other locations are kept."""
        code = 'import A from "./A.cdc"\nimport B from "./B.cdc"'
        replaced = Program(code).replace_import("./A.cdc", "01")
        assert 'import B from "./B.cdc"' in replaced.code
        assert "import A from 0x01" in replaced.code


class TestPaths:
    """Test path helpers used to match imports."""

    def test_clean_path(self):
        """Test lexical normalization."""
        assert clean_path("./contracts/../contracts/A.cdc") == "contracts/A.cdc"
        assert clean_path("") == "."

    def test_absolute_path(self):
        """Test resolution relative to the importing file."""
        assert absolute_path("contracts/Foo.cdc", "./Bar.cdc") == "contracts/Bar.cdc"
        assert absolute_path("contracts/nft/Foo.cdc", "../Bar.cdc") == "contracts/Bar.cdc"


class TestImportReplacer:
    """Test resolution of imports against deployed and aliased contracts."""

    def test_replaces_with_target_and_alias(self):
        """Test that deployed contracts and aliases are both used."""
        deployed = ResolvedContract(
            name="NonFungibleToken",
            location="contracts/NonFungibleToken.cdc",
            target=Address.from_hex("01cf0e2f2f715450"),
        )
        replacer = ImportReplacer([deployed], {"contracts/FungibleToken.cdc": "ee82856bf20e2aa6"})
        program = Program(
            'import NonFungibleToken from "./NonFungibleToken.cdc"\n'
            'import FungibleToken from "./FungibleToken.cdc"\n',
            location="contracts/Kibble.cdc",
        )

        code = replacer.replace(program).code
        assert "import NonFungibleToken from 0x01cf0e2f2f715450" in code
        assert "import FungibleToken from 0xee82856bf20e2aa6" in code

    def test_replaces_by_name(self):
        """Test that name imports resolve by contract name."""
        deployed = ResolvedContract(
            name="Foo", location="contracts/Foo.cdc", target=Address.from_hex("f8d6e0586b0a20c7")
        )
        code = ImportReplacer([deployed], {}).replace(Program('import "Foo"', location="tx.cdc")).code
        assert code == "import Foo from 0xf8d6e0586b0a20c7"

    def test_unresolved(self):
        """Test that unknown imports raise UnresolvedImport."""
        with pytest.raises(UnresolvedImport):
            ImportReplacer([], {}).replace(Program('import A from "./A.cdc"', location="tx.cdc"))
