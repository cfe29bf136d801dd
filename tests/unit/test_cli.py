"""
Unit tests for modbridge/cli/

Coverage plan
─────────────
arg parsing    → inspect / probe subcommands, repeatable --arg
inspect cmd    → importable class, instance target, --json, --table, bad targets
probe cmd      → fallback chain hit / miss, --field, --arg, --static, --table
main()         → exit codes
"""

import json
import textwrap

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _parse(args: list[str]):
    """Call the CLI argument parser and return the parsed namespace."""
    from modbridge.cli.main import build_parser
    parser = build_parser()
    return parser.parse_args(args)


@pytest.fixture
def depot_module(tmp_path, monkeypatch):
    """Importable module `cli_depot` with a class and a ready-made instance."""
    (tmp_path / "cli_depot.py").write_text(textwrap.dedent("""
        class Depot:
            stock: int = 3
            _ledger: list = None

            @property
            def localizedName(self) -> str:
                return "North Depot"

            def restock(self, amount: int) -> int:
                return self.stock + amount

            @classmethod
            def Get(cls):
                return cls()

        default_depot = Depot()
    """))
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_depot"


@pytest.fixture
def table_file(tmp_path):
    path = tmp_path / "dump.json"
    path.write_text(json.dumps({
        "classes": [
            {"name": "Entity", "namespace": "Game",
             "fields": [{"name": "id", "type": "int32", "default": 7}]},
            {"name": "Building", "namespace": "Game", "parent": "Entity",
             "fields": [{"name": "number", "type": "int32", "default": 3},
                        {"name": "registry", "type": "string", "static": True, "default": "main"}]},
        ]
    }), encoding="utf-8")
    return str(path)


# ─────────────────────────────────────────────────────────────────────────────
# 1. Argument parsing
# ─────────────────────────────────────────────────────────────────────────────

class TestArgParsing:

    def test_inspect_defaults(self):
        ns = _parse(["inspect", "pkg:Thing"])
        assert ns.subcommand == "inspect"
        assert ns.target == "pkg:Thing"
        assert ns.json is False
        assert ns.no_private is False
        assert ns.table is None

    def test_probe_names_and_flags(self):
        ns = _parse(["probe", "pkg:obj", "displayName", "title", "--field", "--expect", "str"])
        assert ns.names == ["displayName", "title"]
        assert ns.field is True
        assert ns.expect == "str"

    def test_probe_repeatable_arg(self):
        ns = _parse(["probe", "pkg:obj", "upgrade", "--arg", "2", "--arg", "fast"])
        assert ns.args == ["2", "fast"]

    def test_probe_rejects_unknown_expect(self):
        with pytest.raises(SystemExit):
            _parse(["probe", "pkg:obj", "x", "--expect", "decimal"])

    def test_debug_flag(self):
        assert _parse(["--debug", "inspect", "x"]).debug is True

    def test_parse_arg_json_or_string(self):
        from modbridge.cli.main import _parse_arg
        assert _parse_arg("2") == 2
        assert _parse_arg("[1, 2]") == [1, 2]
        assert _parse_arg("fast") == "fast"


# ─────────────────────────────────────────────────────────────────────────────
# 2. inspect command
# ─────────────────────────────────────────────────────────────────────────────

class TestInspectCommand:

    def test_inspect_class(self, depot_module, capsys):
        from modbridge.cli.main import cmd_inspect
        shape = cmd_inspect(f"{depot_module}:Depot")
        out = capsys.readouterr().out
        assert shape.name == "cli_depot.Depot"
        assert "[cli_depot.Depot]" in out
        assert "restock(amount)" in out
        assert "_ledger" in out

    def test_inspect_instance_uses_runtime_type(self, depot_module, capsys):
        from modbridge.cli.main import cmd_inspect
        shape = cmd_inspect(f"{depot_module}:default_depot")
        assert shape.name == "cli_depot.Depot"

    def test_inspect_hides_private(self, depot_module, capsys):
        from modbridge.cli.main import cmd_inspect
        shape = cmd_inspect(f"{depot_module}:Depot", include_private=False)
        assert shape.find_member("_ledger") is None

    def test_inspect_json(self, depot_module, capsys):
        from modbridge.cli.main import cmd_inspect
        cmd_inspect(f"{depot_module}:Depot", as_json=True)
        data = json.loads(capsys.readouterr().out)
        names = {m["name"] for m in data["members"]}
        assert {"stock", "localizedName", "restock", "Get"} <= names

    def test_inspect_table(self, table_file, capsys):
        from modbridge.cli.main import cmd_inspect
        shape = cmd_inspect("Building", table_path=table_file)
        out = capsys.readouterr().out
        assert shape.bases == ["Entity"]
        assert "(Game.Entity)" in out

    def test_inspect_table_declared_only(self, table_file, capsys):
        from modbridge.cli.main import cmd_inspect
        cmd_inspect("Building", table_path=table_file, inherited=False)
        assert "Game.Entity)" not in capsys.readouterr().out

    @pytest.mark.parametrize("target", ["no_such_module_xyz:Thing", "json:NoSuchAttr"])
    def test_bad_target_raises(self, target):
        from modbridge.cli.main import cmd_inspect
        with pytest.raises(ValueError):
            cmd_inspect(target)

    def test_missing_table_raises(self, tmp_path):
        from modbridge.cli.main import cmd_inspect
        with pytest.raises(ValueError):
            cmd_inspect("Building", table_path=str(tmp_path / "missing.json"))


# ─────────────────────────────────────────────────────────────────────────────
# 3. probe command
# ─────────────────────────────────────────────────────────────────────────────

class TestProbeCommand:

    def test_probe_chain_hit(self, depot_module, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe(f"{depot_module}:default_depot", ["displayName", "localizedName"], expect="str")
        out = capsys.readouterr().out
        assert result.ok
        assert "localizedName = 'North Depot'" in out
        assert "  ! " not in out

    def test_probe_chain_miss_prints_diagnostic(self, depot_module, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe(f"{depot_module}:default_depot", ["displayName", "title"])
        out = capsys.readouterr().out
        assert not result.ok
        assert "displayName|title: not_found" in out
        assert "  ! [warning] bridge:" in out

    def test_probe_field_only_skips_methods(self, depot_module, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe(f"{depot_module}:default_depot", ["restock"], field_only=True)
        assert not result.ok

    def test_probe_with_args(self, depot_module, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe(f"{depot_module}:default_depot", ["restock"], args=[2], expect="int")
        assert result.value == 5

    def test_probe_static(self, depot_module, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe(f"{depot_module}:Depot", ["Instance", "Get"], static=True)
        assert result.ok
        assert result.member == "Get"

    def test_probe_table_record(self, table_file, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe("Building", ["number"], expect="int", table_path=table_file)
        assert result.value == 3
        assert "number = 3" in capsys.readouterr().out

    def test_probe_table_static(self, table_file, capsys):
        from modbridge.cli.main import cmd_probe
        result = cmd_probe("Building", ["registry"], static=True, table_path=table_file)
        assert result.value == "main"

    def test_probe_unknown_table_type(self, table_file):
        from modbridge.cli.main import cmd_probe
        with pytest.raises(ValueError):
            cmd_probe("Tower", ["number"], table_path=table_file)


# ─────────────────────────────────────────────────────────────────────────────
# 4. main() exit codes
# ─────────────────────────────────────────────────────────────────────────────

class TestMain:

    def test_no_subcommand_prints_help(self, capsys):
        from modbridge.cli.main import main
        assert main([]) == 0
        assert "inspect" in capsys.readouterr().out

    def test_inspect_ok(self, depot_module, capsys):
        from modbridge.cli.main import main
        assert main(["inspect", f"{depot_module}:Depot"]) == 0

    def test_inspect_error(self, capsys):
        from modbridge.cli.main import main
        assert main(["inspect", "no_such_module_xyz:Thing"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_probe_exit_codes(self, depot_module, capsys):
        from modbridge.cli.main import main
        assert main(["probe", f"{depot_module}:default_depot", "restock", "--arg", "1"]) == 0
        assert main(["probe", f"{depot_module}:default_depot", "missing"]) == 1

    def test_probe_table(self, table_file, capsys):
        from modbridge.cli.main import main
        assert main(["probe", "Building", "id", "--table", table_file, "--expect", "int"]) == 0
        assert "id = 7" in capsys.readouterr().out
