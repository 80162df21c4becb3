"""
Tests for standard definitions, loading and resolution.
"""

import logging

import pytest

from flitch.errors import StandardFormatError, StandardNotFound
from flitch.file.source_file import Severity
from flitch.standard import (
    DirectoryStandardSource,
    MappingStandardSource,
    RuleConfig,
    StandardResolver,
    resolve,
)
from flitch.standard.definition import RuleEntry, merge_entries, parse_definition
from flitch.standard.loader import load_definition_file
from flitch.standard.resolver import BUILTIN_STANDARDS_DIR


def _rule(rule_id, severity="error", **options):
    entry = {"id": rule_id, "severity": severity}
    if options:
        entry["options"] = options
    return entry


class TestParseDefinition:
    """Test validation of raw definitions."""

    def test_shorthand_entries(self):
        """A bare rule id is an entry with nothing stated."""
        definition = parse_definition({"name": "S", "rules": ["no-tabs"]})
        assert definition.rules == (RuleEntry("no-tabs"),)

    def test_full_entry(self):
        """Severity is parsed case-insensitively."""
        definition = parse_definition({
            "name": "S",
            "rules": [{"id": "line-length", "severity": "WARNING", "enabled": False,
                       "options": {"limit": 100}}],
        })
        entry = definition.rules[0]
        assert entry.severity == Severity.WARNING
        assert entry.enabled is False
        assert entry.options == {"limit": 100}

    def test_name_falls_back(self):
        """Missing name uses the caller's name."""
        assert parse_definition({"rules": []}, name="X").name == "X"

    @pytest.mark.parametrize("data", [
        ["not", "a", "mapping"],
        {"name": "S", "rules": "no-tabs"},
        {"name": "S", "rules": [42]},
        {"name": "S", "rules": [{"severity": "error"}]},
        {"name": "S", "rules": [{"id": "a", "severity": "fatal"}]},
        {"name": "S", "rules": [{"id": "a", "enabled": "yes"}]},
        {"name": "S", "rules": [{"id": "a", "options": [1]}]},
        {"name": "S", "extends": ["PSR2"]},
    ])
    def test_malformed(self, data):
        """Wrong shapes raise StandardFormatError."""
        with pytest.raises(StandardFormatError):
            parse_definition(data, origin="test.yaml")

    def test_error_names_origin(self):
        """Error message starts with the origin."""
        with pytest.raises(StandardFormatError, match=r"^test\.yaml: "):
            parse_definition({"name": "S", "rules": "x"}, origin="test.yaml")


class TestMergeEntries:
    """Test the positional replace-or-append merge."""

    def test_replace_in_place_and_append(self):
        """Known ids keep their slot, new ids go last."""
        base = {"a": RuleEntry("a"), "b": RuleEntry("b")}
        merged = merge_entries(base, [RuleEntry("c"), RuleEntry("a", severity=Severity.WARNING)])
        assert list(merged) == ["a", "b", "c"]
        assert merged["a"].severity == Severity.WARNING

    def test_unstated_fields_inherited(self):
        """Override without options keeps the base options."""
        base = {"a": RuleEntry("a", severity=Severity.ERROR, options={"limit": 80})}
        merged = merge_entries(base, [RuleEntry("a", enabled=False)])
        assert merged["a"].options == {"limit": 80}
        assert merged["a"].severity == Severity.ERROR
        assert merged["a"].enabled is False

    def test_options_replaced_wholesale(self):
        """Stated options replace, not merge."""
        base = {"a": RuleEntry("a", options={"limit": 80, "absolute_limit": 120})}
        merged = merge_entries(base, [RuleEntry("a", options={"limit": 100})])
        assert merged["a"].options == {"limit": 100}

    def test_inputs_not_modified(self):
        """Merge returns a new dict."""
        base = {"a": RuleEntry("a")}
        merge_entries(base, [RuleEntry("b")])
        assert list(base) == ["a"]

    def test_duplicate_ids_collapse(self, caplog):
        """Later duplicate overlays the earlier one."""
        with caplog.at_level(logging.WARNING):
            merged = merge_entries({}, [
                RuleEntry("a", severity=Severity.ERROR),
                RuleEntry("b"),
                RuleEntry("a", severity=Severity.WARNING),
            ], origin="dup.yaml")
        assert list(merged) == ["a", "b"]
        assert merged["a"].severity == Severity.WARNING
        assert "listed twice" in caplog.text


class TestResolve:
    """Test resolving standards from built-in and user sources."""

    def test_user_override_example(self):
        """Replace in place, append new rules in user order."""
        builtin = MappingStandardSource({
            "ZF2": {"rules": [_rule("no-tabs"), _rule("line-length", limit=80)]},
        })
        user = MappingStandardSource({
            "ZF2": {"rules": [_rule("trailing-whitespace"), _rule("line-length", "warning", limit=100)]},
        })
        standard = resolve("ZF2", builtin, user)
        assert standard.rules == (
            RuleConfig("no-tabs", True, Severity.ERROR, {}),
            RuleConfig("line-length", True, Severity.WARNING, {"limit": 100}),
            RuleConfig("trailing-whitespace", True, Severity.ERROR, {}),
        )

    def test_builtin_only(self):
        """No user source gives the built-in as is."""
        builtin = MappingStandardSource({"S": {"rules": ["a", "b"]}})
        assert resolve("S", builtin).rule_ids == ["a", "b"]

    def test_user_without_matching_definition(self):
        """User source lacking the name changes nothing."""
        builtin = MappingStandardSource({"S": {"rules": ["a"]}})
        user = MappingStandardSource({"Other": {"rules": ["b"]}})
        assert resolve("S", builtin, user).rule_ids == ["a"]

    def test_default_severity_is_error(self):
        """Entries without severity are errors."""
        builtin = MappingStandardSource({"S": {"rules": ["a"]}})
        assert resolve("S", builtin).rules[0].severity == Severity.ERROR

    def test_not_found(self):
        """Unknown name raises StandardNotFound listing what exists."""
        builtin = MappingStandardSource({"PSR2": {"rules": []}})
        with pytest.raises(StandardNotFound) as exc:
            resolve("Nope", builtin)
        assert exc.value.name == "Nope"
        assert "PSR2" in str(exc.value)

    def test_user_only_not_found(self):
        """A user definition alone is not a standard."""
        builtin = MappingStandardSource({})
        user = MappingStandardSource({"Mine": {"rules": ["a"]}})
        with pytest.raises(StandardNotFound):
            resolve("Mine", builtin, user)

    def test_zero_enabled_rules_is_valid(self):
        """Disabling everything still resolves."""
        builtin = MappingStandardSource({"S": {"rules": ["a"]}})
        user = MappingStandardSource({"S": {"rules": [{"id": "a", "enabled": False}]}})
        standard = resolve("S", builtin, user)
        assert standard.rule_ids == ["a"]
        assert standard.enabled_rules == ()

    def test_builtin_extends(self):
        """Child entries overlay the parent's."""
        builtin = MappingStandardSource({
            "Base": {"rules": ["a", _rule("b", limit=1)]},
            "Child": {"extends": "Base", "rules": [_rule("b", "warning"), "c"]},
        })
        standard = resolve("Child", builtin)
        assert standard.rule_ids == ["a", "b", "c"]
        assert standard.get("b").severity == Severity.WARNING
        assert standard.get("b").options == {"limit": 1}

    def test_extends_chain(self):
        """Extends resolves recursively."""
        builtin = MappingStandardSource({
            "A": {"rules": ["one"]},
            "B": {"extends": "A", "rules": ["two"]},
            "C": {"extends": "B", "rules": ["three"]},
        })
        assert resolve("C", builtin).rule_ids == ["one", "two", "three"]

    def test_extends_is_exact_name(self):
        """Extends does not match case-insensitively."""
        builtin = MappingStandardSource({
            "Base": {"rules": []},
            "Child": {"extends": "base", "rules": []},
        })
        with pytest.raises(StandardNotFound):
            resolve("Child", builtin)

    def test_extends_cycle(self):
        """Circular extends is a format error."""
        builtin = MappingStandardSource({
            "A": {"extends": "B", "rules": []},
            "B": {"extends": "A", "rules": []},
        })
        with pytest.raises(StandardFormatError, match="circular"):
            resolve("A", builtin)

    def test_user_standard_extends_builtin(self):
        """New user standard based on a built-in."""
        builtin = MappingStandardSource({"PSR2": {"rules": ["a", "b"]}})
        user = MappingStandardSource({
            "Team": {"extends": "PSR2", "rules": [{"id": "a", "enabled": False}, "c"]},
        })
        standard = resolve("Team", builtin, user)
        assert standard.name == "Team"
        assert standard.rule_ids == ["a", "b", "c"]
        assert [r.rule_id for r in standard.enabled_rules] == ["b", "c"]

    def test_deterministic(self):
        """Same inputs, same result."""
        builtin = MappingStandardSource({"S": {"rules": ["a", "b"]}})
        user = MappingStandardSource({"S": {"rules": ["c", _rule("a", "warning")]}})
        assert resolve("S", builtin, user) == resolve("S", builtin, user)


class TestDirectorySource:
    """Test YAML directory sources."""

    def test_load_yaml(self, write_standard, standards_dir):
        """Definitions are read from <name>.yaml."""
        write_standard("Team", "rules:\n  - no-tabs\n  - id: line-length\n    options:\n      limit: 100\n")
        source = DirectoryStandardSource(standards_dir)
        definition = source.get("Team")
        assert definition.name == "Team"
        assert [e.rule_id for e in definition.rules] == ["no-tabs", "line-length"]
        assert source.names() == ["Team"]

    def test_missing_directory_is_empty(self, tmp_path):
        """Absent directory is not an error."""
        source = DirectoryStandardSource(tmp_path / "missing")
        assert source.get("ZF2") is None
        assert source.names() == []

    def test_invalid_names_ignored(self, standards_dir):
        """Path-like names never reach the filesystem."""
        source = DirectoryStandardSource(standards_dir)
        assert source.get("../etc/passwd") is None

    def test_invalid_yaml(self, write_standard):
        """YAML errors become StandardFormatError."""
        path = write_standard("Bad", "rules: [unclosed\n")
        with pytest.raises(StandardFormatError, match="invalid YAML"):
            load_definition_file(path, "Bad")

    def test_file_name_wins(self, write_standard, caplog):
        """Declared name differing from the file name is overridden."""
        path = write_standard("Team", "name: Other\nrules: []\n")
        with caplog.at_level(logging.WARNING):
            definition = load_definition_file(path, "Team")
        assert definition.name == "Team"
        assert "using file name" in caplog.text


class TestBuiltinStandards:
    """Test the standards shipped with the package."""

    def test_shipped_files_exist(self):
        """PSR2 and ZF2 ship as YAML."""
        assert (BUILTIN_STANDARDS_DIR / "PSR2.yaml").is_file()
        assert (BUILTIN_STANDARDS_DIR / "ZF2.yaml").is_file()

    def test_zf2_extends_psr2(self):
        """ZF2 keeps PSR2's order and appends its own rules."""
        standard = StandardResolver().resolve("ZF2")
        psr2 = StandardResolver().resolve("PSR2")
        assert standard.rule_ids[:len(psr2.rule_ids)] == psr2.rule_ids
        assert standard.rule_ids[-3:] == ["comment-style", "max-blank-lines", "variable-naming"]
        assert standard.get("line-length").options == {"limit": 80, "absolute_limit": 120}
        assert standard.get("no-tabs").severity == Severity.WARNING

    def test_user_directory_override(self, write_standard, standards_dir):
        """User YAML overrides a shipped standard."""
        write_standard("ZF2", "rules:\n  - id: no-tabs\n    enabled: false\n")
        standard = StandardResolver(user_dir=standards_dir).resolve("ZF2")
        assert standard.get("no-tabs").enabled is False
        assert standard.get("no-tabs").severity == Severity.WARNING

    def test_list_standards(self, write_standard, standards_dir):
        """User standards extending a built-in are listed."""
        write_standard("Team", "extends: PSR2\nrules: []\n")
        write_standard("Orphan", "rules: []\n")
        names = StandardResolver(user_dir=standards_dir).list_standards()
        assert names == ["PSR2", "Team", "ZF2"]
