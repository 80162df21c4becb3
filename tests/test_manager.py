"""
Tests for rule preparation and dispatch.
"""

import pytest

from flitch.errors import RuleConfigError, UnknownRule
from flitch.file.source_file import Severity, Violation
from flitch.file.tokenizer import TokenType, tokenize
from flitch.rules import Rule, RuleManager, RuleRegistry, default_registry
from flitch.standard.definition import RuleConfig, Standard

BUILTIN_RULES = [
    "no-tabs", "trailing-whitespace", "indentation", "max-blank-lines",
    "comma-spacing", "line-endings", "line-length", "end-of-file",
    "closing-tag", "short-open-tag", "keyword-case", "comment-style",
    "brace-newline", "variable-naming",
]


class FailingRule(Rule):
    rule_id = "always-fails"
    token_types = frozenset({TokenType.IDENTIFIER})

    def check(self, tokens, index):
        raise RuntimeError("boom")


class WhitespaceEchoRule(Rule):
    """Reports every whitespace token."""
    rule_id = "whitespace-echo"
    token_types = frozenset({TokenType.WHITESPACE})

    def check(self, tokens, index):
        return [self.violation(tokens[index], "whitespace")]


class BrokenSetupRule(Rule):
    rule_id = "broken-setup"
    token_types = frozenset({TokenType.IDENTIFIER})

    def configure(self, options):
        raise ValueError("cannot read options")


class BadReturnRule(Rule):
    rule_id = "bad-return"
    token_types = frozenset({TokenType.IDENTIFIER})

    def check(self, tokens, index):
        return ["not a violation"]


@pytest.fixture
def registry():
    registry = default_registry.copy()
    registry.register(FailingRule)
    registry.register(WhitespaceEchoRule)
    registry.register(BadReturnRule)
    registry.register(BrokenSetupRule)
    return registry


def _standard(*rules):
    return Standard(name="test", rules=tuple(rules))


class TestRegistry:
    """Test the rule registry."""

    def test_builtin_rules_registered(self):
        """Every built-in rule id resolves."""
        for rule_id in BUILTIN_RULES:
            assert rule_id in default_registry

    def test_duplicate_registration(self):
        """Rule ids are unique."""
        registry = RuleRegistry()
        registry.register(FailingRule)
        with pytest.raises(ValueError):
            registry.register(FailingRule)

    def test_unknown_rule(self):
        """create() raises UnknownRule."""
        with pytest.raises(UnknownRule):
            RuleRegistry().create(RuleConfig("missing"))

    def test_copy_is_independent(self, registry):
        """Registering on a copy leaves the default alone."""
        assert "always-fails" in registry
        assert "always-fails" not in default_registry


class TestPrepare:
    """Test building rule sets."""

    def test_disabled_rules_skipped(self, manager):
        """Only enabled rules are instantiated."""
        rule_set = manager.prepare(_standard(
            RuleConfig("no-tabs"),
            RuleConfig("trailing-whitespace", enabled=False),
        ))
        assert rule_set.rule_ids == ["no-tabs"]

    def test_unknown_rule_recorded(self, manager):
        """Unknown ids are skipped and recorded."""
        rule_set = manager.prepare(_standard(RuleConfig("nope"), RuleConfig("no-tabs")))
        assert rule_set.rule_ids == ["no-tabs"]
        assert len(rule_set.errors) == 1
        assert isinstance(rule_set.errors[0], UnknownRule)

    @pytest.mark.parametrize("options", [
        {"size": 0},
        {"size": "four"},
        {"width": 4},
    ])
    def test_bad_options_recorded(self, manager, options):
        """Rejected options are skipped and recorded."""
        rule_set = manager.prepare(_standard(RuleConfig("indentation", options=options)))
        assert rule_set.rules == ()
        assert isinstance(rule_set.errors[0], RuleConfigError)

    def test_failing_setup_recorded(self, registry):
        """Any exception while building a rule skips only that rule."""
        manager = RuleManager(registry)
        rule_set = manager.prepare(_standard(RuleConfig("broken-setup"), RuleConfig("no-tabs")))
        assert rule_set.rule_ids == ["no-tabs"]
        assert len(rule_set.errors) == 1
        error = rule_set.errors[0]
        assert isinstance(error, RuleConfigError)
        assert error.rule_id == "broken-setup"
        assert "ValueError: cannot read options" in str(error)

    def test_dispatch_keeps_standard_order(self, registry):
        """Rules interested in a type appear in declaration order."""
        manager = RuleManager(registry)
        rule_set = manager.prepare(_standard(
            RuleConfig("whitespace-echo"),
            RuleConfig("line-length"),
            RuleConfig("no-tabs"),
        ))
        ids = [r.rule_id for r in rule_set.rules_for(TokenType.WHITESPACE)]
        assert ids == ["whitespace-echo", "line-length", "no-tabs"]
        assert [r.rule_id for r in rule_set.rules_for(TokenType.NUMBER)] == ["line-length"]

    def test_dispatch_is_read_only(self, manager):
        """Rule sets cannot be changed after preparation."""
        rule_set = manager.prepare(_standard(RuleConfig("no-tabs")))
        with pytest.raises(TypeError):
            rule_set.dispatch[TokenType.NUMBER] = ()


class TestCheck:
    """Test running rule sets over files."""

    def test_no_tabs_example(self, manager):
        """Tab between identifiers."""
        rule_set = manager.prepare(_standard(RuleConfig("no-tabs", severity=Severity.WARNING)))
        file = manager.check_source("a.php", "a\tb\n", rule_set)
        assert file.violations == [Violation(
            line=1,
            column=2,
            rule_id="no-tabs",
            severity=Severity.WARNING,
            message="Tab character found, use spaces",
            file="a.php",
        )]

    def test_empty_standard(self, manager):
        """No rules, no violations."""
        rule_set = manager.prepare(_standard())
        file = manager.check_source("a.php", "a\tb\n", rule_set)
        assert file.violations == []

    def test_idempotent(self, manager):
        """Checking twice gives the same violations."""
        rule_set = manager.prepare(_standard(RuleConfig("no-tabs"), RuleConfig("trailing-whitespace")))
        file = tokenize("a.php", "\t$a = 1; \n")
        manager.check(file, rule_set)
        first = list(file.violations)
        manager.check(file, rule_set)
        assert file.violations == first
        assert len(first) == 2

    def test_rule_set_reused_across_files(self, manager):
        """One rule set serves many files."""
        rule_set = manager.prepare(_standard(RuleConfig("no-tabs")))
        a = manager.check_source("a.php", "\tx\n", rule_set)
        b = manager.check_source("b.php", "x\n", rule_set)
        assert [v.file for v in a.violations] == ["a.php"]
        assert b.violations == []

    def test_sorted_by_position(self, manager):
        """Violations come out in source order."""
        rule_set = manager.prepare(_standard(RuleConfig("trailing-whitespace"), RuleConfig("no-tabs")))
        file = manager.check_source("a.php", "a \nb\tc\n", rule_set)
        assert [(v.line, v.column, v.rule_id) for v in file.violations] == [
            (1, 2, "trailing-whitespace"),
            (2, 2, "no-tabs"),
        ]

    def test_same_position_follows_standard_order(self, registry):
        """Ties keep declaration order."""
        manager = RuleManager(registry)
        forward = manager.prepare(_standard(RuleConfig("whitespace-echo"), RuleConfig("no-tabs")))
        backward = manager.prepare(_standard(RuleConfig("no-tabs"), RuleConfig("whitespace-echo")))
        assert [v.rule_id for v in manager.check_source("a", "a\tb", forward).violations] == [
            "whitespace-echo", "no-tabs",
        ]
        assert [v.rule_id for v in manager.check_source("a", "a\tb", backward).violations] == [
            "no-tabs", "whitespace-echo",
        ]

    def test_failing_rule_isolated(self, registry):
        """A raising rule becomes error violations, others still run."""
        manager = RuleManager(registry)
        rule_set = manager.prepare(_standard(
            RuleConfig("always-fails"),
            RuleConfig("no-tabs", severity=Severity.WARNING),
        ))
        file = manager.check_source("a.php", "a\tb\n", rule_set)
        assert [(v.column, v.rule_id, v.severity) for v in file.violations] == [
            (1, "always-fails", Severity.ERROR),
            (2, "no-tabs", Severity.WARNING),
            (3, "always-fails", Severity.ERROR),
        ]
        assert file.violations[0].message.startswith("Rule execution error in 'always-fails'")
        assert "boom" in file.violations[0].message

    def test_non_violation_result(self, registry):
        """Returning something else is an execution error."""
        manager = RuleManager(registry)
        rule_set = manager.prepare(_standard(RuleConfig("bad-return")))
        file = manager.check_source("a.php", "x", rule_set)
        assert len(file.violations) == 1
        assert file.violations[0].severity == Severity.ERROR
        assert "TypeError" in file.violations[0].message

    def test_rule_id_stamped_from_config(self, registry):
        """Violations carry the id the rule was registered under."""
        registry.add("tabs-again", default_registry.get("no-tabs"))
        manager = RuleManager(registry)
        rule_set = manager.prepare(_standard(RuleConfig("tabs-again")))
        file = manager.check_source("a.php", "\t", rule_set)
        assert file.violations[0].rule_id == "tabs-again"

    def test_bytes_content(self, manager):
        """Raw bytes are accepted."""
        rule_set = manager.prepare(_standard(RuleConfig("no-tabs")))
        file = manager.check_source("a.php", b"\t'\xff'\n", rule_set)
        assert len(file.violations) == 1
