"""
flitch.rules - Rule contract, registry, built-in rules and the rule manager.

Importing this package registers the built-in rules with the default
registry.
"""

from flitch.rules.base import ALL_TOKEN_TYPES, Rule
from flitch.rules.registry import RuleRegistry, default_registry, register

# Built-in rules register themselves on import
from flitch.rules import files, naming, syntax, whitespace  # noqa: F401

from flitch.rules.manager import RuleManager, RuleSet

__all__ = [
    "ALL_TOKEN_TYPES",
    "Rule",
    "RuleRegistry",
    "default_registry",
    "register",
    "RuleManager",
    "RuleSet",
]
