"""
flitch.standard - Standard definitions and resolution.

Loads named standards from a built-in source and an optional user-level
override source and merges them into the Standard the rule manager uses.
"""

from flitch.standard.definition import (
    RuleConfig,
    RuleEntry,
    Standard,
    StandardDefinition,
    merge_entries,
    parse_definition,
)
from flitch.standard.loader import (
    DirectoryStandardSource,
    MappingStandardSource,
    StandardSource,
    load_definition_file,
)
from flitch.standard.resolver import BUILTIN_STANDARDS_DIR, StandardResolver, resolve

__all__ = [
    "RuleConfig",
    "RuleEntry",
    "Standard",
    "StandardDefinition",
    "merge_entries",
    "parse_definition",
    "DirectoryStandardSource",
    "MappingStandardSource",
    "StandardSource",
    "load_definition_file",
    "BUILTIN_STANDARDS_DIR",
    "StandardResolver",
    "resolve",
]
