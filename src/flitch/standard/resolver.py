"""
Standard Resolver

Builds the Standard used for an analysis run by merging a built-in
definition with an optional user-level override of the same name.

Merge policy is positional replace-or-append:
- A user entry for a rule id the built-in already lists replaces that
  entry in place (fields the user leaves out are inherited)
- A user entry for a new rule id is appended, in the user's order

A definition may extend another by exact name. Built-in definitions
extend built-ins; a user definition with no built-in of its own name may
extend a built-in, which then serves as its base.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from flitch.errors import StandardFormatError, StandardNotFound
from flitch.standard.definition import RuleEntry, Standard, StandardDefinition, merge_entries
from flitch.standard.loader import DirectoryStandardSource, StandardSource

logger = logging.getLogger(__name__)

# Directory of the standards shipped with the package
BUILTIN_STANDARDS_DIR = Path(__file__).resolve().parent.parent / "standards"


def _effective_entries(
    source: StandardSource,
    definition: StandardDefinition,
    chain: List[str],
) -> Dict[str, RuleEntry]:
    """Entries of a built-in definition with its 'extends' chain applied."""
    if definition.name in chain:
        cycle = " -> ".join(chain + [definition.name])
        raise StandardFormatError(f"circular 'extends': {cycle}", definition.origin)
    chain = chain + [definition.name]

    base: Dict[str, RuleEntry] = {}
    if definition.extends:
        parent = source.get(definition.extends)
        if parent is None:
            raise StandardNotFound(definition.extends, available=source.names())
        base = _effective_entries(source, parent, chain)

    return merge_entries(base, definition.rules, origin=definition.origin)


def resolve(
    standard_name: str,
    builtin_source: StandardSource,
    user_source: Optional[StandardSource] = None,
) -> Standard:
    """
    Resolve a standard by name.

    Args:
        standard_name: Name of the standard to use
        builtin_source: Source of the shipped definitions
        user_source: Optional source of user-level overrides

    Returns:
        The merged Standard. Zero enabled rules is valid.

    Raises:
        StandardNotFound: If no built-in definition serves as a base.
        StandardFormatError: If a definition is malformed or extends in a cycle.
    """
    builtin = builtin_source.get(standard_name)
    user = user_source.get(standard_name) if user_source is not None else None

    if builtin is None and user is not None and user.extends:
        builtin = builtin_source.get(user.extends)
        if builtin is not None:
            logger.info(f"User standard '{standard_name}' extends built-in '{user.extends}'")

    if builtin is None:
        raise StandardNotFound(standard_name, available=builtin_source.names())

    entries = _effective_entries(builtin_source, builtin, [])

    if user is not None:
        if user.extends and user.extends != builtin.name:
            logger.warning(
                f"{user.origin}: 'extends: {user.extends}' ignored, "
                f"built-in '{builtin.name}' is the base"
            )
        entries = merge_entries(entries, user.rules, origin=user.origin)

    rules = tuple(entry.to_config() for entry in entries.values())
    standard = Standard(name=standard_name, rules=rules)

    logger.info(
        f"Resolved standard '{standard_name}': {len(rules)} rules, "
        f"{len(standard.enabled_rules)} enabled"
    )
    return standard


class StandardResolver:
    """
    Resolver bound to a built-in directory and a user override directory.

    Usage:
        resolver = StandardResolver(user_dir="~/.flitch/standards")
        standard = resolver.resolve("ZF2")
    """

    def __init__(
        self,
        builtin_dir: Union[str, Path, None] = None,
        user_dir: Union[str, Path, None] = None,
    ):
        self.builtin_source = DirectoryStandardSource(builtin_dir or BUILTIN_STANDARDS_DIR)
        self.user_source = DirectoryStandardSource(user_dir) if user_dir else None

    def resolve(self, standard_name: str) -> Standard:
        return resolve(standard_name, self.builtin_source, self.user_source)

    def list_standards(self) -> List[str]:
        """Names of standards that can be resolved."""
        names = set(self.builtin_source.names())
        if self.user_source is not None:
            for name in self.user_source.names():
                definition = self.user_source.get(name)
                if definition is not None and definition.extends in names:
                    names.add(name)
        return sorted(names)
