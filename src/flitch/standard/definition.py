"""
Standard Definitions

A standard is a named, ordered configuration of rules. Definitions are
the raw, per-source form (built-in or user override); a Standard is the
merged result the rule manager works from.

Definition format (YAML or any equivalent mapping):

    name: ZF2
    extends: PSR2            # optional
    rules:
      - id: no-tabs
        severity: warning    # optional, error|warning
        enabled: true        # optional
        options:             # optional
          limit: 80
      - trailing-whitespace  # shorthand for {id: trailing-whitespace}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flitch.errors import StandardFormatError
from flitch.file.source_file import Severity

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = Severity.ERROR


@dataclass(frozen=True)
class RuleConfig:
    """Resolved configuration of one rule within a standard."""
    rule_id: str
    enabled: bool = True
    severity: Severity = DEFAULT_SEVERITY
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Standard:
    """A resolved standard. Rule ids are unique and keep declaration order."""
    name: str
    rules: Tuple[RuleConfig, ...] = ()

    @property
    def enabled_rules(self) -> Tuple[RuleConfig, ...]:
        return tuple(r for r in self.rules if r.enabled)

    @property
    def rule_ids(self) -> List[str]:
        return [r.rule_id for r in self.rules]

    def get(self, rule_id: str) -> Optional[RuleConfig]:
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None


@dataclass(frozen=True)
class RuleEntry:
    """
    One rule entry as written in a definition.

    Fields left out of the definition are None, so that an override entry
    only replaces what it actually states.
    """
    rule_id: str
    enabled: Optional[bool] = None
    severity: Optional[Severity] = None
    options: Optional[Dict[str, Any]] = None

    def overlay(self, other: "RuleEntry") -> "RuleEntry":
        """Entry with other's stated fields replacing ours."""
        return RuleEntry(
            rule_id=self.rule_id,
            enabled=self.enabled if other.enabled is None else other.enabled,
            severity=self.severity if other.severity is None else other.severity,
            options=self.options if other.options is None else dict(other.options),
        )

    def to_config(self) -> RuleConfig:
        return RuleConfig(
            rule_id=self.rule_id,
            enabled=True if self.enabled is None else self.enabled,
            severity=self.severity or DEFAULT_SEVERITY,
            options=dict(self.options or {}),
        )


@dataclass(frozen=True)
class StandardDefinition:
    """A standard as declared by one source."""
    name: str
    rules: Tuple[RuleEntry, ...] = ()
    extends: Optional[str] = None
    origin: str = "<memory>"


def _parse_entry(raw: Any, where: str, origin: str) -> RuleEntry:
    if isinstance(raw, str):
        return RuleEntry(rule_id=raw)
    if not isinstance(raw, dict):
        raise StandardFormatError(f"{where} must be a rule id or a mapping", origin)

    rule_id = raw.get("id")
    if not isinstance(rule_id, str) or not rule_id:
        raise StandardFormatError(f"{where}.id must be a non-empty string", origin)

    enabled = raw.get("enabled")
    if enabled is not None and not isinstance(enabled, bool):
        raise StandardFormatError(f"{where}.enabled must be a boolean", origin)

    severity = raw.get("severity")
    if severity is not None:
        try:
            severity = Severity.parse(severity)
        except ValueError as e:
            raise StandardFormatError(f"{where}.{e}", origin) from None

    options = raw.get("options")
    if options is not None and not isinstance(options, dict):
        raise StandardFormatError(f"{where}.options must be a mapping", origin)

    return RuleEntry(rule_id=rule_id, enabled=enabled, severity=severity, options=options)


def parse_definition(data: Any, name: Optional[str] = None, origin: str = "<memory>") -> StandardDefinition:
    """
    Validate a raw mapping and build a StandardDefinition.

    Args:
        data: Parsed YAML document (or equivalent dict)
        name: Name to use when the document does not state one
        origin: Where the data came from, for error messages

    Raises:
        StandardFormatError: If the data has the wrong shape.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise StandardFormatError("standard definition must be a mapping", origin)

    declared = data.get("name", name)
    if not isinstance(declared, str) or not declared:
        raise StandardFormatError("standard definition needs a name", origin)

    extends = data.get("extends")
    if extends is not None and not isinstance(extends, str):
        raise StandardFormatError("'extends' must be a standard name", origin)

    raw_rules = data.get("rules", [])
    if raw_rules is None:
        raw_rules = []
    if not isinstance(raw_rules, list):
        raise StandardFormatError("'rules' must be a list", origin)

    entries = [_parse_entry(raw, f"rules[{i}]", origin) for i, raw in enumerate(raw_rules)]
    return StandardDefinition(name=declared, rules=tuple(entries), extends=extends, origin=origin)


def merge_entries(base: Dict[str, RuleEntry], entries, origin: str = "<memory>") -> Dict[str, RuleEntry]:
    """
    Positional replace-or-append merge.

    An entry whose id is already present overlays that entry in place;
    a new id is appended. Returns a new dict, inputs are not modified.
    """
    merged = dict(base)
    seen = set()
    for entry in entries:
        if entry.rule_id in seen:
            logger.warning(f"{origin}: rule '{entry.rule_id}' listed twice, later entry wins")
        seen.add(entry.rule_id)

        existing = merged.get(entry.rule_id)
        if existing is None:
            merged[entry.rule_id] = entry
        else:
            merged[entry.rule_id] = existing.overlay(entry)
    return merged
