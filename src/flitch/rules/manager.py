"""
Rule Manager

Turns a resolved Standard into a RuleSet and drives one pass of that
RuleSet over a file's tokens.

Preparation instantiates each enabled rule through the registry and
indexes the rules by token type (the dispatch table), keeping the order
in which the standard declares them. A rule that cannot be built is
recorded on the RuleSet and skipped; the others still run.

Dispatch walks the tokens once. A rule that raises is contained at the
single call site below and reported as a violation of its own.

Usage:
    manager = RuleManager()
    rule_set = manager.prepare(standard)
    for path, content in inputs:
        file = tokenize(path, content)
        manager.check(file, rule_set)
"""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from flitch.errors import FlitchError, RuleConfigError, RuleExecutionError, UnknownRule
from flitch.file.source_file import Severity, SourceFile, Violation
from flitch.file.tokenizer import Token, TokenType, tokenize
from flitch.rules.base import Rule
from flitch.rules.registry import RuleRegistry, default_registry
from flitch.standard.definition import Standard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleSet:
    """
    Prepared rules of one standard. Immutable, safe to share across files.
    """
    standard: Standard
    rules: Tuple[Rule, ...] = ()
    dispatch: Mapping[TokenType, Tuple[Rule, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    errors: Tuple[FlitchError, ...] = ()

    def rules_for(self, token_type: TokenType) -> Tuple[Rule, ...]:
        return self.dispatch.get(token_type, ())

    @property
    def rule_ids(self) -> List[str]:
        return [rule.rule_id for rule in self.rules]


class RuleManager:
    """Prepares rule sets and checks files against them."""

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def prepare(self, standard: Standard) -> RuleSet:
        """
        Instantiate the enabled rules of a standard and build the dispatch table.

        Unknown rule ids, rejected options and rules that fail to build do
        not stop preparation: they are logged, collected in RuleSet.errors
        and the rule is left out.
        """
        rules: List[Rule] = []
        errors: List[FlitchError] = []

        for config in standard.enabled_rules:
            try:
                rule = self.registry.create(config)
            except (UnknownRule, RuleConfigError) as e:
                logger.warning(f"Skipping rule: {e}")
                errors.append(e)
                continue
            except Exception as e:
                error = RuleConfigError(config.rule_id, f"{type(e).__name__}: {e}")
                logger.warning(f"Skipping rule: {error}")
                errors.append(error)
                continue
            rules.append(rule)

        table: Dict[TokenType, List[Rule]] = {}
        for rule in rules:
            interested = rule.interested_token_types()
            for token_type in TokenType:
                if token_type in interested:
                    table.setdefault(token_type, []).append(rule)

        dispatch = MappingProxyType({t: tuple(rs) for t, rs in table.items()})
        logger.debug(
            f"Prepared {len(rules)} rules for standard '{standard.name}' "
            f"({len(errors)} skipped)"
        )
        return RuleSet(standard=standard, rules=tuple(rules), dispatch=dispatch, errors=tuple(errors))

    def _invoke(self, rule: Rule, tokens: Sequence[Token], index: int, path: str) -> List[Violation]:
        """Run one rule on one token, containing any failure."""
        token = tokens[index]
        try:
            found = []
            for violation in rule.check(tokens, index) or ():
                if not isinstance(violation, Violation):
                    raise TypeError(f"check() returned {type(violation).__name__}, not Violation")
                found.append(replace(violation, file=path, rule_id=rule.rule_id))
            return found
        except Exception as e:
            error = RuleExecutionError(rule.rule_id, token.line, token.column, e)
            logger.warning(f"{path}:{token.line}:{token.column}: {error}")
            return [Violation(
                line=token.line,
                column=token.column,
                rule_id=rule.rule_id,
                severity=Severity.ERROR,
                message=str(error),
                file=path,
            )]

    def check(self, file: SourceFile, rule_set: RuleSet) -> None:
        """
        Run one pass of rule_set over file.tokens.

        file.violations is replaced, so checking again gives the same list.
        Violations are ordered by (line, column); at equal positions they
        keep dispatch order, which is token order then standard order.
        """
        tokens = file.tokens if isinstance(file.tokens, tuple) else tuple(file.tokens)
        violations: List[Violation] = []

        for index, token in enumerate(tokens):
            for rule in rule_set.rules_for(token.type):
                violations.extend(self._invoke(rule, tokens, index, file.path))

        violations.sort(key=lambda v: (v.line, v.column))
        file.violations = violations

    def check_source(self, path: str, content: Union[bytes, str], rule_set: RuleSet) -> SourceFile:
        """Tokenize content and check it."""
        file = tokenize(path, content)
        self.check(file, rule_set)
        return file
