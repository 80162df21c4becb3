"""
Rule Base

Every rule declares the token types it wants to see and inspects the
token stream around each occurrence. Rules are configured once, at
construction, and are pure functions of (tokens, index) afterwards.
"""

from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from flitch.errors import RuleConfigError
from flitch.file.source_file import Severity, Violation
from flitch.file.tokenizer import Token, TokenType
from flitch.standard.definition import RuleConfig

ALL_TOKEN_TYPES: FrozenSet[TokenType] = frozenset(TokenType)


class Rule:
    """Base class for rules."""

    rule_id: str = ""
    description: str = ""
    token_types: FrozenSet[TokenType] = frozenset()
    default_options: Dict[str, Any] = {}

    def __init__(self, config: Optional[RuleConfig] = None):
        if config is None:
            config = RuleConfig(rule_id=self.rule_id)
        self.rule_id = config.rule_id
        self.severity = config.severity

        unknown = sorted(set(config.options) - set(self.default_options))
        if unknown:
            raise RuleConfigError(self.rule_id, f"unknown option(s) {', '.join(unknown)}")

        self.options: Dict[str, Any] = {**self.default_options, **config.options}
        self.configure(self.options)

    def configure(self, options: Dict[str, Any]) -> None:
        """Validate options. Raise RuleConfigError when they are unusable."""

    def interested_token_types(self) -> FrozenSet[TokenType]:
        return frozenset(self.token_types)

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        """Check tokens[index] and return any violations found."""
        raise NotImplementedError

    def violation(
        self,
        token: Token,
        message: str,
        severity: Optional[Severity] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Violation:
        """Violation at a token (or an explicit position) with this rule's id."""
        return Violation(
            line=token.line if line is None else line,
            column=token.column if column is None else column,
            rule_id=self.rule_id,
            severity=severity or self.severity,
            message=message,
        )

    def __repr__(self):
        return f"<{type(self).__name__} {self.rule_id}>"


# ============================================================================
# TOKEN STREAM HELPERS
# ============================================================================

def previous_significant(tokens: Sequence[Token], index: int) -> Optional[int]:
    """Index of the nearest non-trivia token before index."""
    i = index - 1
    while i >= 0:
        if not tokens[i].is_trivia:
            return i
        i -= 1
    return None


def next_significant(tokens: Sequence[Token], index: int) -> Optional[int]:
    """Index of the nearest non-trivia token after index."""
    i = index + 1
    while i < len(tokens):
        if not tokens[i].is_trivia:
            return i
        i += 1
    return None


def at_line_start(tokens: Sequence[Token], index: int) -> bool:
    return index == 0 or tokens[index - 1].type == TokenType.NEWLINE


def is_last(tokens: Sequence[Token], index: int) -> bool:
    return index == len(tokens) - 1


def require_int(rule_id: str, options: Dict[str, Any], name: str, minimum: int = 0) -> int:
    """Integer option at least minimum, or RuleConfigError."""
    value = options.get(name)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise RuleConfigError(rule_id, f"'{name}' must be an integer >= {minimum}")
    return value


def require_choice(rule_id: str, options: Dict[str, Any], name: str, choices: Sequence[str]) -> str:
    """Option that must be one of choices, or RuleConfigError."""
    value = options.get(name)
    if value not in choices:
        raise RuleConfigError(rule_id, f"'{name}' must be one of {'|'.join(choices)}")
    return value
