"""
Naming Rules
"""

import re
from typing import List, Sequence

from flitch.errors import RuleConfigError
from flitch.file.source_file import Violation
from flitch.file.tokenizer import Token, TokenType
from flitch.rules.base import Rule
from flitch.rules.registry import register

# Names PHP itself defines
RESERVED_VARIABLES = frozenset({
    "this", "GLOBALS", "_SERVER", "_GET", "_POST", "_FILES", "_COOKIE",
    "_SESSION", "_REQUEST", "_ENV", "http_response_header", "argc", "argv",
})


@register
class VariableNamingRule(Rule):
    """Variable names match a pattern (camelCase by default)."""

    rule_id = "variable-naming"
    description = "camelCase variable names"
    token_types = frozenset({TokenType.VARIABLE})
    default_options = {"pattern": r"^_?[a-z][a-zA-Z0-9]*$"}

    def configure(self, options):
        pattern = options.get("pattern")
        if not isinstance(pattern, str):
            raise RuleConfigError(self.rule_id, "'pattern' must be a regular expression string")
        try:
            self.pattern = re.compile(pattern)
        except re.error as e:
            raise RuleConfigError(self.rule_id, f"invalid 'pattern': {e}") from e

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        name = token.text[1:]
        if name in RESERVED_VARIABLES or self.pattern.search(name):
            return []
        return [self.violation(
            token,
            f"Variable '{token.text}' does not match naming pattern {self.pattern.pattern}",
        )]
