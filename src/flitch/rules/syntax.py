"""
Syntax Style Rules

Keyword casing, comment style and brace placement for declarations.
"""

from typing import List, Optional, Sequence

from flitch.file.source_file import Violation
from flitch.file.tokenizer import Token, TokenType
from flitch.rules.base import Rule, next_significant, previous_significant, require_choice
from flitch.rules.registry import register

CONSTANT_KEYWORDS = frozenset({"true", "false", "null"})


@register
class KeywordCaseRule(Rule):
    """Keywords are lower case; true/false/null follow the 'constants' option."""

    rule_id = "keyword-case"
    description = "Lower case keywords"
    token_types = frozenset({TokenType.KEYWORD})
    default_options = {"constants": "lower"}

    def configure(self, options):
        self.constants = require_choice(self.rule_id, options, "constants", ("lower", "upper"))

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        text = token.text
        if text.lower() in CONSTANT_KEYWORDS and self.constants == "upper":
            if text != text.upper():
                return [self.violation(token, f"Constant '{text}' must be upper case")]
            return []
        if text != text.lower():
            kind = "Constant" if text.lower() in CONSTANT_KEYWORDS else "Keyword"
            return [self.violation(token, f"{kind} '{text}' must be lower case")]
        return []


@register
class CommentStyleRule(Rule):
    """No perl-style (#) comments."""

    rule_id = "comment-style"
    description = "Use // instead of # comments"
    token_types = frozenset({TokenType.COMMENT})

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        if token.text.startswith("#"):
            return [self.violation(token, "Perl-style comment found, use // instead")]
        return []


@register
class BraceNewlineRule(Rule):
    """
    Opening braces of classes, interfaces, traits and named functions
    go on the line after the declaration.

    Closures, anonymous classes, ::class lookups, imported functions and
    declarations whose header spans several lines are left alone.
    """

    rule_id = "brace-newline"
    description = "Declaration braces on their own line"
    token_types = frozenset({TokenType.KEYWORD})

    DECLARATIONS = frozenset({"class", "interface", "trait", "function"})

    def _is_declaration(self, tokens: Sequence[Token], index: int, keyword: str) -> bool:
        prev = previous_significant(tokens, index)
        prev_text = tokens[prev].text.lower() if prev is not None else ""
        if prev_text in ("::", "new", "use"):
            return False
        if keyword == "function":
            nxt = next_significant(tokens, index)
            if nxt is not None and tokens[nxt].text == "&":
                nxt = next_significant(tokens, nxt)
            if nxt is None or tokens[nxt].type == TokenType.OPEN_PAREN:
                return False
        return True

    @staticmethod
    def _find_body(tokens: Sequence[Token], index: int) -> Optional[int]:
        """Index of the declaration's opening brace, None for bodiless declarations."""
        depth = 0
        for i in range(index + 1, len(tokens)):
            token_type = tokens[i].type
            if token_type == TokenType.OPEN_PAREN:
                depth += 1
            elif token_type == TokenType.CLOSE_PAREN:
                depth -= 1
            elif depth <= 0 and token_type == TokenType.SEMICOLON:
                return None
            elif depth <= 0 and token_type == TokenType.OPEN_BRACE:
                return i
        return None

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        keyword = token.text.lower()
        if keyword not in self.DECLARATIONS or not self._is_declaration(tokens, index, keyword):
            return []

        brace = self._find_body(tokens, index)
        if brace is None:
            return []
        header_end = previous_significant(tokens, brace)
        if header_end is None or tokens[header_end].line != token.line:
            return []
        if tokens[brace].line == token.line:
            return [self.violation(
                tokens[brace],
                f"Opening brace of {keyword} must be on its own line",
            )]
        return []
