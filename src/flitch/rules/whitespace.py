"""
Whitespace Rules

Tabs, trailing whitespace, indentation width, blank line runs and comma
spacing.
"""

import re
from typing import List, Sequence

from flitch.file.source_file import Violation
from flitch.file.tokenizer import Token, TokenType
from flitch.rules.base import Rule, at_line_start, is_last, require_int
from flitch.rules.registry import register

_RX_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@register
class NoTabsRule(Rule):
    """Whitespace must not contain tab characters."""

    rule_id = "no-tabs"
    description = "Use spaces instead of tabs"
    token_types = frozenset({TokenType.WHITESPACE})

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        if "\t" in token.text:
            return [self.violation(token, "Tab character found, use spaces")]
        return []


@register
class TrailingWhitespaceRule(Rule):
    """
    No whitespace at the end of a line.

    Covers plain whitespace tokens as well as the end of each line inside
    comments, whose text runs up to the line break.
    """

    rule_id = "trailing-whitespace"
    description = "Lines must not end with whitespace"
    token_types = frozenset({TokenType.WHITESPACE, TokenType.COMMENT, TokenType.DOC_COMMENT})

    MESSAGE = "Trailing whitespace"

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        ends_line = is_last(tokens, index) or tokens[index + 1].type == TokenType.NEWLINE

        if token.type == TokenType.WHITESPACE:
            if ends_line:
                return [self.violation(token, self.MESSAGE)]
            return []

        issues = []
        segments = _RX_LINE_BREAK.split(token.text)
        for i, segment in enumerate(segments):
            if i == len(segments) - 1 and not ends_line:
                break
            stripped = segment.rstrip(" \t")
            if stripped == segment:
                continue
            column = (token.column if i == 0 else 1) + len(stripped)
            issues.append(self.violation(token, self.MESSAGE, line=token.line + i, column=column))
        return issues


@register
class IndentationRule(Rule):
    """Leading spaces must be a multiple of the indent size."""

    rule_id = "indentation"
    description = "Indent with a fixed number of spaces"
    token_types = frozenset({TokenType.WHITESPACE})
    default_options = {"size": 4}

    def configure(self, options):
        self.size = require_int(self.rule_id, options, "size", minimum=1)

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        if not at_line_start(tokens, index):
            return []
        # Blank lines and tabs belong to other rules
        if is_last(tokens, index) or tokens[index + 1].type == TokenType.NEWLINE:
            return []
        if "\t" in token.text:
            return []

        width = len(token.text)
        if width % self.size:
            return [self.violation(
                token,
                f"Indentation of {width} spaces is not a multiple of {self.size}",
            )]
        return []


@register
class MaxBlankLinesRule(Rule):
    """Limit runs of consecutive blank lines."""

    rule_id = "max-blank-lines"
    description = "Limit consecutive blank lines"
    token_types = frozenset({TokenType.NEWLINE})
    default_options = {"max": 2}

    def configure(self, options):
        self.max = require_int(self.rule_id, options, "max", minimum=0)

    def _blank_run(self, tokens: Sequence[Token], index: int) -> int:
        """Blank lines ending at tokens[index], counted up to max + 2."""
        run = 0
        i = index
        while run <= self.max + 1:
            j = i - 1
            if j >= 0 and tokens[j].type == TokenType.WHITESPACE:
                j -= 1
            if j >= 0 and tokens[j].type != TokenType.NEWLINE:
                break
            run += 1
            if j < 0:
                break
            i = j
        return run

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        # Report once, on the first line past the limit
        if self._blank_run(tokens, index) == self.max + 1:
            return [self.violation(
                tokens[index],
                f"More than {self.max} consecutive blank line(s)",
            )]
        return []


@register
class CommaSpacingRule(Rule):
    """A comma is followed by whitespace and not preceded by it."""

    rule_id = "comma-spacing"
    description = "Space after commas, none before"
    token_types = frozenset({TokenType.COMMA})

    _CLOSERS = (TokenType.CLOSE_PAREN, TokenType.CLOSE_BRACKET, TokenType.WHITESPACE, TokenType.NEWLINE)

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        issues = []
        if index > 0 and tokens[index - 1].type == TokenType.WHITESPACE and not at_line_start(tokens, index - 1):
            issues.append(self.violation(token, "Whitespace found before comma"))
        if not is_last(tokens, index) and tokens[index + 1].type not in self._CLOSERS:
            issues.append(self.violation(token, "Missing space after comma"))
        return issues
