"""
File Layout Rules

Line endings, line length, end of file, and PHP open/close tags.
"""

import re
from typing import List, Sequence, Tuple

from flitch.errors import RuleConfigError
from flitch.file.source_file import Severity, Violation
from flitch.file.tokenizer import Token, TokenType
from flitch.rules.base import ALL_TOKEN_TYPES, Rule, is_last, require_choice, require_int
from flitch.rules.registry import register

_RX_LINE_BREAK = re.compile(r"\r\n|\r|\n")

LINE_ENDING_NAMES = {"\n": "LF", "\r\n": "CRLF", "\r": "CR"}


@register
class LineEndingsRule(Rule):
    """All line breaks use the configured style."""

    rule_id = "line-endings"
    description = "Consistent line endings"
    token_types = frozenset({TokenType.NEWLINE})
    default_options = {"style": "unix"}

    STYLES = {"unix": "\n", "windows": "\r\n"}

    def configure(self, options):
        style = require_choice(self.rule_id, options, "style", tuple(self.STYLES))
        self.expected = self.STYLES[style]

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        if token.text != self.expected:
            found = LINE_ENDING_NAMES.get(token.text, repr(token.text))
            expected = LINE_ENDING_NAMES[self.expected]
            return [self.violation(token, f"Line ends with {found}, expected {expected}")]
        return []


@register
class LineLengthRule(Rule):
    """
    Lines should stay under a soft limit and must stay under a hard one.

    Going past 'limit' is reported with the configured severity, going
    past 'absolute_limit' is always an error. A limit of 0 disables it.
    """

    rule_id = "line-length"
    description = "Limit line length"
    token_types = ALL_TOKEN_TYPES
    default_options = {"limit": 80, "absolute_limit": 120}

    def configure(self, options):
        self.limit = require_int(self.rule_id, options, "limit")
        self.absolute_limit = require_int(self.rule_id, options, "absolute_limit")
        if self.limit and self.absolute_limit and self.limit > self.absolute_limit:
            raise RuleConfigError(self.rule_id, "'limit' must not exceed 'absolute_limit'")

    @staticmethod
    def _lines_ending_at(tokens: Sequence[Token], index: int) -> List[Tuple[int, int, int]]:
        """
        (length, line, column) of every line that ends inside tokens[index].

        A newline token ends one line. Multi-line tokens (comments, heredocs,
        inline HTML) end a line at each break they contain, and the last
        token also ends the final line of the file.
        """
        token = tokens[index]
        if token.type == TokenType.NEWLINE:
            return [(token.column - 1, token.line, token.column)]

        last = is_last(tokens, index)
        if not last and "\n" not in token.text and "\r" not in token.text:
            return []

        segments = _RX_LINE_BREAK.split(token.text)
        lines = []
        for i, segment in enumerate(segments[:-1]):
            start = token.column if i == 0 else 1
            lines.append((start - 1 + len(segment), token.line + i, start + len(segment)))
        if last:
            start = token.column if len(segments) == 1 else 1
            lines.append((start - 1 + len(segments[-1]), token.line + len(segments) - 1, start))
        return lines

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        issues = []
        for length, line, column in self._lines_ending_at(tokens, index):
            if self.absolute_limit and length > self.absolute_limit:
                issues.append(self.violation(
                    token,
                    f"Line exceeds maximum limit of {self.absolute_limit} characters; contains {length} characters",
                    severity=Severity.ERROR,
                    line=line,
                    column=column,
                ))
            elif self.limit and length > self.limit:
                issues.append(self.violation(
                    token,
                    f"Line exceeds {self.limit} characters; contains {length} characters",
                    line=line,
                    column=column,
                ))
        return issues


@register
class EndOfFileRule(Rule):
    """PHP files end with exactly one line break."""

    rule_id = "end-of-file"
    description = "Files end with a single newline"
    token_types = ALL_TOKEN_TYPES

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        if not is_last(tokens, index):
            return []

        token = tokens[index]
        # Trailing inline HTML is template output, not code
        if token.type == TokenType.INLINE_HTML:
            return []
        if token.type != TokenType.NEWLINE:
            return [self.violation(token, "File must end with a newline")]

        previous = index - 1
        if previous >= 0 and tokens[previous].type == TokenType.WHITESPACE:
            previous -= 1
        if previous >= 0 and tokens[previous].type == TokenType.NEWLINE:
            return [self.violation(token, "File must end with a single newline, found blank lines")]
        return []


@register
class ClosingTagRule(Rule):
    """Files that contain only PHP omit the closing ?> tag."""

    rule_id = "closing-tag"
    description = "Omit the closing tag in pure PHP files"
    token_types = frozenset({TokenType.CLOSE_TAG})

    @staticmethod
    def _is_blank_html(token: Token) -> bool:
        return token.type == TokenType.INLINE_HTML and not token.text.strip()

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        # Only the final close tag matters
        for i in range(index + 1, len(tokens)):
            if not self._is_blank_html(tokens[i]):
                return []
        for i in range(index):
            if tokens[i].type == TokenType.INLINE_HTML and not self._is_blank_html(tokens[i]):
                return []
        return [self.violation(
            tokens[index],
            "The closing tag ?> must be omitted from files containing only PHP",
        )]


@register
class ShortOpenTagRule(Rule):
    """Open tags are the full <?php form."""

    rule_id = "short-open-tag"
    description = "Use <?php instead of <?"
    token_types = frozenset({TokenType.OPEN_TAG})

    def check(self, tokens: Sequence[Token], index: int) -> List[Violation]:
        token = tokens[index]
        if token.text.lower() != "<?php":
            return [self.violation(token, "Short open tag found, use <?php")]
        return []
