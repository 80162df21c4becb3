"""
PHP Tokenizer

Converts raw PHP source into an ordered, immutable sequence of tokens.
Handles: open/close tags, inline HTML, whitespace, newlines, comments,
variables, identifiers, keywords, numbers, strings, heredocs, casts,
operators and punctuation.

Whitespace, newlines and comments are kept as tokens so that style rules
can inspect them. Concatenating the text of every token reproduces the
input exactly. Malformed input never raises: the offending span becomes
an ERROR token and scanning continues.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Tuple, Union

from flitch.file.source_file import SourceFile


class TokenType(Enum):
    """Types of tokens in PHP source."""
    OPEN_TAG = auto()            # <?php, <?
    OPEN_TAG_WITH_ECHO = auto()  # <?=
    CLOSE_TAG = auto()           # ?>
    INLINE_HTML = auto()         # text outside of PHP tags
    WHITESPACE = auto()          # spaces and tabs
    NEWLINE = auto()             # \n, \r\n or \r
    COMMENT = auto()             # // ..., # ..., /* ... */
    DOC_COMMENT = auto()         # /** ... */
    VARIABLE = auto()            # $name
    IDENTIFIER = auto()          # foo, Bar, strlen
    KEYWORD = auto()             # class, function, return, true
    NUMBER = auto()              # 42, 0x1F, 1.5e3
    STRING = auto()              # 'single', "double", `backtick`
    HEREDOC = auto()             # <<<EOT ... EOT
    CAST = auto()                # (int), (string)
    OPERATOR = auto()            # + -> => :: === ...
    OPEN_PAREN = auto()          # (
    CLOSE_PAREN = auto()         # )
    OPEN_BRACE = auto()          # {
    CLOSE_BRACE = auto()         # }
    OPEN_BRACKET = auto()        # [
    CLOSE_BRACKET = auto()       # ]
    SEMICOLON = auto()           # ;
    COMMA = auto()               # ,
    ERROR = auto()               # span the lexer could not make sense of


TRIVIA_TYPES = frozenset({
    TokenType.WHITESPACE,
    TokenType.NEWLINE,
    TokenType.COMMENT,
    TokenType.DOC_COMMENT,
})


@dataclass(frozen=True)
class Token:
    """A single token. Line and column are 1-based, column counts characters."""
    type: TokenType
    text: str
    line: int
    column: int
    byte_offset: int

    @property
    def byte_length(self) -> int:
        return _byte_length(self.text)

    @property
    def end_offset(self) -> int:
        return self.byte_offset + self.byte_length

    @property
    def is_trivia(self) -> bool:
        return self.type in TRIVIA_TYPES

    def __repr__(self):
        return f"Token({self.type.name}, {self.text!r}, L{self.line}:{self.column})"


KEYWORDS = frozenset({
    "abstract", "and", "array", "as", "break", "callable", "case", "catch",
    "class", "clone", "const", "continue", "declare", "default", "die", "do",
    "echo", "else", "elseif", "empty", "enddeclare", "endfor", "endforeach",
    "endif", "endswitch", "endwhile", "eval", "exit", "extends", "final",
    "finally", "fn", "for", "foreach", "function", "global", "goto", "if",
    "implements", "include", "include_once", "instanceof", "insteadof",
    "interface", "isset", "list", "match", "namespace", "new", "or", "print",
    "private", "protected", "public", "readonly", "require", "require_once",
    "return", "static", "switch", "throw", "trait", "try", "unset", "use",
    "var", "while", "xor", "yield",
    # Constants that style rules treat like keywords
    "true", "false", "null",
})

# Operators, longest first so the alternation always takes the longest match
OPERATORS = (
    "<=>", "**=", "...", "<<=", ">>=", "===", "!==", "??=", "?->",
    "++", "--", "->", "=>", "::", "==", "!=", "<>", "<=", ">=", "&&", "||",
    "??", "+=", "-=", "*=", "/=", ".=", "%=", "&=", "|=", "^=", "<<", ">>",
    "**", "#[",
    "+", "-", "*", "/", "%", "=", "<", ">", "!", ".", "&", "|", "^", "~",
    "?", ":", "@", "\\", "$",
)

PUNCTUATION = {
    "(": TokenType.OPEN_PAREN,
    ")": TokenType.CLOSE_PAREN,
    "{": TokenType.OPEN_BRACE,
    "}": TokenType.CLOSE_BRACE,
    "[": TokenType.OPEN_BRACKET,
    "]": TokenType.CLOSE_BRACKET,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
}

# After these operators a keyword-looking name is a member name
_MEMBER_ACCESS = ("->", "?->")

_RX_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_RX_WHITESPACE = re.compile(r"[ \t\f\v]+")
_RX_NAME = re.compile(r"[A-Za-z_\x80-\U0010ffff][A-Za-z0-9_\x80-\U0010ffff]*")
_RX_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+"
    r"|0[bB][01_]+"
    r"|0[oO][0-7_]+"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?"
)
_RX_CAST = re.compile(
    r"\([ \t]*(?:int|integer|bool|boolean|float|double|real|string|array"
    r"|object|unset|binary)[ \t]*\)",
    re.IGNORECASE,
)
_RX_OPEN_TAG = re.compile(r"<\?(?:php(?=[ \t\r\n]|$)|=)?", re.IGNORECASE)
_RX_HEREDOC_START = re.compile(
    r"<<<[ \t]*(?P<quote>[\"']?)(?P<label>[A-Za-z_][A-Za-z0-9_]*)(?P=quote)(?=\r\n|\r|\n)"
)
_RX_LINE_COMMENT_END = re.compile(r"\r|\n|\?>")
_RX_OPERATOR = re.compile("|".join(re.escape(op) for op in OPERATORS))


def _byte_length(text: str) -> int:
    """Length of text in bytes once encoded back to UTF-8."""
    if text.isascii():
        return len(text)
    try:
        return len(text.encode("utf-8", "surrogateescape"))
    except UnicodeEncodeError:
        return len(text.encode("utf-8", "surrogatepass"))


def decode_source(content: Union[bytes, str]) -> str:
    """
    Decode raw file content.

    Undecodable bytes are kept as lone surrogates so that token byte
    lengths still add up to the original content.
    """
    if isinstance(content, str):
        return content
    return content.decode("utf-8", "surrogateescape")


class Lexer:
    """
    Tokenizer for PHP source.

    Scanning starts in code mode, so fragments without an open tag still
    produce code tokens. After a close tag the lexer switches to inline HTML
    until the next open tag.

    Usage:
        lexer = Lexer(source_text)
        tokens = list(lexer.tokenize())
    """

    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.pos = 0
        self.line = 1
        self.column = 1
        self.byte_offset = 0
        self.in_html = False
        self._last_significant: Optional[Token] = None

    def _peek(self, offset: int = 0) -> str:
        """Character at pos + offset, or '' past the end."""
        pos = self.pos + offset
        if pos >= self.length:
            return ""
        return self.source[pos]

    def _startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _emit(self, token_type: TokenType, end: int) -> Token:
        """Produce a token for source[pos:end] and advance past it."""
        text = self.source[self.pos:end]
        token = Token(token_type, text, self.line, self.column, self.byte_offset)

        breaks = list(_RX_LINE_BREAK.finditer(text))
        if breaks:
            self.line += len(breaks)
            self.column = len(text) - breaks[-1].end() + 1
        else:
            self.column += len(text)
        self.byte_offset += _byte_length(text)
        self.pos = end

        if not token.is_trivia:
            self._last_significant = token
        return token

    def _scan_quoted(self, quote: str) -> Optional[int]:
        """End position of a quoted string starting at pos, None if unterminated."""
        i = self.pos + 1
        while i < self.length:
            ch = self.source[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                return i + 1
            i += 1
        return None

    def _scan_heredoc(self, match) -> Optional[int]:
        """End position of a heredoc/nowdoc whose opener matched, None if unterminated."""
        label = re.escape(match.group("label"))
        closer = re.compile(r"(?:\r\n|\r|\n)[ \t]*" + label + r"(?![A-Za-z0-9_\x80-\U0010ffff])")
        found = closer.search(self.source, match.end())
        if found is None:
            return None
        return found.end()

    def _html_token(self) -> Optional[Token]:
        """Inline HTML up to the next open tag, switching back to code mode."""
        start = self.source.find("<?", self.pos)
        if start == -1:
            start = self.length
        self.in_html = False
        if start == self.pos:
            return None
        return self._emit(TokenType.INLINE_HTML, start)

    def _code_token(self) -> Token:
        """Scan one token in code mode."""
        source = self.source
        pos = self.pos
        ch = source[pos]

        if pos == 0 and ch == "\ufeff":
            return self._emit(TokenType.INLINE_HTML, 1)

        # Newline
        if ch == "\r" or ch == "\n":
            end = pos + 2 if source.startswith("\r\n", pos) else pos + 1
            return self._emit(TokenType.NEWLINE, end)

        # Whitespace
        match = _RX_WHITESPACE.match(source, pos)
        if match:
            return self._emit(TokenType.WHITESPACE, match.end())

        # Tags
        if ch == "<" and self._peek(1) == "?":
            match = _RX_OPEN_TAG.match(source, pos)
            text = match.group(0)
            if text == "<?=":
                return self._emit(TokenType.OPEN_TAG_WITH_ECHO, match.end())
            return self._emit(TokenType.OPEN_TAG, match.end())

        if ch == "?" and self._peek(1) == ">":
            self.in_html = True
            return self._emit(TokenType.CLOSE_TAG, pos + 2)

        # Comments
        if (ch == "#" and self._peek(1) != "[") or self._startswith("//"):
            match = _RX_LINE_COMMENT_END.search(source, pos)
            end = match.start() if match else self.length
            return self._emit(TokenType.COMMENT, end)

        if self._startswith("/*"):
            close = source.find("*/", pos + 2)
            if close == -1:
                return self._emit(TokenType.ERROR, self.length)
            is_doc = self._startswith("/**") and self._peek(3) in (" ", "\t", "\r", "\n")
            token_type = TokenType.DOC_COMMENT if is_doc else TokenType.COMMENT
            return self._emit(token_type, close + 2)

        # Variables
        if ch == "$":
            match = _RX_NAME.match(source, pos + 1)
            if match:
                return self._emit(TokenType.VARIABLE, match.end())

        # Names
        match = _RX_NAME.match(source, pos)
        if match:
            text = match.group(0)
            last = self._last_significant
            after_member_access = (
                last is not None
                and last.type == TokenType.OPERATOR
                and last.text in _MEMBER_ACCESS
            )
            if text.lower() in KEYWORDS and not after_member_access:
                return self._emit(TokenType.KEYWORD, match.end())
            return self._emit(TokenType.IDENTIFIER, match.end())

        # Numbers
        if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            match = _RX_NUMBER.match(source, pos)
            return self._emit(TokenType.NUMBER, match.end())

        # Strings
        if ch in ("'", '"', "`"):
            end = self._scan_quoted(ch)
            if end is None:
                return self._emit(TokenType.ERROR, self.length)
            return self._emit(TokenType.STRING, end)

        if self._startswith("<<<"):
            match = _RX_HEREDOC_START.match(source, pos)
            if match:
                end = self._scan_heredoc(match)
                if end is None:
                    return self._emit(TokenType.ERROR, self.length)
                return self._emit(TokenType.HEREDOC, end)

        # Casts and punctuation
        if ch == "(":
            match = _RX_CAST.match(source, pos)
            if match:
                return self._emit(TokenType.CAST, match.end())

        if ch in PUNCTUATION:
            return self._emit(PUNCTUATION[ch], pos + 1)

        match = _RX_OPERATOR.match(source, pos)
        if match:
            return self._emit(TokenType.OPERATOR, match.end())

        # Unknown character
        return self._emit(TokenType.ERROR, pos + 1)

    def tokenize(self) -> Iterator[Token]:
        """Generate tokens from the source in a single linear scan."""
        while self.pos < self.length:
            if self.in_html:
                token = self._html_token()
                if token is not None:
                    yield token
                continue
            yield self._code_token()


def tokenize_source(source: str) -> Tuple[Token, ...]:
    """Tokenize already decoded source text."""
    return tuple(Lexer(source).tokenize())


def tokenize(path: str, content: Union[bytes, str]) -> SourceFile:
    """
    Tokenize file content into a SourceFile with no violations yet.

    The path is carried only as metadata.
    """
    source = decode_source(content)
    return SourceFile(path=str(path), source=source, tokens=tokenize_source(source))


def tokenize_file(filepath: str) -> SourceFile:
    """Read a file from disk and tokenize it."""
    with open(filepath, "rb") as f:
        content = f.read()
    return tokenize(filepath, content)
