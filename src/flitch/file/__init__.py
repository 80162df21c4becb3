"""
flitch.file - Source files and the PHP tokenizer.
"""

from flitch.file.discovery import discover_files
from flitch.file.source_file import Severity, SourceFile, Violation
from flitch.file.tokenizer import (
    KEYWORDS,
    Lexer,
    Token,
    TokenType,
    decode_source,
    tokenize,
    tokenize_file,
    tokenize_source,
)

__all__ = [
    "discover_files",
    "Severity",
    "SourceFile",
    "Violation",
    "KEYWORDS",
    "Lexer",
    "Token",
    "TokenType",
    "decode_source",
    "tokenize",
    "tokenize_file",
    "tokenize_source",
]
