"""
Source File Model

A SourceFile owns the token sequence of one analyzed input and the
violations accumulated for it by a single rule pass.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple


def printable(text: str) -> str:
    """
    Text safe to write out as UTF-8.

    Source decoded with surrogateescape carries undecodable bytes as lone
    surrogates; they are rendered as backslash escapes (\\xe9).
    """
    if text.isascii():
        return text
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


class Severity(Enum):
    """Violation severity levels."""
    ERROR = "error"
    WARNING = "warning"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Accept a Severity or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = "|".join(s.value for s in cls)
            raise ValueError(f"severity must be one of {choices}, got {value!r}") from None


@dataclass(frozen=True)
class Violation:
    """One reported instance of a rule firing at a source position."""
    line: int
    column: int
    rule_id: str
    severity: Severity
    message: str
    file: str = ""

    def __str__(self):
        loc = f"{self.file}:{self.line}:{self.column}"
        return f"{loc}: {self.severity.value}: {self.message} ({self.rule_id})"


@dataclass
class SourceFile:
    """An analyzed input: path, decoded source, tokens and violations."""
    path: str
    source: str
    tokens: Tuple[Any, ...]
    violations: List[Violation] = field(default_factory=list)

    @property
    def errors(self) -> List[Violation]:
        return [v for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Violation]:
        return [v for v in self.violations if v.severity == Severity.WARNING]

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)
