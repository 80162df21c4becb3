"""
Flitch Errors

Exception hierarchy shared by the tokenizer, resolver and rule manager.

Only StandardNotFound (and malformed configuration) stops a run. The
others are recorded, logged and turned into diagnostics so that as much
as possible is reported in one pass.
"""

from typing import Optional


class FlitchError(Exception):
    """Base class for all Flitch errors."""


class ConfigError(FlitchError):
    """Tool configuration file could not be used."""


class StandardNotFound(FlitchError):
    """Requested standard has no built-in definition."""

    def __init__(self, name: str, available: Optional[list] = None):
        self.name = name
        self.available = list(available or [])
        message = f"Standard '{name}' not found"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class StandardFormatError(FlitchError):
    """A standard definition has the wrong shape."""

    def __init__(self, message: str, source: str = "<memory>"):
        self.source = source
        super().__init__(f"{source}: {message}")


class UnknownRule(FlitchError):
    """A configured rule id has no registered implementation."""

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Unknown rule '{rule_id}'")


class RuleConfigError(FlitchError):
    """A rule rejected its configured options."""

    def __init__(self, rule_id: str, message: str):
        self.rule_id = rule_id
        super().__init__(f"Invalid options for rule '{rule_id}': {message}")


class RuleExecutionError(FlitchError):
    """A rule failed while checking a token."""

    def __init__(self, rule_id: str, line: int, column: int, cause: BaseException):
        self.rule_id = rule_id
        self.line = line
        self.column = column
        self.cause = cause
        super().__init__(
            f"Rule execution error in '{rule_id}': {type(cause).__name__}: {cause}"
        )
