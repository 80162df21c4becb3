"""
flitch - Coding Standard Checker for PHP

Tokenizes PHP source, resolves a named coding standard (built-in
definitions merged with user overrides) and runs its rules over the
tokens in a single pass per file.

    from flitch import RuleManager, StandardResolver, tokenize

    standard = StandardResolver(user_dir="~/.flitch/standards").resolve("ZF2")
    manager = RuleManager()
    rule_set = manager.prepare(standard)
    file = tokenize("Foo.php", content)
    manager.check(file, rule_set)
"""

from flitch.version import __version__

from flitch.errors import (
    FlitchError,
    RuleConfigError,
    RuleExecutionError,
    StandardFormatError,
    StandardNotFound,
    UnknownRule,
)
from flitch.file import Severity, SourceFile, Token, TokenType, Violation, tokenize
from flitch.rules import Rule, RuleManager, RuleRegistry, RuleSet, default_registry
from flitch.standard import RuleConfig, Standard, StandardResolver, resolve
