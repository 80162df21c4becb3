"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from flitch.file.source_file import Severity
from flitch.file.tokenizer import tokenize_source
from flitch.rules import RuleManager
from flitch.standard.definition import RuleConfig, Standard


# =============================================================================
# HELPERS
# =============================================================================

def token_types(source):
    """Token types of source, in order."""
    return [t.type for t in tokenize_source(source)]


def run_rule(rule_id, source, severity=Severity.ERROR, **options):
    """Check source against a standard holding a single rule."""
    standard = Standard(
        name="test",
        rules=(RuleConfig(rule_id=rule_id, severity=severity, options=options),),
    )
    manager = RuleManager()
    rule_set = manager.prepare(standard)
    assert not rule_set.errors, rule_set.errors
    return manager.check_source("test.php", source, rule_set).violations


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def standards_dir(tmp_path):
    """Empty directory for standard definition files."""
    path = tmp_path / "standards"
    path.mkdir()
    return path


@pytest.fixture
def write_standard(standards_dir):
    """Write a YAML standard definition and return its path."""
    def _write(name, text, directory=None):
        path = (directory or standards_dir) / f"{name}.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def manager():
    """Rule manager backed by the default registry."""
    return RuleManager()
