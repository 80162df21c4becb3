"""
Console Report

Human-readable output, one block per file with violations and a summary
at the end.
"""

import sys
from typing import Optional, TextIO

from flitch.file.source_file import SourceFile, printable
from flitch.report.base import Report


class ConsoleReport(Report):
    """Writes violations to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.files_checked = 0
        self.files_with_violations = 0
        self.errors = 0
        self.warnings = 0
        self._closed = False

    def _write(self, text: str = "") -> None:
        self.stream.write(printable(text) + "\n")

    def add_file(self, file: SourceFile) -> None:
        self.files_checked += 1
        if not file.has_violations:
            return

        self.files_with_violations += 1
        self.errors += len(file.errors)
        self.warnings += len(file.warnings)
        self._write(f"{file.path}:")
        for v in file.violations:
            loc = f"{v.line}:{v.column}"
            self._write(f"  {loc:<8} {v.severity.value:<8} {v.message} ({v.rule_id})")
        self._write()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        self._write(
            f"Checked {self.files_checked} file(s): {self.errors + self.warnings} violation(s) "
            f"in {self.files_with_violations} file(s) "
            f"({self.errors} error(s), {self.warnings} warning(s))"
        )
        self.stream.flush()
