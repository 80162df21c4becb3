"""
flitch.report - Report sinks for analyzed files.
"""

from flitch.report.base import Report
from flitch.report.checkstyle import CheckstyleReport
from flitch.report.console import ConsoleReport

__all__ = ["Report", "CheckstyleReport", "ConsoleReport"]
