"""
Report Base

Reports receive fully analyzed files and render them. Nothing is
rendered before add_file(); close() flushes whatever the report buffers.
"""

from flitch.file.source_file import SourceFile


class Report:
    """Base class for report sinks."""

    def add_file(self, file: SourceFile) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Flush buffered output. Safe to call more than once."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
