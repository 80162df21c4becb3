"""
Checkstyle Report

Machine-readable XML in the format understood by CI tools that consume
checkstyle reports:

    <checkstyle version="...">
      <file name="src/Foo.php">
        <error line="3" column="1" severity="warning"
               message="Trailing whitespace" source="flitch.trailing-whitespace"/>
      </file>
    </checkstyle>

The document is written when the report is closed.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Union

from flitch.version import __version__
from flitch.file.source_file import SourceFile, printable
from flitch.report.base import Report

SOURCE_PREFIX = "flitch."


class CheckstyleReport(Report):
    """Collects files and writes a checkstyle XML document on close()."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.root = ET.Element("checkstyle", version=__version__)
        self._closed = False

    def add_file(self, file: SourceFile) -> None:
        element = ET.SubElement(self.root, "file", name=printable(file.path))
        for v in file.violations:
            ET.SubElement(
                element,
                "error",
                line=str(v.line),
                column=str(v.column),
                severity=v.severity.value,
                message=printable(v.message),
                source=SOURCE_PREFIX + v.rule_id,
            )

    def to_string(self) -> str:
        return ET.tostring(self.root, encoding="unicode")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tree = ET.ElementTree(self.root)
        ET.indent(tree)
        tree.write(self.path, encoding="utf-8", xml_declaration=True)
