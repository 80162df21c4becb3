"""
Standard Loader

Sources of standard definitions. The resolver only needs get(name);
where definitions physically live is up to the source.

- DirectoryStandardSource: one YAML file per standard (<name>.yaml / .yml)
- MappingStandardSource: definitions held in memory
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from flitch.errors import StandardFormatError
from flitch.standard.definition import StandardDefinition, parse_definition

logger = logging.getLogger(__name__)

# Standard names double as file names
_RX_STANDARD_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

STANDARD_SUFFIXES = (".yaml", ".yml")


def is_valid_standard_name(name: str) -> bool:
    return bool(_RX_STANDARD_NAME.match(name or "")) and ".." not in name


class StandardSource:
    """Base class for standard definition sources."""

    def get(self, name: str) -> Optional[StandardDefinition]:
        """Definition for name, or None if this source has none."""
        raise NotImplementedError

    def names(self) -> List[str]:
        """Names of all standards this source defines."""
        raise NotImplementedError


class MappingStandardSource(StandardSource):
    """In-memory source built from raw mappings or parsed definitions."""

    def __init__(self, definitions: Optional[Mapping[str, Any]] = None):
        self._definitions: Dict[str, StandardDefinition] = {}
        for name, data in (definitions or {}).items():
            if isinstance(data, StandardDefinition):
                self._definitions[name] = data
            else:
                self._definitions[name] = parse_definition(data, name=name, origin=f"<{name}>")

    def get(self, name: str) -> Optional[StandardDefinition]:
        return self._definitions.get(name)

    def names(self) -> List[str]:
        return sorted(self._definitions)


class DirectoryStandardSource(StandardSource):
    """
    Directory holding one YAML file per standard.

    A missing directory is an empty source, so an absent user-level
    override directory is not an error.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._cache: Dict[str, Optional[StandardDefinition]] = {}

    def _find_file(self, name: str) -> Optional[Path]:
        if not is_valid_standard_name(name):
            return None
        for suffix in STANDARD_SUFFIXES:
            candidate = self.path / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def get(self, name: str) -> Optional[StandardDefinition]:
        if name not in self._cache:
            file_path = self._find_file(name)
            self._cache[name] = load_definition_file(file_path, name) if file_path else None
        return self._cache[name]

    def names(self) -> List[str]:
        if not self.path.is_dir():
            return []
        found = {
            p.stem for p in self.path.iterdir()
            if p.is_file() and p.suffix in STANDARD_SUFFIXES and is_valid_standard_name(p.stem)
        }
        return sorted(found)


def load_definition_file(path: Union[str, Path], name: Optional[str] = None) -> StandardDefinition:
    """
    Load a standard definition from a YAML file.

    Raises:
        StandardFormatError: If the file is not valid YAML or has the wrong shape.
    """
    path = Path(path)
    logger.debug(f"Loading standard definition {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise StandardFormatError(f"invalid YAML: {e}", str(path)) from e
    except OSError as e:
        raise StandardFormatError(f"cannot read file: {e}", str(path)) from e

    definition = parse_definition(data, name=name or path.stem, origin=str(path))
    if name is not None and definition.name != name:
        logger.warning(
            f"{path}: declares name '{definition.name}', using file name '{name}'"
        )
        definition = StandardDefinition(
            name=name,
            rules=definition.rules,
            extends=definition.extends,
            origin=definition.origin,
        )
    return definition
