"""
File Discovery

Expands command line paths into the files to analyze: files are taken as
given, directories are walked recursively for matching extensions.
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


def should_exclude_path(path: Path, exclude_dirs: Sequence[str]) -> bool:
    return any(part in exclude_dirs for part in path.parts)


def has_extension(path: Path, extensions: Sequence[str]) -> bool:
    """Case-insensitive extension match."""
    return path.suffix.lower() in extensions


def iter_directory(root: Path, extensions: Sequence[str], exclude_dirs: Sequence[str] = ()) -> Iterator[Path]:
    """Matching files under root, sorted for a stable order."""
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if should_exclude_path(path.relative_to(root), exclude_dirs):
            continue
        if has_extension(path, extensions):
            yield path


def discover_files(
    paths: Iterable[Union[str, Path]],
    extensions: Sequence[str] = (".php",),
    exclude_dirs: Sequence[str] = (),
) -> Iterator[Tuple[Path, bool]]:
    """
    Yield (path, readable) for every candidate file.

    Missing or unreadable command line paths are yielded with readable=False
    so the caller can report them; directories are walked recursively.
    """
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            yield from ((p, True) for p in iter_directory(path, extensions, exclude_dirs))
        elif path.is_file():
            yield path, True
        else:
            logger.debug(f"Skipping missing path {path}")
            yield path, False
