"""Loader for the list of valid code types (one base type per line)."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Union

from .errors import ReferenceLoadError

logger = logging.getLogger(__name__)


def parse_reference_text(text: Union[str, Iterable[str]]) -> FrozenSet[str]:
    """Return the set of stripped, non-blank lines in *text*."""
    lines = text.splitlines() if isinstance(text, str) else text
    return frozenset(line.strip() for line in lines if line and line.strip())


def load_reference_types(path: Union[str, Path]) -> FrozenSet[str]:
    """Read the valid code types file at *path*.

    Raises:
        ReferenceLoadError: if the file cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ReferenceLoadError(f"Error reading code types file {path}: {e}") from e

    types = parse_reference_text(text)
    logger.info("Loaded %d valid code types from %s", len(types), path)
    return types
