"""Build a keyed :class:`CodeCollection` from parsed records."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..config.models import CodeCollection, ParsedRecord
from .parser import ParseLog, parse_records

logger = logging.getLogger(__name__)


def build_collection(records: Iterable[ParsedRecord]) -> CodeCollection:
    """Insert *records* in order, giving repeated base types a numeric suffix.

    ``<SUB-EV ...><SUB-EV ...>`` becomes keys ``SUB-EV`` and ``SUB-EV1``.
    """
    collection = CodeCollection()
    for record in records:
        code = collection.add(record)
        if code.key != record.base_type:
            logger.debug(f"Duplicate base type {record.base_type!r} stored as {code.key!r}")
    logger.info(f"Built code collection with {len(collection)} codes")
    return collection


def populate_code_collection(text: str, log: Optional[ParseLog] = None) -> CodeCollection:
    """Parse raw *text* and build its collection in one step."""
    return build_collection(parse_records(text, log))


def export_collection_text(collection: CodeCollection) -> str:
    """Render *collection* as a readable text listing of non-empty attributes."""
    lines = ["Code Collection", "===============", ""]
    for key, code in collection.items():
        lines.append(f"Code: {key}")
        lines.append("-------------------")
        lines.append(f"type: {code.base_type}")
        for name, value in code.attribute_items():
            lines.append(f"{name}: {value}")
        lines.append("")
    return "\n".join(lines)
