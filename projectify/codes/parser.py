"""Tokenizer/parser for bracketed code records.

Grammar::

    record   := "<" baseType (";" attr)* ">"
    attr     := name "=" ws* '"' value '"'  |  "Delete"

The parser is permissive on purpose.  Upstream text is generated by a
language model and routinely carries prose, stray quotes, and half-written
records around the codes; anything that cannot be read is dropped rather
than raised.  Pass a :class:`ParseLog` to see what was dropped.

Usage::

    from projectify.codes.parser import parse_records

    records = parse_records('<TAB; label1="Revenue"> some chatter <BR>')
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..config.models import (
    DELETE_MARKER,
    INDEXED_ATTRIBUTES,
    SCALAR_ATTRIBUTES,
    ParsedRecord,
)

logger = logging.getLogger(__name__)

# A bare attribute name followed by "=", not glued to a longer word.
_ATTR_NAME_RE = re.compile(r"(?<![A-Za-z0-9])([A-Za-z]+)(\d*)\s*=")


@dataclass
class ParseSkip:
    """Something the parser dropped instead of raising."""

    reason: str
    fragment: str
    record: str = ""


@dataclass
class ParseLog:
    """Opt-in collector of :class:`ParseSkip` notes."""

    skips: List[ParseSkip] = field(default_factory=list)

    def note(self, reason: str, fragment: str, record: str = "") -> None:
        self.skips.append(ParseSkip(reason=reason, fragment=fragment, record=record))

    def reasons(self) -> List[str]:
        return [s.reason for s in self.skips]

    def __len__(self) -> int:
        return len(self.skips)


# ===================================================================
# Public API
# ===================================================================

def extract_record_strings(text: str, log: Optional[ParseLog] = None) -> List[str]:
    """Return every ``<...>`` span in *text*, in order, brackets included.

    Text between and around spans is discarded.  An opening ``<`` with no
    closing ``>`` after it ends the scan.
    """
    spans: List[str] = []
    pos = 0
    while True:
        start = text.find("<", pos)
        if start == -1:
            _note_stray(text[pos:], log)
            break
        end = text.find(">", start)
        if end == -1:
            _note_stray(text[pos:start], log)
            if log is not None:
                log.note("unterminated record", text[start:])
            break
        _note_stray(text[pos:start], log)
        spans.append(text[start:end + 1])
        pos = end + 1

    cleaned = "".join(spans)
    return [frag + ">" for frag in cleaned.split(">") if frag.strip()]


def parse_record(record: str, log: Optional[ParseLog] = None) -> ParsedRecord:
    """Decompose one ``<type; name="value"; ...>`` record.

    Never raises; unreadable fragments are skipped.
    """
    body = record.strip()
    if body.endswith(">"):
        body = body[:-1]
    if body.startswith("<"):
        body = body[1:]

    parts = body.split(";")
    base_type = parts[0].strip()
    attributes: Dict[str, Any] = {}

    for fragment in parts[1:]:
        if DELETE_MARKER in fragment:
            attributes["delete"] = True

        parsed = _parse_fragment(fragment, record, log)
        if parsed is not None:
            name, value = parsed
            attributes[name] = value

    return ParsedRecord(base_type=base_type, attributes=attributes, raw_text=record.strip())


def parse_records(text: str, log: Optional[ParseLog] = None) -> List[ParsedRecord]:
    """Extract and parse every record found in *text*.

    Records with a blank base type (``<>``, ``< ; label1="x">``) are dropped.
    """
    records: List[ParsedRecord] = []
    for raw in extract_record_strings(text, log):
        record = parse_record(raw, log)
        if not record.base_type:
            if log is not None:
                log.note("empty base type", record.raw_text, record.raw_text)
            continue
        records.append(record)
    logger.debug("Parsed %d code records", len(records))
    if log is not None and len(log):
        logger.debug("Parser dropped %d fragments", len(log))
    return records


# ===================================================================
# Internal helpers
# ===================================================================

def _canonical_name(letters: str, digits: str) -> Optional[str]:
    """Map a matched ``name`` + ``index`` onto the attribute vocabulary."""
    name = letters.lower()
    if not digits:
        return name if name in SCALAR_ATTRIBUTES else None
    spec = INDEXED_ATTRIBUTES.get(name)
    if spec is None:
        return None
    index = int(digits)
    if not 1 <= index <= spec[1]:
        return None
    return f"{name}{index}"


def _parse_fragment(
    fragment: str, record: str, log: Optional[ParseLog]
) -> Optional[Tuple[str, str]]:
    matches = list(_ATTR_NAME_RE.finditer(fragment))
    if not matches:
        stripped = fragment.strip()
        if stripped and DELETE_MARKER not in stripped and log is not None:
            log.note("unrecognised fragment", stripped, record)
        return None

    # first name in the vocabulary wins; unknown names before it are skipped
    match, name = None, None
    for candidate in matches:
        name = _canonical_name(candidate.group(1), candidate.group(2))
        if name is not None:
            match = candidate
            break
    if match is None:
        if log is not None:
            log.note("unknown attribute", fragment.strip(), record)
        return None

    open_quote = fragment.find('"', match.end())
    if open_quote == -1:
        if log is not None:
            log.note("missing opening quote", fragment.strip(), record)
        return None
    close_quote = fragment.find('"', open_quote + 1)
    if close_quote == -1:
        if log is not None:
            log.note("unterminated value", fragment.strip(), record)
        return None

    return name, fragment[open_quote + 1:close_quote]


def _note_stray(text: str, log: Optional[ParseLog]) -> None:
    if log is not None and text.strip():
        log.note("text outside record", text.strip())
