"""Multi-pass validation of raw code record strings.

Checks:
1. Record structure, row identifiers, and suffix buckets (global pass)
2. Suffix pairing across the whole run
3. Known code type, TAB label rules, row field count (per record)
4. Every ``driverN`` resolves to a row identifier defined somewhere
"""
import logging
import re
from typing import Dict, Iterable, List, Set, Union

from ..config.models import DiagnosticKind, ValidationReport

logger = logging.getLogger(__name__)

BREAK_RECORD = "<BR>"
TAB_TYPE = "TAB"
MAX_TAB_LABEL_LENGTH = 30
ILLEGAL_LABEL_CHARS = set('&,":;')

SUFFIXES = ("-VV", "-VR", "-RR", "-RV", "-EV", "-ER")

# requester suffixes -> any of these companions must exist somewhere in the run
PAIRING_RULES = [
    (("-VV", "-VR"), ("-EV", "-RV")),
    (("-RR", "-RV"), ("-ER", "-VR")),
]

_ROW_RE = re.compile(r'(?<![A-Za-z])row\d+\s*=\s*"([^"]*)"', re.IGNORECASE)
_DRIVER_RE = re.compile(r'(?<![A-Za-z])driver\d+\s*=\s*"([^"]*)"', re.IGNORECASE)
# label1 and Label1 are both in circulation
_TAB_LABEL_RE = re.compile(r'(?<![A-Za-z])[Ll]abel1(?!\d)\s*=\s*"([^"]*)"')
_RECORD_RE = re.compile(r"<[^>]+>")
_LINE_NOISE_RE = re.compile(r"^'|',$|,$|^\"|\"$")


def extract_base_type(record: str) -> str:
    """Text after ``<`` up to the first ``;`` or ``>``, trimmed."""
    body = record.strip()
    if body.startswith("<"):
        body = body[1:]
    return re.split(r"[;>]", body, maxsplit=1)[0].strip()


class CodeValidator:
    """Validates raw code record strings against a set of known code types."""

    def __init__(self, reference_types: Iterable[str]):
        self.reference_types: Set[str] = set(reference_types)

    def run(self, records: List[str]) -> ValidationReport:
        """Run every pass over *records* and return all diagnostics.

        Never stops at the first problem and never raises for a malformed
        record.
        """
        report = ValidationReport(record_count=len(records))
        candidates = self._check_structure(records, report)

        row_ids = self._collect_row_identifiers(candidates)
        buckets = self._bucket_suffixes(candidates)
        self._check_pairing(buckets, report)

        tab_labels: Set[str] = set()
        for record in candidates:
            self._check_record(record, tab_labels, report)

        self._check_driver_references(candidates, row_ids, report)

        if report.passed:
            logger.info(f"Validation passed for {len(records)} records")
        else:
            logger.info(
                f"Validation found {len(report.diagnostics)} problems in {len(records)} records"
            )
        return report

    # -- pass 1 --------------------------------------------------------------

    def _check_structure(self, records: List[str], report: ValidationReport) -> List[str]:
        """Flag malformed brackets; return the records later passes look at."""
        candidates = []
        for raw in records:
            record = raw.strip()
            if not (record.startswith("<") and record.endswith(">")):
                report.add(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Invalid code string format: {raw}",
                    raw,
                )
                continue
            if record == BREAK_RECORD:
                continue
            candidates.append(record)
        return candidates

    def _collect_row_identifiers(self, records: List[str]) -> Set[str]:
        row_ids: Set[str] = set()
        for record in records:
            for value in _ROW_RE.findall(record):
                row_id = value.split("|")[0].strip()
                if row_id:
                    row_ids.add(row_id)
        return row_ids

    def _bucket_suffixes(self, records: List[str]) -> Dict[str, List[str]]:
        """Distinct code types per suffix, in first-seen order."""
        buckets: Dict[str, List[str]] = {s: [] for s in SUFFIXES}
        for record in records:
            code_type = extract_base_type(record)
            for suffix in SUFFIXES:
                if code_type.endswith(suffix) and code_type not in buckets[suffix]:
                    buckets[suffix].append(code_type)
        return buckets

    def _check_pairing(self, buckets: Dict[str, List[str]], report: ValidationReport) -> None:
        for requesters, companions in PAIRING_RULES:
            if any(buckets[s] for s in companions):
                continue
            wanted = " or ".join(companions)
            for suffix in requesters:
                for code_type in buckets[suffix]:
                    report.add(
                        DiagnosticKind.MISSING_PAIRED_SUFFIX,
                        f"Code {code_type} requires another code with suffix {wanted}. "
                        f"Add a code with a matching suffix or switch to the "
                        f"{'/'.join(companions)} version of this code.",
                        code_type,
                    )

    # -- pass 2 --------------------------------------------------------------

    def _check_record(
        self, record: str, tab_labels: Set[str], report: ValidationReport
    ) -> None:
        code_type = extract_base_type(record)

        if code_type not in self.reference_types:
            report.add(
                DiagnosticKind.UNKNOWN_CODE_TYPE,
                f'Invalid code type: "{code_type}" not found in valid codes list',
                record,
            )

        if code_type == TAB_TYPE:
            self._check_tab_label(record, tab_labels, report)

        for value in _ROW_RE.findall(record):
            if len(value.split("|")) < 2:
                report.add(
                    DiagnosticKind.FORMAT_ERROR,
                    f'Invalid row format (missing required fields): "{value}"',
                    record,
                )

    def _check_tab_label(
        self, record: str, tab_labels: Set[str], report: ValidationReport
    ) -> None:
        match = _TAB_LABEL_RE.search(record)
        if match is None:
            report.add(
                DiagnosticKind.MISSING_TAB_LABEL, "TAB code missing label parameter", record
            )
            return

        label = match.group(1)
        if len(label) > MAX_TAB_LABEL_LENGTH:
            report.add(
                DiagnosticKind.LABEL_TOO_LONG,
                f'Tab label too long (max {MAX_TAB_LABEL_LENGTH} chars): "{label}"',
                record,
            )
        if any(ch in ILLEGAL_LABEL_CHARS for ch in label):
            report.add(
                DiagnosticKind.ILLEGAL_LABEL_CHARS,
                f'Tab label contains illegal characters (&,":;): "{label}"',
                record,
            )
        if label in tab_labels:
            report.add(
                DiagnosticKind.DUPLICATE_LABEL, f'Duplicate tab label: "{label}"', record
            )
        tab_labels.add(label)

    # -- pass 3 --------------------------------------------------------------

    def _check_driver_references(
        self, records: List[str], row_ids: Set[str], report: ValidationReport
    ) -> None:
        for record in records:
            for value in _DRIVER_RE.findall(record):
                driver = value.strip()
                if driver not in row_ids:
                    report.add(
                        DiagnosticKind.DANGLING_DRIVER_REFERENCE,
                        f'Driver value "{driver}" not found in any row',
                        record,
                    )


# ===================================================================
# Module-level entry points
# ===================================================================

def validate(records: List[str], reference_types: Iterable[str]) -> List[str]:
    """Validate raw record strings; an empty list means the run is valid."""
    return CodeValidator(reference_types).run(records).messages()


def clean_input_lines(text: Union[str, Iterable[str]]) -> List[str]:
    """Extract ``<...>`` records from noisy pasted lines.

    Lines are trimmed and stripped of wrapping quotes and trailing commas
    (the shape of a pasted list literal) before records are extracted.
    """
    lines = text.splitlines() if isinstance(text, str) else list(text)
    cleaned = [_LINE_NOISE_RE.sub("", line.strip()) for line in lines if line.strip()]
    return _RECORD_RE.findall(" ".join(cleaned))


def validate_text_report(
    text: Union[str, Iterable[str]], reference_types: Iterable[str]
) -> ValidationReport:
    records = clean_input_lines(text)
    if not records:
        logger.error("Validation run with no code strings - input is empty")
        report = ValidationReport()
        report.add(DiagnosticKind.NO_RECORDS, "No code strings found to validate")
        return report
    return CodeValidator(reference_types).run(records)


def validate_text(
    text: Union[str, Iterable[str]], reference_types: Iterable[str]
) -> List[str]:
    """Validate free text (or a list of lines) containing code records."""
    return validate_text_report(text, reference_types).messages()
