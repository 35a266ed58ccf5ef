"""
Projectify - Code Records and Run Models
========================================

Defines the Pydantic v2 models shared across the code-record pipeline:

  Parse     : ParsedRecord
  Collection: Code, CodeCollection
  Validate  : DiagnosticKind, Diagnostic, ValidationReport
  Execute   : ExecutorConfig, CodeRunError, RunResult

Convention
----------
- Indexed attribute groups (``label1..9``, ``fincode1..9``, ``driver1..9``,
  ``row1..200``) are stored as fixed-size tuples and addressed 1-based
  through accessor methods.
- A :class:`Code` is frozen once built; validation and execution only read it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from openpyxl.utils import column_index_from_string
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# ============================================================
# Attribute vocabulary
# ============================================================

INDEXED_GROUP_SIZE = 9
ROW_SLOT_COUNT = 200

# DSL attribute name -> Code field name
SCALAR_ATTRIBUTES: Dict[str, str] = {
    "timeseries": "timeseries",
    "sections": "sections",
    "beginningmonth": "beginning_month",
    "financialsdriver": "financials_driver",
    "labelrow": "label_row",
    "columnlabels": "column_labels",
    "driver": "driver",
    "assumptions": "assumptions",
}

# DSL indexed prefix -> (Code field name, slot count)
INDEXED_ATTRIBUTES: Dict[str, Tuple[str, int]] = {
    "label": ("labels", INDEXED_GROUP_SIZE),
    "fincode": ("fincodes", INDEXED_GROUP_SIZE),
    "driver": ("drivers", INDEXED_GROUP_SIZE),
    "row": ("rows", ROW_SLOT_COUNT),
}

DELETE_MARKER = "Delete"
ROW_FIELD_SEPARATOR = "|"


def _pad_slots(value: Any, size: int) -> Tuple[str, ...]:
    """Normalise an indexed group to exactly *size* string slots."""
    if value is None:
        return ("",) * size
    if isinstance(value, dict):
        # {1: "a", 3: "c"} style (1-based)
        slots = [""] * size
        for idx, item in value.items():
            i = int(idx)
            if not 1 <= i <= size:
                raise ValueError(f"Slot index {i} out of range 1..{size}")
            slots[i - 1] = "" if item is None else str(item)
        return tuple(slots)
    items = ["" if v is None else str(v) for v in value]
    if len(items) > size:
        raise ValueError(f"Expected at most {size} slots, got {len(items)}")
    return tuple(items + [""] * (size - len(items)))


# ============================================================
# 1.  ParsedRecord  (parser output)
# ============================================================


class ParsedRecord(BaseModel):
    """One record as produced by the tokenizer, before a key is assigned.

    Attributes:
        base_type:  Type token as written (e.g. ``"UNITREV-VR"``).
        attributes: Lower-cased DSL name -> value.  The ``Delete`` marker is
                    stored under ``"delete"`` with value ``True``.
        raw_text:   Bracketed source text of the record.
    """

    base_type: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    raw_text: str = ""

    def get(self, name: str, default: str = "") -> Any:
        return self.attributes.get(name.lower(), default)

    def to_record_text(self) -> str:
        """Re-render the record in canonical ``<type; name="value">`` form."""
        parts = [self.base_type]
        for name, value in self.attributes.items():
            if name == "delete":
                if value:
                    parts.append(DELETE_MARKER)
                continue
            parts.append(f'{name}="{value}"')
        return "<" + "; ".join(parts) + ">"


# ============================================================
# 2.  Code  (one parsed record with its collection key)
# ============================================================


class Code(BaseModel):
    """A single code record held in a :class:`CodeCollection`.

    Attributes:
        key:               Unique collection key (base type + optional suffix).
        base_type:         Type token as written; may repeat across records.
        raw_text:          Original bracketed source text.
        timeseries:        Periodicity of the model (e.g. ``"Monthly"``).
        sections:          Free-form section list.
        beginning_month:   First model month (e.g. ``"Jan 2025"``).
        financials_driver: Driver feeding the financial statements.
        label_row:         Label row spec.
        column_labels:     Column label spec.
        driver:            Value injected into the copied block's driver cell.
        assumptions:       Comma-separated values written down the
                           assumptions column of the copied block.
        delete_flag:       True when the bare ``Delete`` marker is present.
        labels:            ``label1..9``.
        fincodes:          ``fincode1..9``.
        drivers:           ``driver1..9`` (row identifier references).
        rows:              ``row1..200`` pipe-delimited sub-records.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    base_type: str
    raw_text: str = ""

    timeseries: str = ""
    sections: str = ""
    beginning_month: str = ""
    financials_driver: str = ""
    label_row: str = ""
    column_labels: str = ""
    driver: str = ""
    assumptions: str = ""
    delete_flag: bool = False

    labels: Tuple[str, ...] = Field(default=("",) * INDEXED_GROUP_SIZE)
    fincodes: Tuple[str, ...] = Field(default=("",) * INDEXED_GROUP_SIZE)
    drivers: Tuple[str, ...] = Field(default=("",) * INDEXED_GROUP_SIZE)
    rows: Tuple[str, ...] = Field(default=("",) * ROW_SLOT_COUNT)

    # -- validators ----------------------------------------------------------

    @field_validator("labels", "fincodes", "drivers", mode="before")
    @classmethod
    def _pad_group(cls, v: Any) -> Tuple[str, ...]:
        return _pad_slots(v, INDEXED_GROUP_SIZE)

    @field_validator("rows", mode="before")
    @classmethod
    def _pad_rows(cls, v: Any) -> Tuple[str, ...]:
        return _pad_slots(v, ROW_SLOT_COUNT)

    # -- construction --------------------------------------------------------

    @classmethod
    def from_parsed(cls, key: str, record: ParsedRecord) -> "Code":
        """Build a Code from a parser record under the given collection key."""
        data: Dict[str, Any] = {
            "key": key,
            "base_type": record.base_type,
            "raw_text": record.raw_text,
            "delete_flag": bool(record.attributes.get("delete", False)),
        }
        for dsl_name, field_name in SCALAR_ATTRIBUTES.items():
            value = record.attributes.get(dsl_name)
            if value:
                data[field_name] = value

        groups: Dict[str, Dict[int, str]] = {}
        for prefix, (field_name, size) in INDEXED_ATTRIBUTES.items():
            for i in range(1, size + 1):
                value = record.attributes.get(f"{prefix}{i}")
                if value:
                    groups.setdefault(field_name, {})[i] = value
        data.update(groups)
        return cls(**data)

    # -- accessors -----------------------------------------------------------

    @staticmethod
    def _slot(values: Tuple[str, ...], index: int) -> str:
        if not 1 <= index <= len(values):
            raise IndexError(f"Slot {index} out of range 1..{len(values)}")
        return values[index - 1]

    def label(self, index: int) -> str:
        return self._slot(self.labels, index)

    def fincode(self, index: int) -> str:
        return self._slot(self.fincodes, index)

    def driver_at(self, index: int) -> str:
        return self._slot(self.drivers, index)

    def row(self, index: int) -> str:
        return self._slot(self.rows, index)

    def populated_rows(self) -> Iterator[Tuple[int, str]]:
        """Yield ``(index, value)`` for every non-empty row slot."""
        for i, value in enumerate(self.rows, start=1):
            if value:
                yield i, value

    def row_identifiers(self) -> List[str]:
        """First pipe field of each populated row, blank identifiers skipped."""
        ids: List[str] = []
        for _, value in self.populated_rows():
            row_id = value.split(ROW_FIELD_SEPARATOR)[0].strip()
            if row_id:
                ids.append(row_id)
        return ids

    def driver_references(self) -> List[str]:
        return [d.strip() for d in self.drivers if d.strip()]

    def assumption_values(self) -> List[str]:
        """``assumptions`` split on commas with each element trimmed."""
        if not self.assumptions:
            return []
        return [a.strip() for a in self.assumptions.split(",")]

    def attribute_items(self) -> List[Tuple[str, Any]]:
        """Non-empty attributes in DSL naming, for text export."""
        items: List[Tuple[str, Any]] = []
        for dsl_name, field_name in SCALAR_ATTRIBUTES.items():
            value = getattr(self, field_name)
            if value:
                items.append((dsl_name, value))
        if self.delete_flag:
            items.append((DELETE_MARKER, True))
        for prefix, (field_name, _) in INDEXED_ATTRIBUTES.items():
            for i, value in enumerate(getattr(self, field_name), start=1):
                if value:
                    items.append((f"{prefix}{i}", value))
        return items


# ============================================================
# 3.  CodeCollection  (ordered key -> Code)
# ============================================================


class CodeCollection(BaseModel):
    """Ordered, key-unique collection of :class:`Code` entries.

    Iteration order always equals insertion order.
    """

    codes: Dict[str, Code] = Field(default_factory=dict)

    # -- helpers -------------------------------------------------------------

    def next_key(self, base_type: str) -> str:
        """Return the bare base type, or ``base_type + N`` for the smallest
        unused ``N >= 1`` when the bare key is taken."""
        if base_type not in self.codes:
            return base_type
        counter = 1
        while f"{base_type}{counter}" in self.codes:
            counter += 1
        return f"{base_type}{counter}"

    def add(self, record: ParsedRecord) -> Code:
        """Assign a unique key to *record* and append it."""
        key = self.next_key(record.base_type)
        code = Code.from_parsed(key, record)
        self.codes[key] = code
        return code

    def keys(self) -> List[str]:
        return list(self.codes.keys())

    def values(self) -> List[Code]:
        return list(self.codes.values())

    def items(self) -> List[Tuple[str, Code]]:
        return list(self.codes.items())

    def base_types(self) -> List[str]:
        return [c.base_type for c in self.codes.values()]

    def __getitem__(self, key: str) -> Code:
        return self.codes[key]

    def __contains__(self, key: object) -> bool:
        return key in self.codes

    def __len__(self) -> int:
        return len(self.codes)


# ============================================================
# 4.  Diagnostics  (validator output)
# ============================================================


class DiagnosticKind(str, Enum):
    """Category of a validation diagnostic."""

    MALFORMED_RECORD = "MalformedRecord"
    FORMAT_ERROR = "FormatError"
    UNKNOWN_CODE_TYPE = "UnknownCodeType"
    MISSING_TAB_LABEL = "MissingTabLabel"
    DUPLICATE_LABEL = "DuplicateLabel"
    LABEL_TOO_LONG = "LabelTooLong"
    ILLEGAL_LABEL_CHARS = "IllegalLabelChars"
    MISSING_PAIRED_SUFFIX = "MissingPairedSuffix"
    DANGLING_DRIVER_REFERENCE = "DanglingDriverReference"
    NO_RECORDS = "NoRecords"


class Diagnostic(BaseModel):
    """A single validation finding."""

    kind: DiagnosticKind
    message: str
    record: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class ValidationReport(BaseModel):
    """All diagnostics gathered over one validation run."""

    diagnostics: List[Diagnostic] = Field(default_factory=list)
    record_count: int = 0

    def add(self, kind: DiagnosticKind, message: str, record: Optional[str] = None) -> None:
        self.diagnostics.append(Diagnostic(kind=kind, message=message, record=record))

    @property
    def passed(self) -> bool:
        return not self.diagnostics

    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def to_report_text(self) -> str:
        """Multi-line human-readable validation report."""
        status = "PASSED" if self.passed else "FAILED"
        lines = [
            f"=== Code Validation: {status} ===",
            f"  Records     : {self.record_count}",
            f"  Diagnostics : {len(self.diagnostics)}",
        ]
        for d in self.diagnostics:
            lines.append(f"    - [{d.kind.value}] {d.message}")
        return "\n".join(lines)


# ============================================================
# 5.  ExecutorConfig  (template layout)
# ============================================================


def _coerce_column(value: Any) -> Any:
    """Accept ``"D"`` style column letters as well as 1-based integers."""
    if isinstance(value, str) and value.strip().isalpha():
        return column_index_from_string(value.strip().upper())
    return value


class ExecutorConfig(BaseModel):
    """Layout of the master template the executor copies from.

    Attributes:
        template_sheet:      Sheet duplicated for every TAB and scanned for
                             tagged blocks.
        data_start_row:      First template row holding sample block content;
                             cleared on every freshly duplicated target.
        tag_column:          Column holding the base type tag of each row.
        last_column:         Right-most column copied with a block.
        driver_column:       Column receiving the ``driver`` value.
        assumptions_column:  Column receiving the ``assumptions`` values.
        fallback_tab_prefix: Prefix for TAB names synthesised from position.
    """

    template_sheet: str = Field(default="Codes", min_length=1)
    data_start_row: int = Field(default=9, ge=1)
    tag_column: int = Field(default=4, ge=1, description="Default: column D")
    last_column: int = Field(default=102, ge=1, description="Default: column CX")
    driver_column: int = Field(default=4, ge=1, description="Default: column D")
    assumptions_column: int = Field(default=5, ge=1, description="Default: column E")
    fallback_tab_prefix: str = "Tab_"

    @field_validator(
        "tag_column", "last_column", "driver_column", "assumptions_column",
        mode="before",
    )
    @classmethod
    def _letters_to_index(cls, v: Any) -> Any:
        return _coerce_column(v)

    @model_validator(mode="after")
    def _columns_within_block(self) -> "ExecutorConfig":
        for name in ("tag_column", "driver_column", "assumptions_column"):
            if getattr(self, name) > self.last_column:
                raise ValueError(f"{name} lies beyond last_column={self.last_column}")
        return self


# ============================================================
# 6.  RunResult  (executor output)
# ============================================================


class CodeRunError(BaseModel):
    """A failure recorded while executing one code."""

    index: int = Field(..., ge=0, description="Position of the code in the run.")
    code_type: str
    error: str
    kind: str = "DocumentOperationError"


class RunResult(BaseModel):
    """Outcome of executing a collection against a document.

    Attributes:
        processed_count: Non-TAB codes whose block was copied successfully.
        created_targets: One entry per TAB processed (not deduplicated).
        errors:          Per-code failures; the run continued past each.
    """

    processed_count: int = 0
    created_targets: List[str] = Field(default_factory=list)
    errors: List[CodeRunError] = Field(default_factory=list)

    def add_error(self, index: int, code_type: str, error: str, kind: str) -> None:
        self.errors.append(
            CodeRunError(index=index, code_type=code_type, error=error, kind=kind)
        )

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def to_report_text(self) -> str:
        lines = [
            f"Processed {self.processed_count} codes",
            f"Created tabs: {', '.join(self.created_targets)}",
        ]
        if self.errors:
            lines.append("Errors:")
            for e in self.errors:
                lines.append(f"  - #{e.index} {e.code_type or 'Unknown'}: {e.error}")
        else:
            lines.append("No errors encountered")
        return "\n".join(lines)
