"""Master template builder.

Generates a workbook holding the ``Codes`` worksheet that the executor
both duplicates (one copy per TAB) and copies tagged blocks from:

  Rows 1-8 : sheet header (title, period header row)
  Rows 9+  : sample blocks, one per code type, tagged in column D

Each block row carries its code type in the tag column; the executor
locates a block by scanning that column for the first and last match.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..config.models import ExecutorConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Style constants
# ---------------------------------------------------------------------------
YELLOW_FILL = PatternFill(patternType="solid", fgColor="FFFFF2CC")
HEADER_FILL = PatternFill(patternType="solid", fgColor="FF4472C4")
SECTION_FILL = PatternFill(patternType="solid", fgColor="FFF2F2F2")

TITLE_FONT = Font(name="Calibri", size=14, bold=True, color="FFFFFFFF")
HEADER_FONT = Font(name="Calibri", size=11, bold=True, color="FFFFFFFF")
SECTION_FONT = Font(name="Calibri", size=11, bold=True, color="FF4472C4")
LABEL_FONT = Font(name="Calibri", size=10)
FORMULA_FONT = Font(name="Calibri", size=10, color="FF1F4E79")

THIN_BORDER = Border(bottom=Side(style="thin", color="FFB4C6E7"))

NUMBER_FMT = '#,##0'

PERIOD_LABELS = ["M1", "M2", "M3", "M4", "M5", "M6"]
FIRST_PERIOD_COL = 6  # column F

# code type -> rows of (row id, label, kind); kind is section, input, calc or break
DEFAULT_BLOCKS: Dict[str, List[Sequence[str]]] = {
    "SUB-EV": [
        ("", "Units", "section"),
        ("AS", "# of units sold", "input"),
    ],
    "UNITREV-VR": [
        ("", "Revenue", "section"),
        ("LRA", "Unit revenue", "calc"),
    ],
    "UNITEXP-VR": [
        ("", "Expenses", "section"),
        ("LX", "Unit cost", "calc"),
    ],
    "BR": [
        ("", "", "break"),
    ],
}


def build_master_template(
    blocks: Optional[Dict[str, List[Sequence[str]]]] = None,
    config: Optional[ExecutorConfig] = None,
) -> Workbook:
    """Build an in-memory workbook with a single master template sheet."""
    cfg = config or ExecutorConfig()
    blocks = DEFAULT_BLOCKS if blocks is None else blocks

    wb = Workbook()
    ws = wb.active
    ws.title = cfg.template_sheet

    _write_header(ws, cfg)

    row = cfg.data_start_row
    for code_type, block_rows in blocks.items():
        for row_id, label, kind in block_rows:
            _write_block_row(ws, row, code_type, row_id, label, kind, cfg)
            row += 1

    logger.info(f"Built master template with {len(blocks)} blocks ({row - cfg.data_start_row} rows)")
    return wb


def save_master_template(path: str, config: Optional[ExecutorConfig] = None) -> str:
    """Write the default master template to *path* and return the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    wb = build_master_template(config=config)
    wb.save(str(out))
    wb.close()
    logger.info(f"Master template saved to {out}")
    return str(out)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_header(ws, cfg: ExecutorConfig) -> None:
    ws["A1"] = "Model calculations"
    ws["A1"].font = TITLE_FONT
    ws["A1"].fill = HEADER_FILL

    header_row = max(1, cfg.data_start_row - 2)
    headers: Dict[int, Any] = {1: "ID", 2: "Label", cfg.tag_column: "Code"}
    if cfg.assumptions_column not in headers:
        headers[cfg.assumptions_column] = "Assumption"
    for i, period in enumerate(PERIOD_LABELS):
        headers[FIRST_PERIOD_COL + i] = period
    for col, value in headers.items():
        cell = ws.cell(row=header_row, column=col, value=value)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

    ws.column_dimensions["B"].width = 28
    ws.column_dimensions[get_column_letter(cfg.tag_column)].width = 14


def _write_block_row(
    ws, row: int, code_type: str, row_id: str, label: str, kind: str, cfg: ExecutorConfig
) -> None:
    ws.cell(row=row, column=cfg.tag_column, value=code_type)
    if kind == "break":
        return

    if row_id:
        ws.cell(row=row, column=1, value=row_id)
    label_cell = ws.cell(row=row, column=2, value=label)

    if kind == "section":
        label_cell.font = SECTION_FONT
        label_cell.fill = SECTION_FILL
        return

    label_cell.font = LABEL_FONT
    assumption = get_column_letter(cfg.assumptions_column)
    for i in range(len(PERIOD_LABELS)):
        cell = ws.cell(row=row, column=FIRST_PERIOD_COL + i)
        if kind == "input":
            cell.value = 0
            cell.fill = YELLOW_FILL
        else:
            cell.value = f"=${assumption}{row}"
            cell.font = FORMULA_FONT
        cell.number_format = NUMBER_FMT
        cell.border = THIN_BORDER
