"""Shared fixtures for the Projectify test suite.

Provides the valid code types list, sample code record texts that mirror
real model input, and an in-memory master template workbook.
"""

import pytest

from projectify.config.models import ExecutorConfig
from projectify.excel.document import WorkbookDocument
from projectify.excel.template import build_master_template


# ---------------------------------------------------------------------------
# Code types
# ---------------------------------------------------------------------------

VALID_CODE_TYPES = [
    "MODEL",
    "TAB",
    "BR",
    "SUB-EV",
    "UNITREV-VR",
    "UNITEXP-VR",
    "REV-VV",
    "HEAD-RV",
    "COST-RR",
    "COST-ER",
]


@pytest.fixture
def reference_types():
    """Return the set of valid base types."""
    return set(VALID_CODE_TYPES)


@pytest.fixture
def codes_file(tmp_path):
    """Write the valid code types list to disk (one per line, with blanks)."""
    path = tmp_path / "Codes.txt"
    path.write_text("\n".join(VALID_CODE_TYPES) + "\n\n", encoding="utf-8")
    return str(path)


# ---------------------------------------------------------------------------
# Code record texts
# ---------------------------------------------------------------------------

SCENARIO_A = (
    '<TAB; label1="Revenue">'
    '<SUB-EV; row1="AS1|Units|100|">'
    '<UNITREV-VR; driver1="AS1"; row1="|Rev|"; row2="LRA1|Grapefruits|F|">'
)

SCENARIO_B = '<TAB; label1="X"><UNITREV-VR; driver1="AS1"; row1="|Rev|">'

MODEL_TEXT = """<MODEL; beginningmonth="Jan 2025"; timeseries="Monthly">
<TAB; label1="Working Capital">
<BR>
<SUB-EV; row1 = "AS1|# of Grapefruits Sold|||||100|500|500|500|500|500|";>
<UNITREV-VR; driver1="AS1"; row1 = "|Revenue|||||||||||"; row2 = "LRA1|Grapefruits|||||F|F|F|F|F|F|";>
<UNITEXP-VR; driver1="AS1"; row1 = "|Expenses|||||||||||"; row2 = "LX1|COGS|||||10|10|10|10|10|10|">
<TAB; label1="Tab 2">
<BR>
<SUB-EV; row1 = "AS1|# of Grapefruits Sold|||||100|500|500|500|500|500|";>
<UNITREV-VR; driver1="AS1"; row1 = "|Revenue|||||||||||"; row2 = "LRA1|Grapefruits|||||F|F|F|F|F|F|";>
<UNITEXP-VR; driver1="AS1"; row1 = "|Expenses|||||||||||"; row2 = "LX1|COGS|||||10|10|10|10|10|10|">
"""


@pytest.fixture
def scenario_a_text():
    return SCENARIO_A


@pytest.fixture
def scenario_b_text():
    return SCENARIO_B


@pytest.fixture
def model_text():
    """Two tabs of grapefruit revenue/expense codes, as produced upstream."""
    return MODEL_TEXT


# ---------------------------------------------------------------------------
# Workbook fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def executor_config():
    """Return the default template layout (Codes sheet, data from row 9, tags in D)."""
    return ExecutorConfig()


@pytest.fixture
def master_wb():
    """Return an in-memory master template workbook.

    Layout of the "Codes" sheet:

        Row 1 : title
        Row 7 : column headers
        Row 9-10 : SUB-EV      (section, input row "AS")
        Row 11-12: UNITREV-VR  (section, calc row "LRA", F12="=$E12")
        Row 13-14: UNITEXP-VR  (section, calc row "LX")
        Row 15   : BR          (tag only)
    """
    return build_master_template()


@pytest.fixture
def document(master_wb):
    """Return a WorkbookDocument over the master template (no output path)."""
    return WorkbookDocument(master_wb)


@pytest.fixture
def master_template_path(tmp_path, master_wb):
    """Save the master template to disk and return its path as a string."""
    path = tmp_path / "master.xlsx"
    master_wb.save(str(path))
    return str(path)
