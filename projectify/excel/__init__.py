"""Workbook side of the pipeline: document capability, executor, template."""

from .document import DocumentCapability, WorkbookDocument
from .executor import CodeExecutor, RunState, execute
from .template import build_master_template, save_master_template

__all__ = [
    "CodeExecutor",
    "DocumentCapability",
    "RunState",
    "WorkbookDocument",
    "build_master_template",
    "execute",
    "save_master_template",
]
