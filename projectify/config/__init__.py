"""Data models and settings for the code-record pipeline."""

from .models import (
    Code,
    CodeCollection,
    CodeRunError,
    Diagnostic,
    DiagnosticKind,
    ExecutorConfig,
    ParsedRecord,
    RunResult,
    ValidationReport,
)
from .settings import AppSettings, load_settings

__all__ = [
    "AppSettings",
    "Code",
    "CodeCollection",
    "CodeRunError",
    "Diagnostic",
    "DiagnosticKind",
    "ExecutorConfig",
    "ParsedRecord",
    "RunResult",
    "ValidationReport",
    "load_settings",
]
