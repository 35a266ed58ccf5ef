"""Code record parsing, collection building and validation.

Public API
----------
.. autofunction:: parse_records
.. autofunction:: build_collection
.. autofunction:: validate
"""
from .collection import build_collection, export_collection_text, populate_code_collection
from .errors import (
    ContainerNotFoundError,
    DocumentOperationError,
    MissingTargetContext,
    ProjectifyError,
    ReferenceLoadError,
    TemplateBlockNotFoundError,
)
from .parser import ParseLog, ParseSkip, extract_record_strings, parse_record, parse_records
from .reference import load_reference_types, parse_reference_text
from .validator import CodeValidator, validate, validate_text

__all__ = [
    "CodeValidator",
    "ContainerNotFoundError",
    "DocumentOperationError",
    "MissingTargetContext",
    "ParseLog",
    "ParseSkip",
    "ProjectifyError",
    "ReferenceLoadError",
    "TemplateBlockNotFoundError",
    "build_collection",
    "export_collection_text",
    "extract_record_strings",
    "load_reference_types",
    "parse_record",
    "parse_records",
    "parse_reference_text",
    "populate_code_collection",
    "validate",
    "validate_text",
]
