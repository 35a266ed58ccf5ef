"""Exception types raised by the code-record pipeline.

Validation problems are reported as diagnostics, not exceptions.  These
classes cover the failures the executor records per code and the loader
failures surfaced to callers.
"""


class ProjectifyError(Exception):
    """Base class for all pipeline errors."""

    kind = "ProjectifyError"


class ReferenceLoadError(ProjectifyError):
    """Raised when the valid code types list cannot be read."""

    kind = "ReferenceLoadError"


class MissingTargetContext(ProjectifyError):
    """Raised when a non-TAB code runs before any TAB created a target."""

    kind = "MissingTargetContext"

    def __init__(self, code_type: str):
        super().__init__(
            f"Code {code_type} has no destination tab; add a TAB code before it"
        )
        self.code_type = code_type


class DocumentOperationError(ProjectifyError):
    """Raised when a document mutation cannot be carried out."""

    kind = "DocumentOperationError"


class TemplateBlockNotFoundError(DocumentOperationError):
    """Raised when no rows in the master template carry a code's tag."""

    def __init__(self, code_type: str, sheet: str):
        super().__init__(f"Code type {code_type} not found in {sheet} worksheet")
        self.code_type = code_type
        self.sheet = sheet


class ContainerNotFoundError(DocumentOperationError):
    """Raised when a named sheet does not exist in the workbook."""

    def __init__(self, name: str):
        super().__init__(f"Worksheet '{name}' not found")
        self.name = name
