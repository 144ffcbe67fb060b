"""Exception types raised by the c14 pipeline."""


class C14PipelineError(Exception):
    """Base class for pipeline errors."""


class PolicyError(C14PipelineError, ValueError):
    """Raised when a duplicate resolution policy is invalid."""


class SchemaError(C14PipelineError, ValueError):
    """Raised when a date list lacks a required column."""

    def __init__(self, message: str, column: str = None):
        super().__init__(message)
        self.column = column
