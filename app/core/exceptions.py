"""
Workflow ingestion errors.

Every error is recoverable at single-file granularity: the batch ingestion
step reports it against the offending file and moves on to the next one.
"""


class WorkflowIngestionError(Exception):
    """Base error for an uploaded file that cannot be priced."""
    kind = "ingestion_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedInput(WorkflowIngestionError):
    """Content is not valid JSON."""
    kind = "malformed_input"


class InvalidStructure(WorkflowIngestionError):
    """Valid JSON, but not a workflow-shaped object."""
    kind = "invalid_structure"


class FileTooLarge(WorkflowIngestionError):
    kind = "file_too_large"


class UnsafeFileName(WorkflowIngestionError):
    kind = "unsafe_file_name"


class UnsupportedFileType(WorkflowIngestionError):
    kind = "unsupported_file_type"


class StructureTooDeep(WorkflowIngestionError):
    kind = "structure_too_deep"


class NodeLimitExceeded(WorkflowIngestionError):
    kind = "node_limit_exceeded"


class UnknownPlatform(WorkflowIngestionError):
    """Parsed fine, but matches none of the supported export formats."""
    kind = "unknown_platform"
