"""
File Validation Service

Bounds the cost of processing an uploaded workflow export before any
platform-specific parsing runs:
- file size ceiling and file name safety
- JSON well-formedness and top-level shape
- depth-limited count of node-like entries
"""
from typing import Any, Dict, Optional
import json
import logging
import re

from app.core.config import settings
from app.core.exceptions import (
    FileTooLarge,
    InvalidStructure,
    MalformedInput,
    NodeLimitExceeded,
    StructureTooDeep,
    UnsafeFileName,
    UnsupportedFileType,
)

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"application/json"}
ALLOWED_EXTENSIONS = (".json",)

DANGEROUS_NAME_PATTERNS = [
    re.compile(r"\.\."),  # directory traversal
    re.compile(r'[<>:"|?*]'),
    re.compile(r"[/\\]"),
    re.compile(r"^\."),  # hidden files
]

# Keys that mark an object as a workflow step in Make.com / Zapier exports
NODE_MARKER_KEYS = ("type", "action", "module")


def _format_size(num_bytes: int) -> str:
    return f"{num_bytes / 1024 / 1024:g}MB"


def is_safe_file_name(file_name: str) -> bool:
    if not file_name:
        return False
    return not any(pattern.search(file_name) for pattern in DANGEROUS_NAME_PATTERNS)


def validate_file(
    file_name: str,
    size: int,
    content_type: Optional[str] = None,
    max_file_size: Optional[int] = None,
) -> None:
    """
    Check upload metadata before the content is read.

    Args:
        file_name: Name the client supplied for the file
        size: Declared or actual byte size
        content_type: MIME type reported by the client, if any
        max_file_size: Override for settings.MAX_FILE_SIZE

    Raises:
        UnsupportedFileType: Neither a JSON content type nor a .json extension
        FileTooLarge: Size exceeds the ceiling
        UnsafeFileName: Name contains traversal sequences or disallowed characters
    """
    limit = max_file_size if max_file_size is not None else settings.MAX_FILE_SIZE

    has_valid_type = (content_type or "").split(";")[0].strip().lower() in ALLOWED_CONTENT_TYPES
    has_valid_extension = (file_name or "").lower().endswith(ALLOWED_EXTENSIONS)
    if not has_valid_type and not has_valid_extension:
        raise UnsupportedFileType("Please upload a valid JSON file")

    if size > limit:
        raise FileTooLarge(f"File size must be less than {_format_size(limit)}")

    if not is_safe_file_name(file_name):
        raise UnsafeFileName("Invalid file name")


def count_nodes_securely(value: Any, depth: int = 0, max_depth: Optional[int] = None) -> int:
    """
    Count node-like entries in a parsed JSON value without unbounded recursion.

    An object holding a ``nodes`` array (n8n layout) contributes the array
    length; its ``nodes`` and ``connections`` are not descended, its other
    members are. Any other object contributes the counts of its nested
    containers, plus one if it carries a step marker key (type, action or
    module).

    Raises:
        StructureTooDeep: Nesting exceeds max_depth
    """
    limit = max_depth if max_depth is not None else settings.MAX_TRAVERSAL_DEPTH
    if depth > limit:
        raise StructureTooDeep("JSON structure too deep")

    if isinstance(value, list):
        return sum(
            count_nodes_securely(item, depth + 1, limit)
            for item in value
            if isinstance(item, (dict, list))
        )

    if not isinstance(value, dict):
        return 0

    nodes = value.get("nodes")
    if isinstance(nodes, list):
        # n8n layout: nodes counted by length, connections are edges only
        return len(nodes) + sum(
            count_nodes_securely(child, depth + 1, limit)
            for key, child in value.items()
            if key not in ("nodes", "connections") and isinstance(child, (dict, list))
        )

    count = sum(
        count_nodes_securely(child, depth + 1, limit)
        for child in value.values()
        if isinstance(child, (dict, list))
    )

    if any(value.get(key) for key in NODE_MARKER_KEYS):
        count += 1

    return count


def validate_json_content(
    raw_text: str,
    max_file_size: Optional[int] = None,
    max_node_count: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Parse and sanity-check workflow JSON.

    Returns:
        The parsed top-level object

    Raises:
        FileTooLarge: Content exceeds the size ceiling
        MalformedInput: Content is not valid JSON
        InvalidStructure: Top-level value is not an object
        StructureTooDeep: Nesting exceeds the traversal depth limit
        NodeLimitExceeded: More node-like entries than allowed
    """
    size_limit = max_file_size if max_file_size is not None else settings.MAX_FILE_SIZE
    node_limit = max_node_count if max_node_count is not None else settings.MAX_NODE_COUNT

    if len(raw_text.encode("utf-8")) > size_limit:
        raise FileTooLarge("JSON content is too large")

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise MalformedInput(f"Invalid JSON format: {e.msg} at line {e.lineno}, column {e.colno}")
    except RecursionError:
        raise StructureTooDeep("JSON structure too deep")

    if not isinstance(parsed, dict):
        raise InvalidStructure("Invalid workflow structure")

    node_count = count_nodes_securely(parsed)
    logger.debug(f"Counted {node_count} node-like entries")
    if node_count > node_limit:
        raise NodeLimitExceeded(f"Workflow exceeds maximum node limit of {node_limit}")

    return parsed


def sanitize_file_name(file_name: str) -> str:
    """Replace anything outside [A-Za-z0-9._-] and collapse dot runs; max 255 chars."""
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", file_name)
    cleaned = re.sub(r"\.{2,}", "_", cleaned)
    return cleaned[:255]
