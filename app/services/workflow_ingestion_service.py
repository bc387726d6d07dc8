"""
Workflow Ingestion Service

Turns uploaded automation exports into priced workflow records:
- platform detection (Make.com, Zapier, n8n)
- per-platform node extraction
- Zapier zap extraction, deferred until the user picks which zaps to migrate
- batch processing where one bad file never blocks its siblings
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from uuid import uuid4
import logging

from app.core.config import settings
from app.core.exceptions import (
    InvalidStructure,
    MalformedInput,
    UnknownPlatform,
    WorkflowIngestionError,
)
from app.schemas.workflow import (
    BatchAnalysis,
    FileAnalysisOutcome,
    FileOutcomeStatus,
    Node,
    PendingZapierFile,
    PendingZapierWorkflow,
    Platform,
    Workflow,
    ZapStatus,
)
from app.services.file_validation_service import sanitize_file_name, validate_file, validate_json_content

logger = logging.getLogger(__name__)


def _price_per_node(price_per_node: Optional[int]) -> int:
    return settings.PRICE_PER_NODE if price_per_node is None else price_per_node


def detect_platform(parsed: Any) -> Platform:
    """Classify a parsed export by its top-level shape"""
    if not isinstance(parsed, dict):
        return Platform.UNKNOWN
    if isinstance(parsed.get("flow"), list):
        return Platform.MAKE
    if isinstance(parsed.get("zaps"), list):
        return Platform.ZAPIER
    if isinstance(parsed.get("nodes"), list) and parsed.get("connections") is not None:
        return Platform.N8N
    return Platform.UNKNOWN


def _workflow_name(parsed: Dict[str, Any], file_name: str) -> str:
    name = parsed.get("name")
    return str(name) if name else file_name


def _make_step_name(step: Dict[str, Any]) -> str:
    metadata = step.get("metadata")
    designer = metadata.get("designer") if isinstance(metadata, dict) else None
    designer_name = designer.get("name") if isinstance(designer, dict) else None
    return str(step.get("name") or designer_name or step.get("module") or "Unknown")


def normalize_make_workflow(
    parsed: Dict[str, Any],
    file_name: str,
    price_per_node: Optional[int] = None,
) -> Workflow:
    """
    Collect Make.com modules depth-first, following router branches,
    error handlers and iterator bodies.

    A module id reachable through several branches is counted once. Steps
    without an id are skipped along with anything nested under them.
    """
    nodes: List[Node] = []
    seen_ids = set()

    def collect(step: Any) -> None:
        if not isinstance(step, dict):
            return
        step_id = step.get("id")
        if not step_id:
            return
        # ids are normally ints or strings; anything else is keyed by its repr
        key = step_id if isinstance(step_id, (str, int, float)) else repr(step_id)
        if key in seen_ids:
            return

        seen_ids.add(key)
        nodes.append(Node(name=_make_step_name(step), type=str(step.get("module") or "unknown")))

        routes = step.get("routes")
        if isinstance(routes, list):
            for route in routes:
                if isinstance(route, dict) and isinstance(route.get("flow"), list):
                    for child in route["flow"]:
                        collect(child)

        onerror = step.get("onerror")
        if isinstance(onerror, list):
            for child in onerror:
                collect(child)

        iterate = step.get("iterate")
        if isinstance(iterate, dict) and isinstance(iterate.get("flow"), list):
            for child in iterate["flow"]:
                collect(child)

    for step in parsed.get("flow") or []:
        collect(step)

    per_node = _price_per_node(price_per_node)
    logger.debug(f"Make.com export {file_name}: {len(nodes)} unique modules")
    return Workflow(
        file_name=file_name,
        workflow_name=_workflow_name(parsed, file_name),
        total_nodes=len(nodes),
        total_price=len(nodes) * per_node,
        nodes=nodes,
        platform=Platform.MAKE,
    )


def normalize_n8n_workflow(
    parsed: Dict[str, Any],
    file_name: str,
    price_per_node: Optional[int] = None,
) -> Workflow:
    """n8n exports are already a flat node list"""
    nodes = []
    for node in parsed.get("nodes") or []:
        node = node if isinstance(node, dict) else {}
        nodes.append(Node(
            name=str(node.get("name") or "Unknown"),
            type=str(node.get("type") or "unknown"),
        ))

    per_node = _price_per_node(price_per_node)
    return Workflow(
        file_name=file_name,
        workflow_name=_workflow_name(parsed, file_name),
        total_nodes=len(nodes),
        total_price=len(nodes) * per_node,
        nodes=nodes,
        platform=Platform.N8N,
    )


def _generate_zap_id() -> str:
    return uuid4().hex[:9]


def extract_pending_zapier_workflows(
    parsed: Dict[str, Any],
    file_name: str,
    price_per_node: Optional[int] = None,
) -> PendingZapierFile:
    """
    Summarize every zap in a Zapier export without aggregating any of them.

    The node count of a zap is the number of entries in its ``nodes``
    mapping; nested steps are not inspected.
    """
    zaps = parsed.get("zaps")
    if not isinstance(zaps, list):
        raise InvalidStructure(f"{file_name} has no zaps list")

    per_node = _price_per_node(price_per_node)
    workflows = []
    for index, zap in enumerate(zaps):
        if not isinstance(zap, dict):
            raise InvalidStructure(f"Zap #{index + 1} in {file_name} is not an object")

        zap_nodes = zap.get("nodes")
        node_count = len(zap_nodes) if isinstance(zap_nodes, (dict, list)) else 0
        raw_id = zap.get("id")
        status = ZapStatus.ON if str(zap.get("status") or "").lower() == ZapStatus.ON.value else ZapStatus.OFF

        workflows.append(PendingZapierWorkflow(
            id=str(raw_id) if raw_id else _generate_zap_id(),
            title=str(zap.get("title") or f"Zap {raw_id or 'Unknown'}"),
            status=status,
            node_count=node_count,
            price=node_count * per_node,
            file_name=file_name,
        ))

    logger.debug(f"Zapier export {file_name}: {len(workflows)} zaps pending selection")
    return PendingZapierFile(file_name=file_name, workflows=workflows)


def confirm_zapier_selection(selected: Iterable[PendingZapierWorkflow]) -> List[Workflow]:
    """
    Turn the zaps the user kept into billable workflows.

    Per-node detail is not carried through the selection step, so the
    resulting workflows have an empty node list.
    """
    return [
        Workflow(
            file_name=zap.file_name,
            workflow_name=zap.title,
            total_nodes=zap.node_count,
            total_price=zap.price,
            nodes=[],
            platform=Platform.ZAPIER,
        )
        for zap in selected
    ]


def _decode(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise MalformedInput("File is not UTF-8 encoded text")


def analyze_file(
    file_name: str,
    content: Union[bytes, str],
    content_type: Optional[str] = None,
    price_per_node: Optional[int] = None,
) -> Tuple[FileAnalysisOutcome, List[Workflow], Optional[PendingZapierFile]]:
    """
    Validate, detect and normalize a single uploaded file.

    Never raises for bad input: every ingestion error is folded into the
    returned outcome so the caller can carry on with the rest of the batch.

    Returns:
        (outcome, workflows ready to aggregate, pending Zapier file or None)
    """
    size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)

    try:
        validate_file(file_name, size, content_type)
        parsed = validate_json_content(_decode(content))
        platform = detect_platform(parsed)

        if platform == Platform.MAKE:
            workflow = normalize_make_workflow(parsed, file_name, price_per_node)
            return _accepted(file_name, platform, 1), [workflow], None

        if platform == Platform.N8N:
            workflow = normalize_n8n_workflow(parsed, file_name, price_per_node)
            return _accepted(file_name, platform, 1), [workflow], None

        if platform == Platform.ZAPIER:
            pending = extract_pending_zapier_workflows(parsed, file_name, price_per_node)
            if not pending.workflows:
                logger.warning(f"Zapier export {file_name} contains no zaps")
                outcome = FileAnalysisOutcome(
                    file_name=file_name,
                    status=FileOutcomeStatus.WARNING,
                    platform=platform,
                    message=f"{file_name} contains no zaps",
                )
                return outcome, [], None

            outcome = FileAnalysisOutcome(
                file_name=file_name,
                status=FileOutcomeStatus.PENDING_SELECTION,
                platform=platform,
                workflow_count=len(pending.workflows),
            )
            return outcome, [], pending

        raise UnknownPlatform(f"Could not identify the platform for {file_name}")

    except UnknownPlatform as e:
        logger.warning(f"Unknown workflow format for {file_name}")
        outcome = FileAnalysisOutcome(
            file_name=file_name,
            status=FileOutcomeStatus.WARNING,
            platform=Platform.UNKNOWN,
            error_kind=e.kind,
            message=e.message,
        )
        return outcome, [], None

    except WorkflowIngestionError as e:
        # rejected names are never stored, only echoed back and logged
        safe_name = sanitize_file_name(file_name)
        logger.warning(f"Rejected {safe_name}: {e.kind} - {e.message}")
        outcome = FileAnalysisOutcome(
            file_name=safe_name,
            status=FileOutcomeStatus.REJECTED,
            error_kind=e.kind,
            message=e.message,
        )
        return outcome, [], None


def _accepted(file_name: str, platform: Platform, workflow_count: int) -> FileAnalysisOutcome:
    return FileAnalysisOutcome(
        file_name=file_name,
        status=FileOutcomeStatus.ACCEPTED,
        platform=platform,
        workflow_count=workflow_count,
    )


def analyze_batch(
    files: Iterable[Tuple[str, Union[bytes, str], Optional[str]]],
    price_per_node: Optional[int] = None,
) -> BatchAnalysis:
    """
    Analyze every (file_name, content, content_type) in an upload batch.

    Files are independent: each contributes its own outcome, and only the
    ones that normalized cleanly contribute workflows or pending zaps.
    """
    batch = BatchAnalysis()
    for file_name, content, content_type in files:
        outcome, workflows, pending = analyze_file(file_name, content, content_type, price_per_node)
        batch.outcomes.append(outcome)
        batch.workflows.extend(workflows)
        if pending is not None:
            batch.pending_zapier_files.append(pending)

    logger.info(f"Successfully processed {batch.processed_count} of {len(batch.outcomes)} files")
    return batch
