"""
Workflow Aggregation Service

Pure functions over an AggregationState. Nothing here holds state: every
mutation returns a new snapshot, and every summary is a fresh fold over the
snapshot's workflow list, so totals can never drift from the workflows they
describe.
"""
from typing import Dict, Iterable, List, Optional

from app.core.config import settings
from app.schemas.workflow import (
    AggregationState,
    AnalysisResults,
    AnalysisSummary,
    BILLABLE_PLATFORMS,
    CheckoutPayload,
    PendingZapierFile,
    PendingZapierWorkflow,
    Platform,
    Workflow,
)
from app.services.workflow_ingestion_service import confirm_zapier_selection

# Zero state, shared by a fresh session and by reset()
EMPTY_STATE = AggregationState()


def _price_per_node(price_per_node: Optional[int]) -> int:
    return settings.PRICE_PER_NODE if price_per_node is None else price_per_node


def add_workflows(state: AggregationState, workflows: Iterable[Workflow]) -> AggregationState:
    return AggregationState(
        workflows=[*state.workflows, *workflows],
        pending_zapier_files=state.pending_zapier_files,
    )


def add_pending_zapier_files(
    state: AggregationState,
    files: Iterable[PendingZapierFile],
) -> AggregationState:
    return AggregationState(
        workflows=state.workflows,
        pending_zapier_files=[*state.pending_zapier_files, *files],
    )


def remove_by_file_name(state: AggregationState, file_name: str) -> AggregationState:
    """Drop every workflow and pending Zapier file that came from file_name"""
    return AggregationState(
        workflows=[w for w in state.workflows if w.file_name != file_name],
        pending_zapier_files=[f for f in state.pending_zapier_files if f.file_name != file_name],
    )


def clear_platform(state: AggregationState, platform: Platform) -> AggregationState:
    """Drop one platform's aggregated workflows, leaving the rest untouched"""
    return AggregationState(
        workflows=[w for w in state.workflows if w.platform != platform],
        pending_zapier_files=state.pending_zapier_files,
    )


def apply_zapier_selection(
    state: AggregationState,
    selected: Iterable[PendingZapierWorkflow],
) -> AggregationState:
    """
    Replace the aggregated Zapier subset with the confirmed selection.

    Pending files stay in place so the user can edit the selection later.
    """
    return add_workflows(clear_platform(state, Platform.ZAPIER), confirm_zapier_selection(selected))


def reset() -> AggregationState:
    return EMPTY_STATE


def pending_zapier_workflows(state: AggregationState) -> List[PendingZapierWorkflow]:
    return [zap for pending_file in state.pending_zapier_files for zap in pending_file.workflows]


def group_by_platform(workflows: Iterable[Workflow]) -> Dict[str, List[Workflow]]:
    grouped: Dict[str, List[Workflow]] = {platform.value: [] for platform in BILLABLE_PLATFORMS}
    for workflow in workflows:
        grouped.setdefault(workflow.platform.value, []).append(workflow)
    return grouped


def compute_summary(
    workflows: Iterable[Workflow],
    price_per_node: Optional[int] = None,
) -> AnalysisSummary:
    workflows = list(workflows)
    counts = {platform.value: 0 for platform in BILLABLE_PLATFORMS}
    for workflow in workflows:
        counts[workflow.platform.value] = counts.get(workflow.platform.value, 0) + 1

    return AnalysisSummary(
        total_nodes=sum(w.total_nodes for w in workflows),
        total_price=sum(w.total_price for w in workflows),
        total_workflows=len(workflows),
        price_per_node=_price_per_node(price_per_node),
        counts_by_platform=counts,
    )


def build_results(state: AggregationState, price_per_node: Optional[int] = None) -> AnalysisResults:
    return AnalysisResults(
        workflows=list(state.workflows),
        grouped_workflows=group_by_platform(state.workflows),
        summary=compute_summary(state.workflows, price_per_node),
    )


def build_checkout_payload(
    state: AggregationState,
    minimum_price: Optional[int] = None,
) -> CheckoutPayload:
    """
    Checkout amount in minor currency units.

    The minimum price floor applies to any non-empty quote; an empty quote
    is always zero.
    """
    floor = settings.MINIMUM_PRICE if minimum_price is None else minimum_price
    summary = compute_summary(state.workflows)

    amount = 0
    if state.workflows:
        amount = max(summary.total_price, floor) * 100

    return CheckoutPayload(
        amount=amount,
        total_nodes=summary.total_nodes,
        workflows=list(state.workflows),
    )
