"""
Workflow quote schemas.

Field names serialize in camelCase to match the shape the quote frontend
already consumes; Python code uses the snake_case attribute names.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    MAKE = "make"
    ZAPIER = "zapier"
    N8N = "n8n"
    UNKNOWN = "unknown"


# Platforms that can end up in an aggregated quote
BILLABLE_PLATFORMS = (Platform.MAKE, Platform.ZAPIER, Platform.N8N)


class ZapStatus(str, Enum):
    ON = "on"
    OFF = "off"


class FileOutcomeStatus(str, Enum):
    ACCEPTED = "accepted"
    PENDING_SELECTION = "pending_selection"
    REJECTED = "rejected"
    WARNING = "warning"


class Node(BaseModel):
    """One automation step."""
    name: str
    type: str


class Workflow(BaseModel):
    """A priced workflow; total_price is always total_nodes * price per node."""
    file_name: str = Field(alias="fileName", serialization_alias="fileName")
    workflow_name: str = Field(alias="workflowName", serialization_alias="workflowName")
    total_nodes: int = Field(ge=0, alias="totalNodes", serialization_alias="totalNodes")
    total_price: int = Field(ge=0, alias="totalPrice", serialization_alias="totalPrice")
    nodes: List[Node] = Field(default_factory=list)
    platform: Platform

    model_config = {"populate_by_name": True}


class PendingZapierWorkflow(BaseModel):
    """A zap awaiting the user's include/exclude decision."""
    id: str
    title: str
    status: ZapStatus = ZapStatus.OFF
    node_count: int = Field(ge=0, alias="nodeCount", serialization_alias="nodeCount")
    price: int = Field(ge=0)
    file_name: str = Field(alias="fileName", serialization_alias="fileName")

    model_config = {"populate_by_name": True}


class PendingZapierFile(BaseModel):
    file_name: str = Field(alias="fileName", serialization_alias="fileName")
    workflows: List[PendingZapierWorkflow] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class AnalysisSummary(BaseModel):
    total_nodes: int = Field(alias="totalNodes", serialization_alias="totalNodes")
    total_price: int = Field(alias="totalPrice", serialization_alias="totalPrice")
    total_workflows: int = Field(alias="totalWorkflows", serialization_alias="totalWorkflows")
    price_per_node: int = Field(alias="pricePerNode", serialization_alias="pricePerNode")
    counts_by_platform: Dict[str, int] = Field(alias="countsByPlatform", serialization_alias="countsByPlatform")

    model_config = {"populate_by_name": True}


class AnalysisResults(BaseModel):
    workflows: List[Workflow]
    grouped_workflows: Dict[str, List[Workflow]] = Field(
        alias="groupedWorkflows", serialization_alias="groupedWorkflows"
    )
    summary: AnalysisSummary

    model_config = {"populate_by_name": True}


class AggregationState(BaseModel):
    """
    Snapshot of one quote session: aggregated workflows plus Zapier files
    still waiting on a selection. Treated as immutable; the aggregation
    functions always return a new instance.
    """
    workflows: List[Workflow] = Field(default_factory=list)
    pending_zapier_files: List[PendingZapierFile] = Field(
        default_factory=list, alias="pendingZapierFiles", serialization_alias="pendingZapierFiles"
    )

    model_config = {"populate_by_name": True, "frozen": True}


class FileAnalysisOutcome(BaseModel):
    """What happened to a single uploaded file."""
    file_name: str = Field(alias="fileName", serialization_alias="fileName")
    status: FileOutcomeStatus
    platform: Optional[Platform] = None
    workflow_count: int = Field(default=0, alias="workflowCount", serialization_alias="workflowCount")
    error_kind: Optional[str] = Field(default=None, alias="errorKind", serialization_alias="errorKind")
    message: Optional[str] = None

    model_config = {"populate_by_name": True}


class BatchAnalysis(BaseModel):
    """Normalized output of one upload batch, before it is merged into a session."""
    workflows: List[Workflow] = Field(default_factory=list)
    pending_zapier_files: List[PendingZapierFile] = Field(
        default_factory=list, alias="pendingZapierFiles", serialization_alias="pendingZapierFiles"
    )
    outcomes: List[FileAnalysisOutcome] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def processed_count(self) -> int:
        return len([
            o for o in self.outcomes
            if o.status in (FileOutcomeStatus.ACCEPTED, FileOutcomeStatus.PENDING_SELECTION)
        ])


class CheckoutPayload(BaseModel):
    """Handed untouched to the checkout initiator."""
    amount: int  # minor currency units
    total_nodes: int = Field(alias="totalNodes", serialization_alias="totalNodes")
    workflows: List[Workflow]

    model_config = {"populate_by_name": True}


# === Request / response bodies ===

class QuoteSessionResponse(BaseModel):
    session_id: str = Field(alias="sessionId", serialization_alias="sessionId")
    results: AnalysisResults
    pending_zapier_workflows: List[PendingZapierWorkflow] = Field(
        default_factory=list, alias="pendingZapierWorkflows", serialization_alias="pendingZapierWorkflows"
    )

    model_config = {"populate_by_name": True}


class UploadBatchResponse(QuoteSessionResponse):
    files: List[FileAnalysisOutcome]
    processed: int
    total: int
    requires_zapier_selection: bool = Field(
        alias="requiresZapierSelection", serialization_alias="requiresZapierSelection"
    )


class ZapierSelectionRequest(BaseModel):
    zap_ids: List[str] = Field(alias="zapIds", serialization_alias="zapIds")

    model_config = {"populate_by_name": True}
