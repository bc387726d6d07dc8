from fastapi import APIRouter, HTTPException, status, UploadFile, File
from typing import List
import logging

from app.core.config import settings
from app.schemas.savings import SavingsScenariosResponse
from app.schemas.workflow import (
    CheckoutPayload,
    PendingZapierWorkflow,
    Platform,
    QuoteSessionResponse,
    UploadBatchResponse,
    ZapierSelectionRequest,
)
from app.services.pricing_service import HEADLINE_SCENARIO, calculate_scenarios
from app.services.quote_session_service import QuoteSession, quote_session_store
from app.services.workflow_aggregation_service import (
    apply_zapier_selection,
    build_checkout_payload,
    build_results,
    clear_platform,
    compute_summary,
    pending_zapier_workflows,
    remove_by_file_name,
    reset,
)
from app.services.workflow_ingestion_service import analyze_batch

router = APIRouter()
logger = logging.getLogger(__name__)


def _session_not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Quote session {session_id} not found"
    )


async def _require_session(session_id: str) -> QuoteSession:
    session = await quote_session_store.get(session_id)
    if session is None:
        raise _session_not_found(session_id)
    return session


async def _read_upload(upload: UploadFile) -> bytes:
    """Read at most one byte past MAX_FILE_SIZE so oversized files fail validation unread."""
    return await upload.read(settings.MAX_FILE_SIZE + 1)


def _session_response(session: QuoteSession) -> QuoteSessionResponse:
    return QuoteSessionResponse(
        session_id=session.id,
        results=build_results(session.state),
        pending_zapier_workflows=pending_zapier_workflows(session.state),
    )


@router.post("", response_model=QuoteSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_quote_session():
    """Start a new quote with no uploaded workflows"""
    session = await quote_session_store.create()
    return _session_response(session)


@router.get("/{session_id}", response_model=QuoteSessionResponse)
async def get_quote(session_id: str):
    """Current workflows, per-platform grouping and totals"""
    session = await _require_session(session_id)
    return _session_response(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote_session(session_id: str):
    if not await quote_session_store.delete(session_id):
        raise _session_not_found(session_id)


@router.post("/{session_id}/files", response_model=UploadBatchResponse)
async def upload_workflow_files(
    session_id: str,
    files: List[UploadFile] = File(...),
):
    """
    Upload a batch of Make.com, Zapier or n8n exports.

    Each file is validated and analyzed on its own; a rejected file is
    reported in the response and does not stop the rest of the batch.
    Make.com and n8n workflows are added to the quote immediately, Zapier
    zaps are held until a selection is confirmed.
    """
    await _require_session(session_id)

    uploads = []
    for upload in files:
        content = await _read_upload(upload)
        uploads.append((upload.filename or "", content, upload.content_type))

    batch = analyze_batch(uploads)

    session = await quote_session_store.commit_batch(session_id, batch)
    if session is None:
        raise _session_not_found(session_id)

    response = _session_response(session)
    return UploadBatchResponse(
        **response.model_dump(),
        files=batch.outcomes,
        processed=batch.processed_count,
        total=len(batch.outcomes),
        requires_zapier_selection=len(batch.pending_zapier_files) > 0,
    )


@router.delete("/{session_id}/files/{file_name}", response_model=QuoteSessionResponse)
async def remove_workflow_file(session_id: str, file_name: str):
    """Remove every workflow and pending zap that came from one uploaded file"""
    session = await quote_session_store.update(
        session_id, lambda state: remove_by_file_name(state, file_name)
    )
    if session is None:
        raise _session_not_found(session_id)
    return _session_response(session)


@router.get("/{session_id}/zapier/pending", response_model=List[PendingZapierWorkflow])
async def get_pending_zapier_workflows(session_id: str):
    session = await _require_session(session_id)
    return pending_zapier_workflows(session.state)


@router.put("/{session_id}/zapier/selection", response_model=QuoteSessionResponse)
async def select_zapier_workflows(session_id: str, selection: ZapierSelectionRequest):
    """
    Confirm which pending zaps to migrate.

    Replaces any earlier selection. An empty list removes all Zapier
    workflows from the quote while keeping them available for selection.
    """
    session = await _require_session(session_id)

    pending = pending_zapier_workflows(session.state)
    known_ids = {zap.id for zap in pending}
    unknown_ids = [zap_id for zap_id in selection.zap_ids if zap_id not in known_ids]
    if unknown_ids:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown Zapier workflow ids: {', '.join(unknown_ids)}"
        )

    wanted = set(selection.zap_ids)

    def apply(state):
        # pending set as seen under the store lock
        selected = [zap for zap in pending_zapier_workflows(state) if zap.id in wanted]
        return apply_zapier_selection(state, selected)

    session = await quote_session_store.update(session_id, apply)
    if session is None:
        raise _session_not_found(session_id)

    logger.info(f"Quote {session_id}: selected {len(wanted)} Zapier workflows")
    return _session_response(session)


@router.delete("/{session_id}/zapier", response_model=QuoteSessionResponse)
async def clear_zapier_workflows(session_id: str):
    """Drop the confirmed Zapier workflows so the selection can be redone"""
    session = await quote_session_store.update(
        session_id, lambda state: clear_platform(state, Platform.ZAPIER)
    )
    if session is None:
        raise _session_not_found(session_id)
    return _session_response(session)


@router.post("/{session_id}/reset", response_model=QuoteSessionResponse)
async def reset_quote(session_id: str):
    session = await quote_session_store.update(session_id, lambda state: reset())
    if session is None:
        raise _session_not_found(session_id)
    return _session_response(session)


@router.get("/{session_id}/savings", response_model=SavingsScenariosResponse)
async def get_quote_savings(session_id: str):
    """Projected savings for the current quote under each usage scenario"""
    session = await _require_session(session_id)
    summary = compute_summary(session.state.workflows)

    scenarios = calculate_scenarios(
        summary.total_nodes,
        summary.total_workflows,
        summary.total_price,
    )
    return SavingsScenariosResponse(
        total_nodes=summary.total_nodes,
        workflow_count=summary.total_workflows,
        migration_price=summary.total_price,
        scenarios=scenarios,
        headline=scenarios[HEADLINE_SCENARIO],
    )


@router.get("/{session_id}/checkout", response_model=CheckoutPayload)
async def get_checkout_payload(session_id: str):
    """Amount (minor units), node total and workflows for the checkout initiator"""
    session = await _require_session(session_id)
    if not session.state.workflows:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quote has no workflows to check out"
        )
    return build_checkout_payload(session.state, settings.MINIMUM_PRICE)
