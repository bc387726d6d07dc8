"""
Quote Session Service

In-memory holder for the aggregation state of each visitor's quote. The
aggregation functions themselves are stateless; this store owns the one
mutable reference per session and swaps it under a lock, so readers only
ever see a fully applied snapshot.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import Callable, Dict, Optional
from uuid import uuid4
import logging

from app.core.config import settings
from app.schemas.workflow import AggregationState, BatchAnalysis
from app.services.workflow_aggregation_service import (
    EMPTY_STATE,
    add_pending_zapier_files,
    add_workflows,
)

logger = logging.getLogger(__name__)


@dataclass
class QuoteSession:
    """One visitor's in-progress quote."""
    id: str
    state: AggregationState = EMPTY_STATE
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class QuoteSessionStore:
    """
    Session-scoped storage for quote aggregation state.

    Sessions that have not been touched for QUOTE_SESSION_TTL_HOURS are
    evicted whenever a new session is created.
    """

    def __init__(self, ttl_hours: Optional[float] = None):
        self._sessions: Dict[str, QuoteSession] = {}
        self._lock = asyncio.Lock()
        self._ttl = timedelta(hours=ttl_hours if ttl_hours is not None else settings.QUOTE_SESSION_TTL_HOURS)

    async def create(self) -> QuoteSession:
        session = QuoteSession(id=str(uuid4()))
        async with self._lock:
            self._evict_expired()
            self._sessions[session.id] = session

        logger.info(f"Quote session created: {session.id}")
        return session

    async def get(self, session_id: str) -> Optional[QuoteSession]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def update(
        self,
        session_id: str,
        mutate: Callable[[AggregationState], AggregationState],
    ) -> Optional[QuoteSession]:
        """
        Apply a state transition to a session atomically.

        Returns:
            The updated session, or None if the session does not exist
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.state = mutate(session.state)
            session.updated_at = datetime.now(UTC)
            return session

    async def commit_batch(self, session_id: str, batch: BatchAnalysis) -> Optional[QuoteSession]:
        """Merge a fully analyzed upload batch into a session in one step"""
        return await self.update(
            session_id,
            lambda state: add_pending_zapier_files(
                add_workflows(state, batch.workflows),
                batch.pending_zapier_files,
            ),
        )

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            removed = self._sessions.pop(session_id, None)

        if removed is not None:
            logger.info(f"Quote session removed: {session_id}")
        return removed is not None

    async def count(self) -> int:
        async with self._lock:
            return len(self._sessions)

    async def clear(self) -> None:
        async with self._lock:
            self._sessions.clear()

    def _evict_expired(self) -> int:
        cutoff = datetime.now(UTC) - self._ttl
        expired = [sid for sid, s in self._sessions.items() if s.updated_at < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Evicted {len(expired)} idle quote sessions")
        return len(expired)


# Global instance
quote_session_store = QuoteSessionStore()
