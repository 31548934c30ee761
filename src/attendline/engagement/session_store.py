"""
Conversation Session Store

Durable per-user flow state with TTL expiry. Expired rows are deleted lazily
when next read; there is no background sweep.

Concurrency: last write wins. Two webhook deliveries for the same LINE user
racing each other can lose a transition; no locking is attempted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

import pydantic
from sqlalchemy.exc import IntegrityError

from attendline.config import settings
from attendline.core.models import FlowSession, as_utc
from attendline.engagement.state import ConversationState, IdleState, decode_state, encode_state

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """In-memory view of a FlowSession row.

    Attributes:
        external_user_id: LINE user id (key)
        guardian_id: Guardian record id once one exists
        state: Current flow state (tagged by flow)
        expires_at: Expiry of the stored row (None until first save)
        updated_at: Last write (None until first save)
    """

    external_user_id: str
    guardian_id: UUID | None = None
    state: ConversationState = field(default_factory=IdleState)
    expires_at: datetime | None = None
    updated_at: datetime | None = None


class SessionStore:
    """Loads and saves FlowSession rows."""

    def __init__(self, *, db: AsyncSession, ttl: timedelta | None = None):
        """Initialize session store.

        Args:
            db: Database session
            ttl: Session lifetime after each save (default: SESSION_TTL_HOURS)
        """
        self.db = db
        self.ttl = ttl or timedelta(hours=settings.SESSION_TTL_HOURS)

    async def load(self, external_user_id: str) -> Session | None:
        """Load a live session.

        Returns:
            Session, or None if there is no row or the row has expired
            (an expired row is deleted)
        """
        row = await self.db.get(FlowSession, external_user_id, populate_existing=True)
        if row is None:
            return None

        now = datetime.now(UTC)
        expires_at = as_utc(row.expires_at)
        if expires_at <= now:
            logger.info(f"Session for {external_user_id} expired at {expires_at.isoformat()}")
            await self.db.delete(row)
            await self.db.commit()
            return None

        try:
            state = decode_state(row.flow, row.step, row.data)
        except pydantic.ValidationError as e:
            logger.warning(
                f"Discarding undecodable session state for {external_user_id}: {e}",
                extra={"flow": row.flow, "step": row.step},
            )
            state = IdleState()

        return Session(
            external_user_id=row.external_user_id,
            guardian_id=row.guardian_id,
            state=state,
            expires_at=expires_at,
            updated_at=as_utc(row.updated_at),
        )

    async def save(self, session: Session) -> Session:
        """Upsert the session keyed by external user id.

        Always refreshes expires_at (now + ttl) and updated_at (now).
        """
        now = datetime.now(UTC)
        flow, step, data = encode_state(session.state)

        row = await self.db.get(FlowSession, session.external_user_id)
        if row is None:
            row = FlowSession(external_user_id=session.external_user_id)
            self.db.add(row)

        row.guardian_id = session.guardian_id
        row.flow = flow
        row.step = step
        row.data = data
        row.expires_at = now + self.ttl
        row.updated_at = now

        try:
            await self.db.commit()
        except IntegrityError:
            # Another delivery inserted the row first: overwrite it
            await self.db.rollback()
            logger.info(f"Concurrent session insert for {session.external_user_id}, retrying")
            row = await self.db.get(FlowSession, session.external_user_id, populate_existing=True)
            if row is None:
                raise
            row.guardian_id = session.guardian_id
            row.flow = flow
            row.step = step
            row.data = data
            row.expires_at = now + self.ttl
            row.updated_at = now
            await self.db.commit()

        session.expires_at = now + self.ttl
        session.updated_at = now
        return session

    async def reset(self, external_user_id: str, guardian_id: UUID | None = None) -> Session:
        """Save an idle, empty session (dialog completed or abandoned)."""
        return await self.save(
            Session(external_user_id=external_user_id, guardian_id=guardian_id, state=IdleState())
        )
