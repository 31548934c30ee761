"""
Tests for conversation session persistence.
"""

from datetime import UTC, date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from attendline.core.models import AttendanceStatus, FlowSession, Guardian
from attendline.engagement.session_store import Session, SessionStore
from attendline.engagement.state import (
    AttendanceState,
    AttendanceStep,
    IdleState,
    RegistrationState,
    decode_state,
    encode_state,
)


class TestStateCodec:
    def test_encode_excludes_flow_step_and_none(self):
        state = AttendanceState(step=AttendanceStep.CHOOSE_STATUS, requested_for=date(2026, 2, 14))

        flow, step, data = encode_state(state)

        assert flow == "attendance"
        assert step == "choose_status"
        assert data == {"requested_for": "2026-02-14"}

    def test_decode_restores_typed_fields(self):
        state = decode_state("attendance", "ask_comment", {"requested_for": "2026-02-14", "status": "absent"})

        assert isinstance(state, AttendanceState)
        assert state.requested_for == date(2026, 2, 14)
        assert state.status == AttendanceStatus.ABSENT

    def test_idle(self):
        assert isinstance(decode_state("idle", "idle", {}), IdleState)


class TestSessionStore:
    async def test_load_missing_returns_none(self, db_session: AsyncSession):
        store = SessionStore(db=db_session)

        assert await store.load("U-nobody") is None

    async def test_save_then_load(self, db_session: AsyncSession, guardian: Guardian):
        store = SessionStore(db=db_session)
        state = RegistrationState(pending_child_name="一郎", resume_flow="attendance")

        saved = await store.save(Session(external_user_id="U-1", guardian_id=guardian.id, state=state))
        loaded = await store.load("U-1")

        assert loaded is not None
        assert loaded.guardian_id == guardian.id
        assert loaded.state == state
        assert saved.expires_at is not None
        assert loaded.expires_at > datetime.now(UTC) + timedelta(hours=47)

    async def test_save_overwrites_existing_row(self, db_session: AsyncSession):
        store = SessionStore(db=db_session)
        await store.save(Session(external_user_id="U-1", state=RegistrationState()))

        await store.save(Session(external_user_id="U-1", state=AttendanceState()))
        loaded = await store.load("U-1")

        assert loaded is not None
        assert isinstance(loaded.state, AttendanceState)

    async def test_expired_session_is_deleted(self, db_session: AsyncSession):
        store = SessionStore(db=db_session)
        await store.save(Session(external_user_id="U-1", state=AttendanceState()))

        row = await db_session.get(FlowSession, "U-1")
        row.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        await db_session.commit()

        assert await store.load("U-1") is None
        assert await db_session.get(FlowSession, "U-1") is None

    async def test_custom_ttl(self, db_session: AsyncSession):
        store = SessionStore(db=db_session, ttl=timedelta(minutes=5))

        saved = await store.save(Session(external_user_id="U-1"))

        assert saved.expires_at is not None
        assert saved.expires_at < datetime.now(UTC) + timedelta(minutes=6)

    async def test_undecodable_state_becomes_idle(self, db_session: AsyncSession):
        db_session.add(
            FlowSession(
                external_user_id="U-1",
                flow="attendance",
                step="no_such_step",
                data={},
                expires_at=datetime.now(UTC) + timedelta(hours=1),
            )
        )
        await db_session.commit()

        loaded = await SessionStore(db=db_session).load("U-1")

        assert loaded is not None
        assert isinstance(loaded.state, IdleState)

    async def test_reset(self, db_session: AsyncSession, guardian: Guardian):
        store = SessionStore(db=db_session)
        await store.save(Session(external_user_id="U-1", guardian_id=guardian.id, state=AttendanceState()))

        await store.reset("U-1", guardian.id)
        loaded = await store.load("U-1")

        assert loaded is not None
        assert isinstance(loaded.state, IdleState)
        assert loaded.guardian_id == guardian.id
