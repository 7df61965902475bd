"""
Tests unitaires InMemorySessionStore
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.auth import InMemorySessionStore, ISessionStore, RevocationReason, Session


NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_session(token: str, principal_id: int = 1, offset_seconds: int = 0) -> Session:
    created = NOW + timedelta(seconds=offset_seconds)
    return Session(
        session_id=token,
        principal_id=principal_id,
        authorities=frozenset({"USER"}),
        created_at=created,
        last_activity_at=created,
    )


@pytest.fixture
def store():
    return InMemorySessionStore()


class TestSessionStore:
    """Index par jeton et par principal."""

    def test_implements_interface(self, store):
        assert isinstance(store, ISessionStore)

    @pytest.mark.asyncio
    async def test_create_and_get(self, store):
        session = await store.create(make_session("t1"))

        assert await store.get("t1") is session
        assert await store.get("") is None
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_invalidate_records_reason(self, store):
        await store.create(make_session("t1"))

        assert await store.invalidate("t1", RevocationReason.LOGOUT, NOW) is True

        session = await store.get("t1")
        assert session.revoked is True
        assert session.revoked_at == NOW
        assert session.revoked_reason is RevocationReason.LOGOUT

    @pytest.mark.asyncio
    async def test_invalidate_twice_keeps_first_reason(self, store):
        await store.create(make_session("t1"))
        await store.invalidate("t1", RevocationReason.EVICTED, NOW)

        assert await store.invalidate("t1", RevocationReason.LOGOUT, NOW) is False
        assert (await store.get("t1")).revoked_reason is RevocationReason.EVICTED

    @pytest.mark.asyncio
    async def test_invalidate_unknown(self, store):
        assert await store.invalidate("nope", RevocationReason.LOGOUT, NOW) is False

    @pytest.mark.asyncio
    async def test_touch(self, store):
        await store.create(make_session("t1"))
        later = NOW + timedelta(minutes=5)

        assert await store.touch("t1", later) is True
        assert (await store.get("t1")).last_activity_at == later

    @pytest.mark.asyncio
    async def test_touch_revoked_refused(self, store):
        await store.create(make_session("t1"))
        await store.invalidate("t1", RevocationReason.LOGOUT, NOW)

        assert await store.touch("t1", NOW) is False

    @pytest.mark.asyncio
    async def test_evict_keeps_newest(self, store):
        for i, token in enumerate(("old", "mid", "new")):
            await store.create(make_session(token, offset_seconds=i))

        evicted = await store.evict_by_principal(1, 1, RevocationReason.EVICTED, NOW)

        assert [s.session_id for s in evicted] == ["old", "mid"]
        assert [s.session_id for s in await store.active_for_principal(1)] == ["new"]

    @pytest.mark.asyncio
    async def test_evict_keep_zero_revokes_all(self, store):
        await store.create(make_session("a"))
        await store.create(make_session("b"))

        evicted = await store.evict_by_principal(1, 0, RevocationReason.REVOKED, NOW)

        assert len(evicted) == 2
        assert await store.active_for_principal(1) == []

    @pytest.mark.asyncio
    async def test_evict_under_cap_noop(self, store):
        await store.create(make_session("a"))

        assert await store.evict_by_principal(1, 1, RevocationReason.EVICTED, NOW) == []

    @pytest.mark.asyncio
    async def test_purge_removes_old_revoked_only(self, store):
        await store.create(make_session("revoked"))
        await store.create(make_session("active", principal_id=2))
        await store.invalidate("revoked", RevocationReason.LOGOUT, NOW)

        purged = await store.purge(NOW + timedelta(seconds=1))

        assert purged == 1
        assert await store.get("revoked") is None
        assert await store.get("active") is not None
        assert await store.active_for_principal(1) == []

    @pytest.mark.asyncio
    async def test_purge_drops_closed_sessions_immediately(self, store):
        await store.create(make_session("logged-out"))
        await store.create(make_session("evicted", principal_id=2))
        await store.invalidate("logged-out", RevocationReason.LOGOUT, NOW)
        await store.invalidate("evicted", RevocationReason.EVICTED, NOW)

        purged = await store.purge(NOW - timedelta(minutes=30), retain={RevocationReason.EVICTED})

        assert purged == 1
        assert await store.get("logged-out") is None
        assert (await store.get("evicted")).revoked_reason is RevocationReason.EVICTED

    @pytest.mark.asyncio
    async def test_purge_drops_retained_after_cutoff(self, store):
        await store.create(make_session("evicted"))
        await store.invalidate("evicted", RevocationReason.EVICTED, NOW)

        purged = await store.purge(NOW + timedelta(seconds=1), retain={RevocationReason.EVICTED})

        assert purged == 1
        assert await store.get("evicted") is None


class TestExpireStale:
    """Sessions jamais représentées après leur délai."""

    @pytest.mark.asyncio
    async def test_idle_session_timed_out(self, store):
        await store.create(make_session("idle"))
        await store.create(make_session("fresh", principal_id=2, offset_seconds=600))

        expired = await store.expire_stale(
            idle_before=NOW + timedelta(seconds=300),
            created_before=NOW - timedelta(hours=1),
            at=NOW + timedelta(minutes=40),
        )

        assert [s.session_id for s in expired] == ["idle"]
        idle = await store.get("idle")
        assert idle.revoked_reason is RevocationReason.TIMEOUT
        assert idle.revoked_at == NOW + timedelta(minutes=40)
        assert (await store.get("fresh")).revoked is False

    @pytest.mark.asyncio
    async def test_old_session_timed_out_despite_activity(self, store):
        session = await store.create(make_session("old"))
        session.last_activity_at = NOW + timedelta(hours=1)

        expired = await store.expire_stale(
            idle_before=NOW,
            created_before=NOW + timedelta(seconds=1),
            at=NOW + timedelta(hours=1),
        )

        assert [s.session_id for s in expired] == ["old"]

    @pytest.mark.asyncio
    async def test_revoked_sessions_untouched(self, store):
        await store.create(make_session("gone"))
        await store.invalidate("gone", RevocationReason.LOGOUT, NOW)

        expired = await store.expire_stale(NOW + timedelta(hours=1), NOW + timedelta(hours=1), NOW)

        assert expired == []
        assert (await store.get("gone")).revoked_reason is RevocationReason.LOGOUT
