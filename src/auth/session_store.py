"""
LOT 4: In-Memory Session Store

Stockage des sessions indexé par jeton et par principal.

Note:
    Stockage en mémoire, portée processus. Redis pourra implémenter ISessionStore.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .interfaces import ISessionStore, RevocationReason, Session


class InMemorySessionStore(ISessionStore):
    """
    Store de sessions mémoire.

    Les sessions terminées restent consultables jusqu'à la purge afin que
    le rejeu d'un jeton évincé soit distingué d'un jeton inconnu.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        # principal_id -> jetons dans l'ordre de création
        self._principal_sessions: Dict[int, List[str]] = {}

    async def create(self, session: Session) -> Session:
        self._sessions[session.session_id] = session
        self._principal_sessions.setdefault(session.principal_id, []).append(session.session_id)
        return session

    async def get(self, session_id: str) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    async def touch(self, session_id: str, at: datetime) -> bool:
        session = self._sessions.get(session_id)
        if not session or session.revoked:
            return False
        session.last_activity_at = at
        return True

    async def invalidate(self, session_id: str, reason: RevocationReason, at: datetime) -> bool:
        session = self._sessions.get(session_id)
        if not session or session.revoked:
            return False

        session.revoked = True
        session.revoked_at = at
        session.revoked_reason = reason
        return True

    async def evict_by_principal(
        self, principal_id: int, keep: int, reason: RevocationReason, at: datetime
    ) -> List[Session]:
        active = await self.active_for_principal(principal_id)
        excess = len(active) - max(keep, 0)
        if excess <= 0:
            return []

        evicted = []
        for session in active[:excess]:
            if await self.invalidate(session.session_id, reason, at):
                evicted.append(session)
        return evicted

    async def active_for_principal(self, principal_id: int) -> List[Session]:
        sessions = []
        for session_id in self._principal_sessions.get(principal_id, []):
            session = self._sessions.get(session_id)
            if session and not session.revoked:
                sessions.append(session)
        return sessions

    async def expire_stale(
        self, idle_before: datetime, created_before: datetime, at: datetime
    ) -> List[Session]:
        stale = [
            session
            for session in self._sessions.values()
            if not session.revoked
            and (session.last_activity_at < idle_before or session.created_at < created_before)
        ]
        for session in stale:
            await self.invalidate(session.session_id, RevocationReason.TIMEOUT, at)
        return stale

    async def purge(self, before: datetime, retain: Iterable[RevocationReason] = ()) -> int:
        retained = frozenset(retain)
        stale = [
            session_id
            for session_id, session in self._sessions.items()
            if session.revoked
            and (
                session.revoked_reason not in retained
                or (session.revoked_at is not None and session.revoked_at < before)
            )
        ]
        for session_id in stale:
            session = self._sessions.pop(session_id)
            tokens = self._principal_sessions.get(session.principal_id, [])
            if session_id in tokens:
                tokens.remove(session_id)
            if not tokens:
                self._principal_sessions.pop(session.principal_id, None)
        return len(stale)
