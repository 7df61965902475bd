"""
LOT 4: Session Policy

Machine d'état par principal {sans session, active}:
    - connexion réussie: jeton neuf, jamais le jeton présenté, qui est fermé (anti-fixation)
    - nouvelle connexion du même principal: l'ancienne session est évincée
    - déconnexion, inactivité ou durée maximale: fin de session

Le plafond de sessions actives est vrai immédiatement après chaque transition.
"""

import asyncio
import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from src.core.interfaces import SessionSettings
from src.logging import IStructuredLogger, StructuredLogger

from .interfaces import (
    EXPIRED_REASONS,
    ISessionPolicy,
    ISessionStore,
    RevocationReason,
    Session,
    SessionLookup,
    SessionOutcome,
)


TOKEN_BYTES = 32


class SessionPolicyError(Exception):
    """Erreur de politique de session."""
    pass


class SessionPolicy(ISessionPolicy):
    """
    Politique de session.

    Example:
        policy = SessionPolicy(InMemorySessionStore(), SessionSettings())
        session = await policy.login(principal_id=1, authorities={"USER"})
        lookup = await policy.resolve(session.session_id)  # ACTIVE
    """

    def __init__(
        self,
        store: ISessionStore,
        settings: Optional[SessionSettings] = None,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        self._store = store
        self._settings = settings or SessionSettings()
        self._logger = logger or StructuredLogger("portier.session_policy")
        # Sérialise les connexions: éviction + insertion forment une seule transition
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def login(
        self,
        principal_id: int,
        authorities: Iterable[str],
        anonymous_token: Optional[str] = None,
    ) -> Session:
        """
        Ouvre une session pour un principal authentifié.

        Args:
            principal_id: Principal authentifié
            authorities: Noms des rôles
            anonymous_token: Jeton présenté avant authentification (jamais réutilisé)

        Returns:
            Nouvelle session active

        Raises:
            SessionPolicyError: principal_id absent
        """
        if principal_id is None:
            raise SessionPolicyError("principal_id est obligatoire")

        async with self._lock:
            now = self._now()
            await self._purge(now)
            keep = self._settings.max_sessions_per_principal - 1
            evicted = await self._store.evict_by_principal(
                principal_id, keep, RevocationReason.EVICTED, now
            )
            for old in evicted:
                self._logger.info(
                    "Session évincée par une connexion plus récente",
                    principal_id=principal_id,
                    session_id=old.session_id,
                )

            # Le jeton présenté par le navigateur est remplacé, jamais prolongé
            if anonymous_token and await self._store.invalidate(
                anonymous_token, RevocationReason.LOGOUT, now
            ):
                self._logger.info("Session précédente du navigateur fermée", principal_id=principal_id)

            token = secrets.token_urlsafe(TOKEN_BYTES)
            while token == anonymous_token or await self._store.get(token) is not None:
                token = secrets.token_urlsafe(TOKEN_BYTES)

            session = await self._store.create(
                Session(
                    session_id=token,
                    principal_id=principal_id,
                    authorities=frozenset(authorities),
                    created_at=now,
                    last_activity_at=now,
                )
            )

        self._logger.info("Session ouverte", principal_id=principal_id, evicted=len(evicted))
        return session

    async def resolve(self, token: Optional[str]) -> SessionLookup:
        """
        Résout le jeton présenté par une requête.

        Une session active est prolongée (last_activity_at).
        """
        if not token:
            return SessionLookup(SessionOutcome.ANONYMOUS)

        session = await self._store.get(token)
        if session is None:
            return SessionLookup(SessionOutcome.ANONYMOUS)

        if session.revoked:
            if session.revoked_reason in EXPIRED_REASONS:
                return SessionLookup(SessionOutcome.EXPIRED, session)
            return SessionLookup(SessionOutcome.ANONYMOUS)

        now = self._now()
        idle = now - session.last_activity_at
        age = now - session.created_at
        if idle > timedelta(seconds=self._settings.inactivity_timeout_seconds) or age > timedelta(
            seconds=self._settings.max_lifetime_seconds
        ):
            await self._store.invalidate(token, RevocationReason.TIMEOUT, now)
            self._logger.info("Session expirée", principal_id=session.principal_id)
            return SessionLookup(SessionOutcome.EXPIRED, session)

        await self._store.touch(token, now)
        return SessionLookup(SessionOutcome.ACTIVE, session)

    async def logout(self, token: Optional[str]) -> bool:
        """
        Returns:
            True si une session active a été fermée
        """
        if not token:
            return False
        closed = await self._store.invalidate(token, RevocationReason.LOGOUT, self._now())
        if closed:
            self._logger.info("Session fermée par déconnexion")
        return closed

    async def revoke_all(self, principal_id: int) -> int:
        """
        Ferme toutes les sessions d'un principal (ex: principal supprimé).

        Returns:
            Nombre de sessions fermées
        """
        async with self._lock:
            revoked = await self._store.evict_by_principal(
                principal_id, 0, RevocationReason.REVOKED, self._now()
            )
        if revoked:
            self._logger.info("Sessions révoquées", principal_id=principal_id, count=len(revoked))
        return len(revoked)

    async def purge_expired(self) -> int:
        """
        Nettoie le store (exécuté aussi à chaque connexion).

        - sessions actives inactives ou trop anciennes: terminées (TIMEOUT)
        - sessions évincées ou expirées: supprimées après la durée maximale,
          leur rejeu reste EXPIRED jusque-là
        - sessions fermées (déconnexion, révocation): supprimées

        Returns:
            Nombre de sessions supprimées
        """
        async with self._lock:
            return await self._purge(self._now())

    async def _purge(self, now: datetime) -> int:
        timed_out = await self._store.expire_stale(
            idle_before=now - timedelta(seconds=self._settings.inactivity_timeout_seconds),
            created_before=now - timedelta(seconds=self._settings.max_lifetime_seconds),
            at=now,
        )
        cutoff = now - timedelta(seconds=self._settings.max_lifetime_seconds)
        purged = await self._store.purge(cutoff, retain=EXPIRED_REASONS)
        if timed_out or purged:
            self._logger.debug("Sessions purgées", timed_out=len(timed_out), count=purged)
        return purged
