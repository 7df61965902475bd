"""
LOT 4: Interfaces Auth

Définit les contrats pour les sessions et l'autorisation par chemin.
Toute implémentation DOIT respecter ces interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple


class SessionOutcome(Enum):
    """
    Résultat de la résolution d'un jeton de session.

    ACTIVE: session valide
    EXPIRED: session évincée par une connexion plus récente ou expirée par inactivité
    ANONYMOUS: aucun jeton, jeton inconnu ou session fermée par déconnexion
    """

    ACTIVE = "active"
    EXPIRED = "expired"
    ANONYMOUS = "anonymous"


class RevocationReason(str, Enum):
    """Motif de fin d'une session."""

    EVICTED = "evicted"
    LOGOUT = "logout"
    TIMEOUT = "timeout"
    REVOKED = "revoked"


# Motifs pour lesquels un rejeu du jeton aboutit à EXPIRED
EXPIRED_REASONS = frozenset({RevocationReason.EVICTED, RevocationReason.TIMEOUT})


@dataclass
class Session:
    """
    Session authentifiée.

    Attributes:
        session_id: Jeton opaque porté par le cookie
        principal_id: Principal propriétaire
        authorities: Noms des rôles au moment de la connexion
        created_at: Horodatage création
        last_activity_at: Dernière requête acceptée
        revoked: True si la session est terminée
        revoked_at: Horodatage de fin
        revoked_reason: Motif de fin
    """

    session_id: str
    principal_id: int
    authorities: FrozenSet[str]
    created_at: datetime
    last_activity_at: datetime
    revoked: bool = False
    revoked_at: Optional[datetime] = None
    revoked_reason: Optional[RevocationReason] = None


@dataclass(frozen=True)
class SessionLookup:
    """Résultat de ISessionPolicy.resolve."""

    outcome: SessionOutcome
    session: Optional[Session] = None

    @property
    def authorities(self) -> Optional[FrozenSet[str]]:
        """Autorités du principal si la session est active, None sinon."""
        if self.outcome is SessionOutcome.ACTIVE and self.session is not None:
            return self.session.authorities
        return None


class AccessDecision(Enum):
    """Décision de l'Access Policy."""

    PERMIT = "permit"
    DENY_UNAUTHENTICATED = "deny_unauthenticated"
    DENY_FORBIDDEN = "deny_forbidden"


class Requirement(Enum):
    """Exigence portée par une règle d'accès."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    AUTHORITY = "authority"


@dataclass(frozen=True)
class AccessRule:
    """
    Règle d'accès.

    Attributes:
        patterns: Motifs de chemin style Ant ("*" un segment, "**" n segments)
        requirement: Type d'exigence
        authorities: Autorités admises (requirement AUTHORITY)
        methods: Méthodes HTTP concernées (None = toutes)
    """

    patterns: Tuple[str, ...]
    requirement: Requirement
    authorities: FrozenSet[str] = field(default_factory=frozenset)
    methods: Optional[FrozenSet[str]] = None


class ISessionStore(ABC):
    """
    Stockage des sessions, partagé par tout le processus.

    Passé explicitement à la Session Policy.
    """

    @abstractmethod
    async def create(self, session: Session) -> Session:
        pass

    @abstractmethod
    async def get(self, session_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    async def touch(self, session_id: str, at: datetime) -> bool:
        """Met à jour last_activity_at d'une session non révoquée."""
        pass

    @abstractmethod
    async def invalidate(self, session_id: str, reason: RevocationReason, at: datetime) -> bool:
        """
        Termine une session.

        Returns:
            True si terminée, False si inexistante ou déjà terminée
        """
        pass

    @abstractmethod
    async def evict_by_principal(
        self, principal_id: int, keep: int, reason: RevocationReason, at: datetime
    ) -> List[Session]:
        """
        Termine les sessions actives les plus anciennes au-delà de keep.

        Returns:
            Sessions terminées
        """
        pass

    @abstractmethod
    async def active_for_principal(self, principal_id: int) -> List[Session]:
        """Sessions non révoquées, de la plus ancienne à la plus récente."""
        pass

    @abstractmethod
    async def expire_stale(
        self, idle_before: datetime, created_before: datetime, at: datetime
    ) -> List[Session]:
        """
        Termine (TIMEOUT) les sessions actives inactives depuis idle_before
        ou créées avant created_before.

        Returns:
            Sessions terminées
        """
        pass

    @abstractmethod
    async def purge(self, before: datetime, retain: Iterable[RevocationReason] = ()) -> int:
        """
        Supprime les sessions terminées.

        Les motifs de retain sont conservés jusqu'à before (rejeu distingué
        d'un jeton inconnu); les autres sessions terminées sont supprimées.
        """
        pass


class ISessionPolicy(ABC):
    """Politique de session: plafond par principal, fixation, expiration."""

    @abstractmethod
    async def login(
        self,
        principal_id: int,
        authorities: Iterable[str],
        anonymous_token: Optional[str] = None,
    ) -> Session:
        pass

    @abstractmethod
    async def resolve(self, token: Optional[str]) -> SessionLookup:
        pass

    @abstractmethod
    async def logout(self, token: Optional[str]) -> bool:
        pass


class IAccessPolicy(ABC):
    """Table ordonnée de règles d'accès par chemin."""

    @abstractmethod
    def decide(
        self, path: str, method: str, authorities: Optional[Iterable[str]]
    ) -> AccessDecision:
        """
        Args:
            path: Chemin de la requête
            method: Méthode HTTP
            authorities: Autorités du principal, None si non authentifié
        """
        pass

    @abstractmethod
    def enforce(self, path: str, method: str, authorities: Optional[Iterable[str]]) -> None:
        """
        Raises:
            AuthorizationFault: Accès refusé
        """
        pass
