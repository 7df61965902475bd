"""
LOT 4: Auth

Sessions et autorisation:
- Politique de session (plafond par principal, éviction, expiration)
- Table de règles d'accès ordonnée par chemin
- Authentification par identifiants
"""

from .interfaces import (
    # Enums
    SessionOutcome,
    RevocationReason,
    AccessDecision,
    Requirement,
    # Dataclasses
    Session,
    SessionLookup,
    AccessRule,
    # Interfaces
    ISessionStore,
    ISessionPolicy,
    IAccessPolicy,
)
from .session_store import InMemorySessionStore
from .session_policy import SessionPolicy, SessionPolicyError
from .access_policy import AccessPolicy, AuthorizationFault, compile_pattern, normalize_path
from .authenticator import Authenticator, AuthenticationFault

__all__ = [
    # Enums
    "SessionOutcome",
    "RevocationReason",
    "AccessDecision",
    "Requirement",
    # Dataclasses
    "Session",
    "SessionLookup",
    "AccessRule",
    # Interfaces
    "ISessionStore",
    "ISessionPolicy",
    "IAccessPolicy",
    # Implementations
    "InMemorySessionStore",
    "SessionPolicy",
    "AccessPolicy",
    "Authenticator",
    "compile_pattern",
    "normalize_path",
    # Exceptions
    "SessionPolicyError",
    "AuthorizationFault",
    "AuthenticationFault",
]
