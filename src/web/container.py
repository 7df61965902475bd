"""
LOT 5: Assemblage des composants

Construit le graphe d'objets à partir de la configuration sécurité.
Aucun état global: l'application reçoit le conteneur dans app.state.
"""

from dataclasses import dataclass
from typing import Optional

from src.auth import (
    AccessPolicy,
    Authenticator,
    InMemorySessionStore,
    ISessionStore,
    SessionPolicy,
)
from src.core import SecurityConfig
from src.identity import (
    DataInitializer,
    IdentityMapper,
    IdentityService,
    IIdentityStore,
    InMemoryIdentityStore,
    PasswordManager,
    RoleRegistry,
)
from src.logging import LogConfig, StructuredLogger, stderr_handler


@dataclass
class Components:
    """Composants partagés par toutes les requêtes du processus."""

    config: SecurityConfig
    logger: StructuredLogger
    store: IIdentityStore
    roles: RoleRegistry
    passwords: PasswordManager
    mapper: IdentityMapper
    identity: IdentityService
    session_store: ISessionStore
    sessions: SessionPolicy
    access: AccessPolicy
    authenticator: Authenticator
    initializer: DataInitializer


def build_components(
    config: Optional[SecurityConfig] = None,
    store: Optional[IIdentityStore] = None,
    session_store: Optional[ISessionStore] = None,
    logger: Optional[StructuredLogger] = None,
) -> Components:
    """
    Args:
        config: Configuration sécurité (défaut: valeurs par défaut)
        store: Store identité (défaut: mémoire)
        session_store: Store de sessions (défaut: mémoire, portée processus)
        logger: Logger racine (défaut: JSON sur stderr)
    """
    config = config or SecurityConfig()
    logger = logger or StructuredLogger("portier", LogConfig(), output_handler=stderr_handler)
    store = store or InMemoryIdentityStore()
    session_store = session_store or InMemorySessionStore()

    roles = RoleRegistry(store, logger.child("role_registry"))
    passwords = PasswordManager(rounds=config.password.bcrypt_rounds)
    mapper = IdentityMapper(logger.child("identity_mapper"))
    identity = IdentityService(store, roles, passwords, mapper, logger.child("identity_service"))
    sessions = SessionPolicy(session_store, config.session, logger.child("session_policy"))

    return Components(
        config=config,
        logger=logger,
        store=store,
        roles=roles,
        passwords=passwords,
        mapper=mapper,
        identity=identity,
        session_store=session_store,
        sessions=sessions,
        access=AccessPolicy(logger=logger.child("access_policy")),
        authenticator=Authenticator(store, passwords, sessions, logger.child("authenticator")),
        initializer=DataInitializer(store, roles, identity, config.bootstrap, logger.child("bootstrap")),
    )
