"""
LOT 4: Authenticator

Vérification des identifiants puis ouverture de session.
Le message d'échec ne révèle jamais quelle partie était fausse.
"""

import asyncio
from typing import Optional

from src.core.interfaces import PortierFault
from src.identity.interfaces import IIdentityStore, IPasswordManager
from src.logging import IStructuredLogger, StructuredLogger

from .interfaces import ISessionPolicy, Session


class AuthenticationFault(PortierFault):
    """Identifiants refusés."""

    status_code = 401

    def __init__(self, info: str = "Identifiants invalides") -> None:
        super().__init__(info)


class Authenticator:
    """
    Authentification par nom d'utilisateur et mot de passe.

    Example:
        authenticator = Authenticator(store, passwords, sessions)
        session = await authenticator.authenticate("admin", "1")
    """

    def __init__(
        self,
        store: IIdentityStore,
        passwords: IPasswordManager,
        sessions: ISessionPolicy,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        self._store = store
        self._passwords = passwords
        self._sessions = sessions
        self._logger = logger or StructuredLogger("portier.authenticator")

    async def authenticate(
        self, user_name: str, password: str, anonymous_token: Optional[str] = None
    ) -> Session:
        """
        Raises:
            AuthenticationFault: Principal inconnu ou mot de passe incorrect
        """
        if not user_name or not password:
            raise AuthenticationFault()

        principal = await self._store.find_principal_by_name(user_name)
        if principal is None or principal.id is None:
            self._logger.warn("Échec d'authentification", user_name=user_name)
            raise AuthenticationFault()

        verified = await asyncio.to_thread(self._passwords.verify, password, principal.password)
        if not verified:
            self._logger.warn("Échec d'authentification", user_name=user_name)
            raise AuthenticationFault()

        session = await self._sessions.login(principal.id, principal.authorities, anonymous_token)
        self._logger.info("Authentification réussie", principal_id=principal.id)
        return session
