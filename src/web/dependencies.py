"""
LOT 5: Dépendances FastAPI

Accès aux composants et contrôle d'autorité au niveau des points d'accès.
"""

from typing import Awaitable, Callable

from fastapi import Depends, Request

from src.auth import AccessPolicy, AuthorizationFault, Session

from .container import Components


def get_components(request: Request) -> Components:
    return request.app.state.components


async def current_session(request: Request) -> Session:
    """
    Session active posée par le middleware.

    Raises:
        AuthorizationFault: Aucune session active (401)
    """
    session = getattr(request.state, "session", None)
    if session is None:
        raise AuthorizationFault("Authentification requise", authenticated=False)
    return session


def require_authority(*authorities: str) -> Callable[..., Awaitable[Session]]:
    """
    Exige au moins une des autorités données.

    Example:
        @router.get("", dependencies=[Depends(require_authority("ADMIN"))])
    """

    async def _check(session: Session = Depends(current_session)) -> Session:
        if not AccessPolicy.has_any_authority(session.authorities, authorities):
            raise AuthorizationFault("Accès refusé")
        return session

    return _check
