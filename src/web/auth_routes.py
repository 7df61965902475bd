"""
LOT 5: Routes de connexion et pages

POST /login  → 302 /admin ou /user avec cookie neuf, sinon /login?error=true
/logout      → 302 /login?logout, cookie supprimé
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse, Response

from src.auth import AuthenticationFault, Session
from src.core import CookieSettings

from .container import Components
from .dependencies import current_session, get_components, require_authority


router = APIRouter(tags=["auth"])


def set_session_cookie(response: Response, settings: CookieSettings, token: str) -> None:
    """Cookie inaccessible aux scripts, durée de vie bornée."""
    response.set_cookie(
        key=settings.name,
        value=token,
        max_age=settings.max_age_seconds,
        httponly=settings.http_only,
        secure=settings.secure,
        samesite=settings.same_site,
        path="/",
    )


@router.get("/login")
async def login_page(request: Request) -> Dict[str, Any]:
    """État du formulaire de connexion (indicateurs error, expired, logout)."""
    params = request.query_params
    return {
        "info": "Veuillez vous connecter",
        "error": "error" in params,
        "expired": "expired" in params,
        "logout": "logout" in params,
    }


@router.post("/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    components: Components = Depends(get_components),
) -> Response:
    cookie = components.config.cookie
    anonymous_token = request.cookies.get(cookie.name)
    try:
        session = await components.authenticator.authenticate(username, password, anonymous_token)
    except AuthenticationFault:
        return RedirectResponse(url="/login?error=true", status_code=302)

    target = "/admin" if "ADMIN" in session.authorities else "/user"
    response = RedirectResponse(url=target, status_code=302)
    set_session_cookie(response, cookie, session.session_id)
    return response


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(request: Request, components: Components = Depends(get_components)) -> Response:
    cookie = components.config.cookie
    await components.sessions.logout(request.cookies.get(cookie.name))
    response = RedirectResponse(url="/login?logout", status_code=302)
    response.delete_cookie(cookie.name, path="/")
    return response


@router.get("/user")
async def user_page(
    session: Session = Depends(current_session),
    components: Components = Depends(get_components),
) -> Dict[str, Any]:
    """Page utilisateur: le principal connecté."""
    principal = await components.identity.get_by_id(session.principal_id)
    return {"principal": principal.model_dump()}


@router.get("/admin")
async def admin_page(
    _: Session = Depends(require_authority("ADMIN")),
    components: Components = Depends(get_components),
) -> Dict[str, Any]:
    """Page d'administration: tous les principaux par identifiant."""
    principals = await components.identity.list()
    return {"principals": [p.model_dump() for p in principals]}
