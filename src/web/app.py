"""
LOT 5: Application FastAPI

Middleware de session et d'autorisation devant chaque requête:
    - non authentifié: 401 {info} sur /api/*, sinon 302 /login
    - session évincée ou expirée: 401 sur /api/*, sinon 302 /login?expired=true
    - autorité insuffisante: 403 {info}

Les fautes métier sont converties en un seul endroit (statut + {info}).
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response

from src.auth import AccessDecision, ISessionStore, SessionOutcome
from src.core import PortierFault, SecurityConfig, ValidationFault
from src.identity import IIdentityStore, validation_errors
from src.logging import StructuredLogger, correlation_id_var

from . import auth_routes, users_api
from .container import Components, build_components


CORRELATION_HEADER = "X-Correlation-ID"
API_PREFIX = "/api/"


def _is_api_path(path: str) -> bool:
    return path.startswith(API_PREFIX)


def _unauthenticated_response(path: str, outcome: SessionOutcome) -> Response:
    expired = outcome is SessionOutcome.EXPIRED
    if _is_api_path(path):
        info = "Session expirée" if expired else "Authentification requise"
        return JSONResponse({"info": info}, status_code=401)
    return RedirectResponse(url="/login?expired=true" if expired else "/login", status_code=302)


def create_app(
    config: Optional[SecurityConfig] = None,
    store: Optional[IIdentityStore] = None,
    session_store: Optional[ISessionStore] = None,
    logger: Optional[StructuredLogger] = None,
) -> FastAPI:
    """
    Construit l'application.

    Les données initiales (rôles, principaux de démonstration) sont créées au démarrage.

    Example:
        app = create_app(ConfigLoader().load())
        # uvicorn src.web.app:app
    """
    components = build_components(config, store, session_store, logger)
    log = components.logger.child("web")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await components.initializer.run()
        yield

    app = FastAPI(title="Portier", lifespan=lifespan)
    app.state.components = components

    @app.middleware("http")
    async def session_enforcement(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        context_token = correlation_id_var.set(correlation_id)
        try:
            path, method = request.url.path, request.method
            lookup = await components.sessions.resolve(
                request.cookies.get(components.config.cookie.name)
            )
            request.state.session = lookup.session if lookup.outcome is SessionOutcome.ACTIVE else None

            decision = components.access.decide(path, method, lookup.authorities)
            if decision is AccessDecision.DENY_UNAUTHENTICATED:
                log.info("Requête non authentifiée", path=path, outcome=lookup.outcome.value)
                response = _unauthenticated_response(path, lookup.outcome)
            elif decision is AccessDecision.DENY_FORBIDDEN:
                log.warn("Accès refusé", path=path, principal_id=lookup.session.principal_id)
                response = JSONResponse({"info": "Accès refusé"}, status_code=403)
            else:
                response = await call_next(request)

            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            correlation_id_var.reset(context_token)

    @app.exception_handler(ValidationFault)
    async def validation_fault_handler(request: Request, exc: ValidationFault):
        return JSONResponse(status_code=exc.status_code, content=exc.errors)

    @app.exception_handler(PortierFault)
    async def portier_fault_handler(request: Request, exc: PortierFault):
        if exc.status_code >= 500:
            log.error("Faute serveur", path=request.url.path, fault=type(exc).__name__, info=exc.info)
        return JSONResponse(status_code=exc.status_code, content={"info": exc.info})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=validation_errors(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        log.critical("Erreur inattendue", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"info": "Erreur interne"})

    app.include_router(auth_routes.router)
    app.include_router(users_api.router)
    return app


def app_factory() -> FastAPI:
    """Point d'entrée uvicorn (--factory): configuration lue depuis config/security.yaml."""
    from src.core import ConfigLoader

    return create_app(ConfigLoader().load())
