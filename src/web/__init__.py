"""
LOT 5: Web

Liaison HTTP (FastAPI) du noyau identité et accès.
"""

from .app import create_app, app_factory
from .container import Components, build_components
from .dependencies import current_session, get_components, require_authority

__all__ = [
    "create_app",
    "app_factory",
    "Components",
    "build_components",
    "current_session",
    "get_components",
    "require_authority",
]
