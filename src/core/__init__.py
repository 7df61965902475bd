"""
LOT 1: Core

Configuration sécurité et fautes partagées.
"""

from .interfaces import (
    IConfigLoader,
    SecurityConfig,
    SessionSettings,
    CookieSettings,
    PasswordSettings,
    BootstrapSettings,
    SeedPrincipal,
    PortierFault,
    ValidationFault,
    NotFoundFault,
)
from .config_loader import ConfigLoader, ConfigIntegrityError

__all__ = [
    # Interfaces
    "IConfigLoader",
    # Configuration
    "SecurityConfig",
    "SessionSettings",
    "CookieSettings",
    "PasswordSettings",
    "BootstrapSettings",
    "SeedPrincipal",
    # Implementations
    "ConfigLoader",
    # Exceptions
    "ConfigIntegrityError",
    "PortierFault",
    "ValidationFault",
    "NotFoundFault",
]
