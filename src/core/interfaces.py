"""
PORTIER - LOT 1 Core Interfaces
Contrats et types partagés: configuration sécurité et hiérarchie des fautes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ══════════════════════════════════════════════════════════════════════════════
# FAUTES
# ══════════════════════════════════════════════════════════════════════════════


class PortierFault(Exception):
    """
    Racine de toutes les fautes métier.

    Attributes:
        info: Message destiné à l'appelant (corps JSON {"info": ...})
        status_code: Statut HTTP associé au type de faute
    """

    status_code: int = 500

    def __init__(self, info: str) -> None:
        self.info = info
        super().__init__(info)


class ValidationFault(PortierFault):
    """Entrée malformée. Porte une table champ → message."""

    status_code = 400

    def __init__(self, errors: Dict[str, str], info: str = "Données invalides") -> None:
        self.errors = dict(errors)
        super().__init__(info)


class NotFoundFault(PortierFault):
    """Principal ou rôle référencé absent."""

    status_code = 404


# ══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ══════════════════════════════════════════════════════════════════════════════


class SessionSettings(BaseModel):
    """Politique de session (plafond, inactivité, durée absolue)."""

    model_config = ConfigDict(extra="forbid")

    max_sessions_per_principal: int = Field(default=1, ge=1)
    inactivity_timeout_seconds: int = Field(default=1800, gt=0)
    max_lifetime_seconds: int = Field(default=1800, gt=0)


class CookieSettings(BaseModel):
    """Attributs du cookie de session."""

    model_config = ConfigDict(extra="forbid")

    name: str = "PORTIER_SESSION"
    http_only: bool = True
    secure: bool = False
    same_site: str = "lax"
    max_age_seconds: int = Field(default=1800, gt=0)

    @field_validator("http_only")
    @classmethod
    def _http_only_required(cls, value: bool) -> bool:
        if not value:
            raise ValueError("Le cookie de session doit rester inaccessible aux scripts")
        return value

    @field_validator("same_site")
    @classmethod
    def _same_site_known(cls, value: str) -> str:
        if value.lower() not in ("lax", "strict", "none"):
            raise ValueError(f"same_site inconnu: {value}")
        return value.lower()


class PasswordSettings(BaseModel):
    """Paramètres de hachage bcrypt."""

    model_config = ConfigDict(extra="forbid")

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class SeedPrincipal(BaseModel):
    """Principal créé au démarrage s'il n'existe pas encore."""

    model_config = ConfigDict(extra="forbid")

    user_name: str
    last_name: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    password: str
    roles: List[str]


class BootstrapSettings(BaseModel):
    """Données initiales: rôles garantis et principaux de démonstration."""

    model_config = ConfigDict(extra="forbid")

    roles: List[str] = Field(default_factory=lambda: ["ADMIN", "USER"])
    principals: List[SeedPrincipal] = Field(default_factory=list)


class SecurityConfig(BaseModel):
    """Configuration complète du noyau identité et accès."""

    model_config = ConfigDict(extra="forbid")

    version: str = "1.0"
    session: SessionSettings = Field(default_factory=SessionSettings)
    cookie: CookieSettings = Field(default_factory=CookieSettings)
    password: PasswordSettings = Field(default_factory=PasswordSettings)
    bootstrap: BootstrapSettings = Field(default_factory=BootstrapSettings)

    @model_validator(mode="after")
    def _seed_roles_declared(self) -> "SecurityConfig":
        declared = set(self.bootstrap.roles)
        for seed in self.bootstrap.principals:
            missing = [role for role in seed.roles if role not in declared]
            if missing:
                raise ValueError(f"Principal {seed.user_name}: rôles non déclarés {missing}")
        return self


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge la configuration sécurité depuis un fichier YAML."""

    @abstractmethod
    def load(self, path: Optional[Union[str, Path]] = None) -> SecurityConfig:
        """
        Charge et valide la configuration.

        Raises:
            ConfigIntegrityError: Fichier absent ou structure invalide
        """
        pass
