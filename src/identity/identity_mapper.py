"""
LOT 3: Identity Mapper

Représentations de transport des principaux et règles de visibilité:
    - id: ignoré à la création, accepté en mise à jour, renvoyé en sortie
    - password: accepté en entrée, JAMAIS présent en sortie
    - roles: obligatoires en entrée, renvoyés comme noms triés
"""

import re
from typing import Any, Dict, FrozenSet, List, Optional, Set

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from src.core.interfaces import PortierFault, ValidationFault
from src.logging import IStructuredLogger, StructuredLogger

from .interfaces import IIdentityMapper, Principal, Role


PHONE_PATTERN = re.compile(r"^\d{3}-\d{2}-\d{2}$")

# Emplacements de requête préfixés par FastAPI dans "loc"
REQUEST_LOCATIONS = frozenset({"body", "path", "query", "header", "cookie"})


class MappingFault(PortierFault):
    """Attribut obligatoire structurellement absent lors du mappage."""

    status_code = 500


def _role_names(value: Any) -> Any:
    """Accepte "ADMIN", {"name": "ADMIN"} ou Role("ADMIN") pour chaque élément."""
    if value is None or isinstance(value, str):
        return value
    names = []
    for item in value:
        if isinstance(item, Role):
            names.append(item.name)
        elif isinstance(item, dict) and "name" in item:
            names.append(item["name"])
        else:
            names.append(item)
    return names


class _PrincipalInput(BaseModel):
    """Champs communs aux entrées création/mise à jour."""

    model_config = ConfigDict(extra="ignore")

    user_name: str
    last_name: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    roles: Set[str]

    @field_validator("user_name")
    @classmethod
    def _user_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Le nom ne peut pas être vide")
        return value

    @field_validator("last_name")
    @classmethod
    def _last_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Le nom de famille ne peut pas être vide")
        return value

    @field_validator("phone_number")
    @classmethod
    def _phone_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not PHONE_PATTERN.match(value):
            raise ValueError("Le numéro doit respecter le format 123-45-67")
        return value

    @field_validator("roles", mode="before")
    @classmethod
    def _roles_as_names(cls, value: Any) -> Any:
        return _role_names(value)

    @field_validator("roles")
    @classmethod
    def _roles_not_empty(cls, value: Set[str]) -> Set[str]:
        if not value or any(not name.strip() for name in value):
            raise ValueError("Au moins un rôle est requis")
        return value


class PrincipalCreate(_PrincipalInput):
    """Entrée de création. Un id éventuellement fourni est ignoré."""

    password: str

    @field_validator("password")
    @classmethod
    def _password_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Le mot de passe ne peut pas être vide")
        return value


class PrincipalUpdate(_PrincipalInput):
    """Entrée de mise à jour. Mot de passe absent ou vide = inchangé."""

    id: Optional[int] = None
    password: Optional[str] = None


class PrincipalOut(BaseModel):
    """Représentation de sortie. Aucun champ mot de passe n'existe."""

    id: int
    user_name: str
    last_name: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    roles: List[str]


def validation_errors(exc: ValidationError) -> Dict[str, str]:
    """
    Convertit les erreurs pydantic en table champ → message.

    Les préfixes "body", "path" et "query" ajoutés par FastAPI sont ignorés.
    Un corps JSON illisible est rapporté sous "__root__".
    """
    errors: Dict[str, str] = {}
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            errors.setdefault("__root__", "JSON invalide")
            continue
        loc = [str(part) for part in error.get("loc", ()) if part not in REQUEST_LOCATIONS]
        field_name = loc[0] if loc else "__root__"
        if error.get("type") == "missing":
            message = "Champ obligatoire"
        else:
            message = str(error.get("msg", ""))
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
        errors.setdefault(field_name, message)
    return errors


class IdentityMapper(IIdentityMapper):
    """
    Mappage pur entre Principal et représentations de transport.

    Example:
        mapper = IdentityMapper()
        data = mapper.parse_create(payload)
        out = mapper.to_output(principal)
    """

    def __init__(self, logger: Optional[IStructuredLogger] = None) -> None:
        self._logger = logger or StructuredLogger("portier.identity_mapper")

    def to_output(self, principal: Principal) -> PrincipalOut:
        """
        Raises:
            MappingFault: id, user_name ou roles absent
        """
        for attribute in ("id", "user_name", "roles"):
            if getattr(principal, attribute, None) is None:
                self._logger.error("Mappage impossible", missing=attribute)
                raise MappingFault(f"Attribut obligatoire absent: {attribute}")

        return PrincipalOut(
            id=principal.id,
            user_name=principal.user_name,
            last_name=principal.last_name,
            phone_number=principal.phone_number,
            email=principal.email,
            roles=sorted(role.name for role in principal.roles),
        )

    def parse_create(self, payload: Any) -> PrincipalCreate:
        """
        Raises:
            ValidationFault: Champs invalides (table champ → message)
        """
        if isinstance(payload, PrincipalCreate):
            return payload
        try:
            return PrincipalCreate.model_validate(payload)
        except ValidationError as exc:
            raise ValidationFault(validation_errors(exc)) from exc

    def parse_update(self, payload: Any) -> PrincipalUpdate:
        """
        Raises:
            ValidationFault: Champs invalides (table champ → message)
        """
        if isinstance(payload, PrincipalUpdate):
            return payload
        try:
            return PrincipalUpdate.model_validate(payload)
        except ValidationError as exc:
            raise ValidationFault(validation_errors(exc)) from exc

    def to_principal(
        self,
        data: _PrincipalInput,
        roles: FrozenSet[Role],
        password_hash: str,
        principal_id: Optional[int] = None,
    ) -> Principal:
        """Construit le principal à persister à partir d'une entrée validée."""
        return Principal(
            id=principal_id,
            user_name=data.user_name,
            last_name=data.last_name,
            phone_number=data.phone_number,
            email=data.email,
            password=password_hash,
            roles=roles,
        )
