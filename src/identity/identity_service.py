"""
LOT 3: Identity Service

Orchestration CRUD des principaux:
    create: rôles → encode → persistance → mappage
    update: chargement → rôles → process → persistance → mappage

Chaque écriture s'exécute dans une unit of work du store: rôle résolu sans
mot de passe fixé (ou l'inverse) n'est jamais observable.
"""

import asyncio
from typing import Any, List, Optional

from src.core.interfaces import NotFoundFault, PortierFault, ValidationFault
from src.logging import IStructuredLogger, StructuredLogger

from .identity_mapper import IdentityMapper, PrincipalOut
from .interfaces import (
    IIdentityService,
    IIdentityStore,
    IPasswordManager,
    IRoleRegistry,
    Principal,
)
from .role_registry import IntegrityFault


class SaveFault(PortierFault):
    """Échec inattendu lors de la création d'un principal."""

    status_code = 500


class UpdateFault(PortierFault):
    """Échec inattendu lors de la mise à jour d'un principal."""

    status_code = 500


# Fautes propagées telles quelles, jamais enveloppées
PASSTHROUGH_FAULTS = (NotFoundFault, IntegrityFault, ValidationFault)


def not_found_message(principal_id: int) -> str:
    return f"Utilisateur avec l'ID {principal_id} introuvable"


class IdentityService(IIdentityService):
    """
    Service identité.

    Example:
        service = IdentityService(store, registry, passwords, mapper)
        created = await service.create({"user_name": "bob", ...})
        await service.delete(created.id)
    """

    def __init__(
        self,
        store: IIdentityStore,
        roles: IRoleRegistry,
        passwords: IPasswordManager,
        mapper: Optional[IdentityMapper] = None,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        self._store = store
        self._roles = roles
        self._passwords = passwords
        self._mapper = mapper or IdentityMapper()
        self._logger = logger or StructuredLogger("portier.identity_service")

    async def create(self, data: Any) -> PrincipalOut:
        """
        Crée un principal.

        Raises:
            ValidationFault: Entrée invalide
            IntegrityFault: Défaut du registre des rôles
            SaveFault: Toute autre erreur avant persistance réussie
        """
        payload = self._mapper.parse_create(data)
        try:
            async with self._store.unit_of_work():
                roles = await self._roles.validate_roles(payload.roles)
                # bcrypt est volontairement lent: hors de la boucle d'événements
                password_hash = await asyncio.to_thread(self._passwords.encode, payload.password)
                saved = await self._store.save_principal(
                    self._mapper.to_principal(payload, roles, password_hash)
                )
        except PASSTHROUGH_FAULTS:
            raise
        except Exception as exc:
            self._logger.error("Échec création utilisateur", user_name=payload.user_name, error=str(exc))
            raise SaveFault("Erreur lors de l'enregistrement de l'utilisateur") from exc

        self._logger.info("Utilisateur créé", principal_id=saved.id, roles=sorted(saved.authorities))
        return self._mapper.to_output(saved)

    async def update(self, principal_id: int, data: Any) -> PrincipalOut:
        """
        Met à jour un principal. L'id du chemin l'emporte sur celui du corps.

        Raises:
            NotFoundFault: Principal absent
            ValidationFault: Entrée invalide
            IntegrityFault: Défaut du registre des rôles
            UpdateFault: Toute autre erreur avant persistance réussie
        """
        payload = self._mapper.parse_update(data)
        try:
            async with self._store.unit_of_work():
                existing = await self._store.find_principal_by_id(principal_id)
                if existing is None:
                    raise NotFoundFault(not_found_message(principal_id))
                roles = await self._roles.validate_roles(payload.roles)
                password_hash = await asyncio.to_thread(
                    self._passwords.process, existing.password, payload.password
                )
                saved = await self._store.save_principal(
                    self._mapper.to_principal(payload, roles, password_hash, principal_id=principal_id)
                )
        except PASSTHROUGH_FAULTS:
            raise
        except Exception as exc:
            self._logger.error("Échec mise à jour utilisateur", principal_id=principal_id, error=str(exc))
            raise UpdateFault("Erreur lors de la mise à jour de l'utilisateur") from exc

        self._logger.info(
            "Utilisateur mis à jour",
            principal_id=principal_id,
            password_changed=saved.password != existing.password,
        )
        return self._mapper.to_output(saved)

    async def delete(self, principal_id: int) -> str:
        """
        Supprime un principal. Aucun appel de suppression n'atteint le store s'il est absent.

        Returns:
            Message de confirmation

        Raises:
            NotFoundFault: Principal absent (le message contient l'id)
        """
        async with self._store.unit_of_work():
            if not await self._store.exists_principal(principal_id):
                raise NotFoundFault(not_found_message(principal_id))
            await self._store.delete_principal(principal_id)

        self._logger.info("Utilisateur supprimé", principal_id=principal_id)
        return f"Utilisateur avec l'ID {principal_id} supprimé"

    async def list(self) -> List[PrincipalOut]:
        """Tous les principaux, par identifiant croissant (liste vide si aucun)."""
        principals = await self._store.find_all_principals()
        return [self._mapper.to_output(p) for p in sorted(principals, key=lambda p: p.id)]

    async def list_by_role(self, role_name: str) -> List[PrincipalOut]:
        """
        Principaux détenant le rôle, par identifiant croissant.

        Raises:
            NotFoundFault: Rôle inconnu (jamais créé par une lecture)
        """
        principals = await self._roles.principals_with_role(role_name)
        return [self._mapper.to_output(p) for p in sorted(principals, key=lambda p: p.id)]

    async def get_by_id(self, principal_id: int) -> PrincipalOut:
        """
        Raises:
            NotFoundFault: Principal absent
        """
        principal = await self._store.find_principal_by_id(principal_id)
        if principal is None:
            raise NotFoundFault(not_found_message(principal_id))
        return self._mapper.to_output(principal)

    async def get_principal_by_name(self, user_name: str) -> Optional[Principal]:
        """Principal persisté (avec hash) pour l'authentification."""
        return await self._store.find_principal_by_name(user_name)
