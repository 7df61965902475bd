"""
LOT 3: Role Registry

Get-or-create idempotent des rôles, sans verrou.

Deux écrivains concurrents peuvent trouver le rôle absent et tenter tous deux
l'insertion; le perdant reçoit None du store et relit une seule fois.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional

from src.core.interfaces import NotFoundFault, PortierFault, ValidationFault
from src.logging import IStructuredLogger, StructuredLogger

from .interfaces import IIdentityStore, IRoleRegistry, Principal, Role


class IntegrityFault(PortierFault):
    """Rôle introuvable après conflit et relecture. Signale un défaut, pas une erreur utilisateur."""

    status_code = 404


class RoleRegistry(IRoleRegistry):
    """
    Registre des rôles.

    Example:
        registry = RoleRegistry(store)
        admin = await registry.resolve("ADMIN")
        roles = await registry.validate_roles({"USER", "ADMIN"})
    """

    def __init__(self, store: IIdentityStore, logger: Optional[IStructuredLogger] = None) -> None:
        self._store = store
        self._logger = logger or StructuredLogger("portier.role_registry")

    async def resolve(self, name: str) -> Role:
        """
        Recherche le rôle; le crée s'il est absent.

        Raises:
            ValidationFault: Nom vide
            IntegrityFault: Conflit d'unicité mais rôle toujours absent à la relecture
        """
        if not name or not name.strip():
            raise ValidationFault({"roles": "Le nom du rôle ne peut pas être vide"})

        role = await self._store.find_role_by_name(name)
        if role is not None:
            return role

        role = await self._store.insert_role_if_absent(name)
        if role is not None:
            self._logger.info("Rôle créé", role=name, role_id=role.id)
            return role

        # Un autre écrivain l'a inséré entre la lecture et l'insertion
        self._logger.warn("Conflit à la création du rôle, relecture", role=name)
        role = await self._store.find_role_by_name(name)
        if role is None:
            self._logger.critical("Rôle introuvable après conflit", role=name)
            raise IntegrityFault(f"Rôle {name} introuvable après conflit d'unicité")
        return role

    async def validate_roles(self, names: Iterable[str]) -> FrozenSet[Role]:
        """
        Résout chaque nom. Un principal n'est jamais stocké avec un nom non résolu.

        Raises:
            ValidationFault: Aucun rôle fourni
        """
        unique_names = sorted(set(names or ()))
        if not unique_names:
            raise ValidationFault({"roles": "Au moins un rôle est requis"})

        resolved: Dict[int, Role] = {}
        for name in unique_names:
            role = await self.resolve(name)
            resolved[role.id] = role
        return frozenset(resolved.values())

    async def lookup(self, name: str) -> Role:
        """
        Conversion explicite nom → Role à la frontière des formulaires.

        Raises:
            NotFoundFault: Rôle inconnu
        """
        role = await self._store.find_role_by_name(name)
        if role is None:
            raise NotFoundFault(f"Rôle {name} introuvable")
        return role

    async def principals_with_role(self, name: str) -> List[Principal]:
        """Principaux détenant le rôle (calculé à la demande)."""
        role = await self.lookup(name)
        return await self._store.find_principals_by_role(role.name)
