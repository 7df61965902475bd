"""
LOT 3: Bootstrap Data

Garantit les rôles de base et crée les principaux de démonstration au démarrage.
Idempotent: un principal existant (même nom) n'est jamais recréé ni modifié.
"""

from typing import List, Optional

from src.core.interfaces import BootstrapSettings
from src.logging import IStructuredLogger, StructuredLogger

from .identity_mapper import PrincipalOut
from .identity_service import IdentityService
from .interfaces import IIdentityStore
from .role_registry import RoleRegistry


class DataInitializer:
    """
    Initialisation des données.

    Example:
        initializer = DataInitializer(store, registry, service, config.bootstrap)
        created = await initializer.run()
    """

    def __init__(
        self,
        store: IIdentityStore,
        roles: RoleRegistry,
        service: IdentityService,
        settings: BootstrapSettings,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        self._store = store
        self._roles = roles
        self._service = service
        self._settings = settings
        self._logger = logger or StructuredLogger("portier.bootstrap")

    async def run(self) -> List[PrincipalOut]:
        """
        Returns:
            Principaux effectivement créés lors de cet appel
        """
        for name in self._settings.roles:
            await self._roles.resolve(name)

        created: List[PrincipalOut] = []
        for seed in self._settings.principals:
            if await self._store.find_principal_by_name(seed.user_name) is not None:
                continue
            created.append(await self._service.create(seed.model_dump()))

        self._logger.info(
            "Données initiales prêtes",
            roles=list(self._settings.roles),
            created=[p.user_name for p in created],
        )
        return created
