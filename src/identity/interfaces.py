"""
LOT 3: Interfaces Identity

Contrats du noyau identité: registre des rôles, cycle de vie des mots de passe,
mappage des représentations et orchestration CRUD des principaux.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, FrozenSet, Iterable, List, Optional


@dataclass(frozen=True)
class Role:
    """
    Autorité nommée attribuable à un principal.

    Attributes:
        id: Identifiant attribué par le store
        name: Nom unique, sensible à la casse (ex: "ADMIN")
    """

    id: int
    name: str


@dataclass(frozen=True)
class Principal:
    """
    Utilisateur persisté.

    Le principal référence ses rôles; la relation inverse est calculée
    par le store à la demande (find_principals_by_role).

    Attributes:
        user_name: Nom affiché, utilisé aussi comme identifiant de connexion
        last_name: Nom de famille
        email: Adresse email
        password: Hash bcrypt (jamais vide une fois persisté)
        roles: Rôles détenus (au moins un)
        phone_number: Téléphone au format 123-45-67
        id: Identifiant attribué à la création, immuable ensuite
    """

    user_name: str
    last_name: str
    email: Optional[str]
    password: str
    roles: FrozenSet[Role] = field(default_factory=frozenset)
    phone_number: Optional[str] = None
    id: Optional[int] = None

    @property
    def authorities(self) -> FrozenSet[str]:
        """Noms des rôles détenus."""
        return frozenset(role.name for role in self.roles)


class IIdentityStore(ABC):
    """
    Interface store persistant principaux/rôles.

    Chaque opération de création, mise à jour ou suppression d'un principal
    s'exécute dans une unit_of_work: tout est appliqué ou rien ne l'est.
    """

    @abstractmethod
    def unit_of_work(self) -> AsyncContextManager[None]:
        """Frontière transactionnelle explicite (rollback si exception)."""
        pass

    @abstractmethod
    async def find_role_by_name(self, name: str) -> Optional[Role]:
        """Recherche un rôle par nom exact."""
        pass

    @abstractmethod
    async def insert_role_if_absent(self, name: str) -> Optional[Role]:
        """
        Insère un rôle.

        Returns:
            Role créé, ou None si un rôle du même nom existe déjà (conflit d'unicité)
        """
        pass

    @abstractmethod
    async def find_principals_by_role(self, role_name: str) -> List[Principal]:
        """Principaux détenant le rôle, triés par identifiant."""
        pass

    @abstractmethod
    async def save_principal(self, principal: Principal) -> Principal:
        """Insère (id None) ou remplace (id existant) un principal."""
        pass

    @abstractmethod
    async def find_principal_by_id(self, principal_id: int) -> Optional[Principal]:
        pass

    @abstractmethod
    async def find_principal_by_name(self, user_name: str) -> Optional[Principal]:
        pass

    @abstractmethod
    async def find_all_principals(self) -> List[Principal]:
        pass

    @abstractmethod
    async def delete_principal(self, principal_id: int) -> None:
        """Supprime le principal et ses associations, jamais les rôles."""
        pass

    @abstractmethod
    async def exists_principal(self, principal_id: int) -> bool:
        pass


class IRoleRegistry(ABC):
    """Résolution idempotente des rôles par nom."""

    @abstractmethod
    async def resolve(self, name: str) -> Role:
        """
        Get-or-create d'un rôle.

        Raises:
            IntegrityFault: Rôle toujours introuvable après relecture
        """
        pass

    @abstractmethod
    async def validate_roles(self, names: Iterable[str]) -> FrozenSet[Role]:
        """
        Résout chaque nom et déduplique.

        Raises:
            ValidationFault: Ensemble vide
        """
        pass

    @abstractmethod
    async def lookup(self, name: str) -> Role:
        """Résolution sans création (NotFoundFault si absent)."""
        pass

    @abstractmethod
    async def principals_with_role(self, name: str) -> List[Principal]:
        pass


class IPasswordManager(ABC):
    """Hachage à sens unique et décision de re-hachage."""

    @abstractmethod
    def encode(self, plaintext: str) -> str:
        pass

    @abstractmethod
    def verify(self, plaintext: str, hashed: str) -> bool:
        pass

    @abstractmethod
    def process(self, existing_hash: str, supplied: Optional[str]) -> str:
        """
        Retourne le hash à stocker après une mise à jour.

        Args:
            existing_hash: Hash actuellement persisté
            supplied: Nouveau mot de passe en clair (None ou "" = inchangé)
        """
        pass


class IIdentityMapper(ABC):
    """Conversion principal ↔ représentations de transport."""

    @abstractmethod
    def to_output(self, principal: Principal) -> Any:
        """Représentation de sortie (sans mot de passe)."""
        pass

    @abstractmethod
    def parse_create(self, payload: Any) -> Any:
        pass

    @abstractmethod
    def parse_update(self, payload: Any) -> Any:
        pass


class IIdentityService(ABC):
    """Orchestration CRUD des principaux."""

    @abstractmethod
    async def create(self, data: Any) -> Any:
        pass

    @abstractmethod
    async def update(self, principal_id: int, data: Any) -> Any:
        pass

    @abstractmethod
    async def delete(self, principal_id: int) -> str:
        pass

    @abstractmethod
    async def list(self) -> List[Any]:
        pass

    @abstractmethod
    async def get_by_id(self, principal_id: int) -> Any:
        pass
