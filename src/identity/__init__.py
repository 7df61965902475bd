"""
LOT 3: Identity

Noyau identité:
- Registre des rôles (get-or-create sans verrou, relecture unique sur conflit)
- Cycle de vie des mots de passe (bcrypt, re-hachage conditionnel)
- Mappage des représentations (mot de passe jamais en sortie)
- Service CRUD des principaux dans une unit of work
"""

from .interfaces import (
    # Dataclasses
    Role,
    Principal,
    # Interfaces
    IIdentityStore,
    IRoleRegistry,
    IPasswordManager,
    IIdentityMapper,
    IIdentityService,
)
from .role_registry import RoleRegistry, IntegrityFault
from .password_manager import PasswordManager
from .identity_mapper import (
    IdentityMapper,
    PrincipalCreate,
    PrincipalUpdate,
    PrincipalOut,
    MappingFault,
    validation_errors,
)
from .identity_service import IdentityService, SaveFault, UpdateFault
from .memory_store import InMemoryIdentityStore
from .bootstrap import DataInitializer

__all__ = [
    # Dataclasses
    "Role",
    "Principal",
    # Interfaces
    "IIdentityStore",
    "IRoleRegistry",
    "IPasswordManager",
    "IIdentityMapper",
    "IIdentityService",
    # Implementations
    "RoleRegistry",
    "PasswordManager",
    "IdentityMapper",
    "IdentityService",
    "InMemoryIdentityStore",
    "DataInitializer",
    # Modèles
    "PrincipalCreate",
    "PrincipalUpdate",
    "PrincipalOut",
    "validation_errors",
    # Exceptions
    "IntegrityFault",
    "MappingFault",
    "SaveFault",
    "UpdateFault",
]
