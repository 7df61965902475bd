"""
PORTIER - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from pathlib import Path

import pytest

from src.core import BootstrapSettings, PasswordSettings, SecurityConfig, SeedPrincipal
from src.identity import (
    IdentityMapper,
    IdentityService,
    InMemoryIdentityStore,
    PasswordManager,
    RoleRegistry,
)
from src.logging import StructuredLogger


# Coût bcrypt minimal: les tests vérifient le comportement, pas la résistance
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture
def config_path() -> Path:
    """Chemin vers la configuration livrée."""
    return Path(__file__).parent.parent / "config" / "security.yaml"


@pytest.fixture
def logger() -> StructuredLogger:
    """Logger capturant en mémoire, sans sortie."""
    return StructuredLogger("portier.test")


@pytest.fixture
def store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def passwords() -> PasswordManager:
    return PasswordManager(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def registry(store, logger) -> RoleRegistry:
    return RoleRegistry(store, logger)


@pytest.fixture
def identity_service(store, registry, passwords, logger) -> IdentityService:
    return IdentityService(store, registry, passwords, IdentityMapper(logger), logger)


@pytest.fixture
def security_config() -> SecurityConfig:
    """Configuration de test: admin (ADMIN+USER) et user (USER)."""
    return SecurityConfig(
        password=PasswordSettings(bcrypt_rounds=TEST_BCRYPT_ROUNDS),
        bootstrap=BootstrapSettings(
            roles=["ADMIN", "USER"],
            principals=[
                SeedPrincipal(
                    user_name="admin",
                    last_name="Ivanov",
                    phone_number="123-45-67",
                    email="admin@abc.com",
                    password="1",
                    roles=["ADMIN", "USER"],
                ),
                SeedPrincipal(
                    user_name="user",
                    last_name="Sevastianov",
                    phone_number="321-65-98",
                    email="user@abc.com",
                    password="2",
                    roles=["USER"],
                ),
            ],
        ),
    )


@pytest.fixture
def create_payload() -> dict:
    """Entrée de création valide."""
    return {
        "user_name": "bob",
        "last_name": "Marley",
        "phone_number": "555-12-34",
        "email": "bob@abc.com",
        "password": "secret",
        "roles": ["USER"],
    }
