"""
Tests unitaires DataInitializer
"""

import pytest

from src.core import BootstrapSettings
from src.identity import DataInitializer


@pytest.fixture
def initializer(store, registry, identity_service, security_config, logger):
    return DataInitializer(store, registry, identity_service, security_config.bootstrap, logger)


class TestDataInitializer:
    """Rôles de base et principaux de démonstration."""

    @pytest.mark.asyncio
    async def test_roles_and_principals_seeded(self, initializer, store, passwords):
        created = await initializer.run()

        assert [p.user_name for p in created] == ["admin", "user"]
        assert await store.find_role_by_name("ADMIN") is not None
        assert await store.find_role_by_name("USER") is not None

        admin = await store.find_principal_by_name("admin")
        assert admin.authorities == frozenset({"ADMIN", "USER"})
        assert passwords.verify("1", admin.password)

        user = await store.find_principal_by_name("user")
        assert user.authorities == frozenset({"USER"})

    @pytest.mark.asyncio
    async def test_idempotent(self, initializer, store):
        await initializer.run()
        admin_before = await store.find_principal_by_name("admin")

        created = await initializer.run()

        assert created == []
        assert len(await store.find_all_principals()) == 2
        assert len(await store.find_all_roles()) == 2
        assert await store.find_principal_by_name("admin") == admin_before

    @pytest.mark.asyncio
    async def test_roles_only(self, store, registry, identity_service):
        initializer = DataInitializer(store, registry, identity_service, BootstrapSettings())

        assert await initializer.run() == []
        assert [r.name for r in await store.find_all_roles()] == ["ADMIN", "USER"]

    @pytest.mark.asyncio
    async def test_seed_passwords_not_logged(self, initializer, logger):
        await initializer.run()

        dumped = " ".join(e.to_json() for e in logger.get_entries())
        assert "Données initiales prêtes" in dumped
        assert '"password": "1"' not in dumped
