"""
Test intégration LOT 1 → LOT 5

Valide la chaîne complète à partir de la configuration livrée:
- LOT 1 : ConfigLoader (config/security.yaml)
- LOT 3 : Données initiales, service identité
- LOT 4 : Authentification, session unique, table d'accès
- LOT 5 : Middleware HTTP et API utilisateurs
"""

import pytest
from fastapi.testclient import TestClient

from src.auth import SessionOutcome
from src.core import ConfigLoader
from src.web import build_components, create_app


COOKIE = "PORTIER_SESSION"


@pytest.fixture
def shipped_config(config_path, security_config):
    """Configuration livrée, coût bcrypt réduit pour les tests."""
    config = ConfigLoader(str(config_path)).load()
    return config.model_copy(update={"password": security_config.password})


def browser(app) -> TestClient:
    return TestClient(app, follow_redirects=False)


def login(client: TestClient, username: str, password: str):
    return client.post("/login", data={"username": username, "password": password})


@pytest.mark.asyncio
async def test_components_from_shipped_config(shipped_config, logger):
    """Démarrage puis connexion sans HTTP."""
    components = build_components(shipped_config, logger=logger)

    created = await components.initializer.run()
    session = await components.authenticator.authenticate("admin", "1")

    assert [p.user_name for p in created] == ["admin", "user"]
    assert session.authorities == frozenset({"ADMIN", "USER"})
    assert (await components.sessions.resolve(session.session_id)).outcome is SessionOutcome.ACTIVE


@pytest.mark.asyncio
async def test_second_start_creates_nothing(shipped_config, logger):
    components = build_components(shipped_config, logger=logger)

    await components.initializer.run()
    assert await components.initializer.run() == []

    roles = await components.store.find_all_roles()
    assert sorted(role.name for role in roles) == ["ADMIN", "USER"]


def test_admin_manages_users_end_to_end(shipped_config, logger):
    """
    Scénario:
        1. admin se connecte, crée carol (USER)
        2. carol se connecte, lit sa représentation, est refusée sur /admin
        3. admin met à jour carol puis la supprime
        4. le jeton de carol ne donne plus accès
    """
    app = create_app(shipped_config, logger=logger)
    with TestClient(app, follow_redirects=False) as admin:
        assert login(admin, "admin", "1").headers["location"] == "/admin"

        created = admin.post(
            "/api/v1/users",
            json={
                "user_name": "carol",
                "last_name": "King",
                "phone_number": "111-22-33",
                "email": "carol@abc.com",
                "password": "tapestry",
                "roles": ["USER"],
            },
        )
        assert created.status_code == 201
        carol_id = created.json()["id"]

        carol = browser(app)
        assert login(carol, "carol", "tapestry").headers["location"] == "/user"
        assert carol.get("/api/v1/users/user").json()["email"] == "carol@abc.com"
        assert carol.get("/admin").status_code == 403

        updated = admin.put(
            f"/api/v1/users/{carol_id}",
            json={"user_name": "carol", "last_name": "Queen", "roles": ["USER", "ADMIN"]},
        )
        assert updated.json()["roles"] == ["ADMIN", "USER"]

        assert admin.delete(f"/api/v1/users/{carol_id}").status_code == 200
        assert carol.get("/api/v1/users/user").status_code == 401
        assert login(browser(app), "carol", "tapestry").headers["location"] == "/login?error=true"


def test_single_session_across_browsers(shipped_config, logger):
    """Une connexion depuis un second navigateur expire la première."""
    app = create_app(shipped_config, logger=logger)
    with TestClient(app, follow_redirects=False) as first:
        login(first, "user", "2")
        first_token = first.cookies[COOKIE]

        second = browser(app)
        login(second, "user", "2")

        assert first.get("/user").headers["location"] == "/login?expired=true"
        assert second.get("/user").status_code == 200

        # Rejeu manuel du jeton évincé
        replay = TestClient(app, follow_redirects=False, cookies={COOKIE: first_token})
        assert replay.get("/api/v1/users/user").json() == {"info": "Session expirée"}

        # Reconnexion depuis le premier navigateur: la seconde expire à son tour
        login(first, "user", "2")
        assert first.get("/user").status_code == 200
        assert second.get("/user").headers["location"] == "/login?expired=true"


def test_logout_then_login_again(shipped_config, logger):
    app = create_app(shipped_config, logger=logger)
    with TestClient(app, follow_redirects=False) as client:
        login(client, "admin", "1")
        assert client.get("/logout").headers["location"] == "/login?logout"
        assert client.get("/admin").headers["location"] == "/login"

        login(client, "admin", "1")
        assert client.get("/admin").status_code == 200


def test_no_password_material_in_logs_or_responses(shipped_config, logger):
    app = create_app(shipped_config, logger=logger)
    with TestClient(app, follow_redirects=False) as admin:
        login(admin, "admin", "1")
        listing = admin.get("/api/v1/users").text
        login(browser(app), "user", "not-the-password")

    dumped = " ".join(entry.to_json() for entry in logger.get_entries())
    assert "$2b$" not in listing
    assert "password" not in listing
    assert "not-the-password" not in dumped
    assert "$2b$" not in dumped
