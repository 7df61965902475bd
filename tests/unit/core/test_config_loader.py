"""
Tests unitaires pour ConfigLoader.
"""

import pytest

from src.core import (
    ConfigIntegrityError,
    ConfigLoader,
    IConfigLoader,
    NotFoundFault,
    PortierFault,
    SecurityConfig,
    ValidationFault,
)


class TestConfigLoader:
    """Tests pour ConfigLoader."""

    def setup_method(self):
        """Setup avant chaque test."""
        self.loader = ConfigLoader()

    def test_implements_interface(self):
        assert isinstance(self.loader, IConfigLoader)

    def test_load_shipped_config(self, config_path):
        """La configuration livrée est valide."""
        config = self.loader.load(config_path)

        assert isinstance(config, SecurityConfig)
        assert config.session.max_sessions_per_principal == 1
        assert config.session.inactivity_timeout_seconds == 1800
        assert config.cookie.http_only is True
        assert config.cookie.max_age_seconds == 1800
        assert config.bootstrap.roles == ["ADMIN", "USER"]

        admin = next(p for p in config.bootstrap.principals if p.user_name == "admin")
        assert set(admin.roles) == {"ADMIN", "USER"}

    def test_load_nonexistent_file_raises(self, tmp_path):
        """Fichier absent → ConfigIntegrityError."""
        missing = tmp_path / "absent.yaml"

        with pytest.raises(ConfigIntegrityError) as exc_info:
            self.loader.load(missing)

        assert "Configuration non trouvée" in str(exc_info.value)

    def test_invalid_yaml_raises(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("session: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigIntegrityError, match="YAML"):
            self.loader.load(broken)

    def test_empty_file_uses_defaults(self, tmp_path):
        empty = tmp_path / "empty.yaml"
        empty.write_text("", encoding="utf-8")

        config = self.loader.load(empty)

        assert config.cookie.name == "PORTIER_SESSION"
        assert config.password.bcrypt_rounds == 12

    def test_non_mapping_root_raises(self, tmp_path):
        listing = tmp_path / "list.yaml"
        listing.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigIntegrityError, match="objet"):
            self.loader.load(listing)

    def test_constructor_path_used_by_default(self, config_path):
        loader = ConfigLoader(config_path)

        assert loader.load().version == "1.0"


class TestConfigValidation:
    """Tests de validation de structure."""

    def setup_method(self):
        self.loader = ConfigLoader()

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigIntegrityError, match="session"):
            self.loader.load_dict({"session": "oui"})

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigIntegrityError, match="Configuration invalide"):
            self.loader.load_dict({"session": {"max_sessions": 3}})

    def test_session_cap_at_least_one(self):
        with pytest.raises(ConfigIntegrityError):
            self.loader.load_dict({"session": {"max_sessions_per_principal": 0}})

    def test_cookie_must_stay_http_only(self):
        with pytest.raises(ConfigIntegrityError, match="http_only"):
            self.loader.load_dict({"cookie": {"http_only": False}})

    def test_unknown_same_site_rejected(self):
        with pytest.raises(ConfigIntegrityError):
            self.loader.load_dict({"cookie": {"same_site": "sometimes"}})

    def test_bcrypt_rounds_bounds(self):
        with pytest.raises(ConfigIntegrityError):
            self.loader.load_dict({"password": {"bcrypt_rounds": 3}})

    def test_seed_role_must_be_declared(self):
        raw = {
            "bootstrap": {
                "roles": ["USER"],
                "principals": [
                    {"user_name": "a", "last_name": "b", "password": "p", "roles": ["ADMIN"]}
                ],
            }
        }

        with pytest.raises(ConfigIntegrityError, match="ADMIN"):
            self.loader.load_dict(raw)

    def test_version_must_be_string(self):
        with pytest.raises(ConfigIntegrityError, match="version"):
            self.loader.load_dict({"version": 2})


class TestFaults:
    """Hiérarchie des fautes partagées."""

    def test_validation_fault_carries_field_map(self):
        fault = ValidationFault({"roles": "Au moins un rôle est requis"})

        assert isinstance(fault, PortierFault)
        assert fault.status_code == 400
        assert fault.errors == {"roles": "Au moins un rôle est requis"}

    def test_not_found_fault_status(self):
        fault = NotFoundFault("Utilisateur avec l'ID 3 introuvable")

        assert fault.status_code == 404
        assert fault.info == "Utilisateur avec l'ID 3 introuvable"
        assert str(fault) == fault.info
