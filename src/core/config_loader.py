"""
PORTIER - Config Loader Implementation
Charge la configuration sécurité depuis un fichier YAML et la valide.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .interfaces import IConfigLoader, SecurityConfig


class ConfigIntegrityError(Exception):
    """Erreur d'intégrité de configuration."""

    pass


class ConfigLoader(IConfigLoader):
    """Chargement de la configuration depuis fichiers YAML."""

    DEFAULT_PATH: str = "config/security.yaml"

    def __init__(self, config_path: Union[str, Path] = DEFAULT_PATH):
        self.config_path = Path(config_path)

    def load(self, path: Optional[Union[str, Path]] = None) -> SecurityConfig:
        """
        Charge la configuration sécurité.

        Args:
            path: Fichier à lire (défaut: chemin donné au constructeur)

        Returns:
            SecurityConfig validée

        Raises:
            ConfigIntegrityError: Si fichier inexistant ou structure invalide
        """
        config_file = Path(path) if path is not None else self.config_path

        if not config_file.exists():
            raise ConfigIntegrityError(f"Configuration non trouvée: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigIntegrityError(f"Erreur de parsing YAML: {e}")
        except OSError as e:
            raise ConfigIntegrityError(f"Erreur de lecture fichier: {e}")

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigIntegrityError("Configuration doit être un objet YAML")

        return self.load_dict(raw)

    def load_dict(self, raw: Dict[str, Any]) -> SecurityConfig:
        """
        Valide un dictionnaire déjà chargé.

        Raises:
            ConfigIntegrityError: Si la structure ne respecte pas SecurityConfig
        """
        self._validate_basic_structure(raw)

        try:
            return SecurityConfig.model_validate(raw)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigIntegrityError(f"Configuration invalide: {details}")

    def _validate_basic_structure(self, config: Dict[str, Any]) -> None:
        """Valide la structure de base de la configuration."""
        version = config.get("version", "1.0")
        if not isinstance(version, str):
            raise ConfigIntegrityError("version doit être une chaîne")

        for section in ("session", "cookie", "password", "bootstrap"):
            value = config.get(section)
            if value is not None and not isinstance(value, dict):
                raise ConfigIntegrityError(f"{section} doit être un objet")
