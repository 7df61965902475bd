"""
LOT 2: Logging

Module de logging structuré avec:
- Format JSON, une ligne par événement
- correlation_id propagé depuis la requête HTTP en cours
- Masquage des données sensibles (mots de passe, jetons, cookies)
"""

from .interfaces import (
    # Enums
    LogLevel,
    # Dataclasses
    LogEntry,
    LogConfig,
    # Interfaces
    IStructuredLogger,
    ISensitiveMasker,
    # Contexte
    correlation_id_var,
)
from .sensitive_masker import (
    SensitiveMasker,
)
from .structured_logger import (
    StructuredLogger,
    stderr_handler,
    # Exceptions
    MissingRequiredFieldError,
)

__all__ = [
    # Enums
    "LogLevel",
    # Dataclasses
    "LogEntry",
    "LogConfig",
    # Interfaces
    "IStructuredLogger",
    "ISensitiveMasker",
    "correlation_id_var",
    # Implementations
    "SensitiveMasker",
    "StructuredLogger",
    "stderr_handler",
    # Exceptions
    "MissingRequiredFieldError",
]
