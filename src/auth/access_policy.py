"""
LOT 4: Access Policy Enforcer

Table de règles ordonnée: la première règle correspondante décide.
L'ordre est un contrat: le déplacer change qui atteint /admin/**.

    1. /login, /logout          → public
    2. /admin/**                → ADMIN
    3. /user/**, /api/**/user   → USER ou ADMIN
    4. /**                      → tout principal authentifié
"""

import posixpath
import re
from typing import FrozenSet, Iterable, List, Optional, Pattern, Sequence, Tuple

from src.core.interfaces import PortierFault
from src.logging import IStructuredLogger, StructuredLogger

from .interfaces import AccessDecision, AccessRule, IAccessPolicy, Requirement


class AuthorizationFault(PortierFault):
    """Accès refusé: 401 si l'appelant n'est pas authentifié, 403 sinon."""

    status_code = 403

    def __init__(self, info: str, authenticated: bool = True) -> None:
        super().__init__(info)
        self.authenticated = authenticated
        if not authenticated:
            self.status_code = 401


def compile_pattern(pattern: str) -> Pattern[str]:
    """
    Compile un motif style Ant en expression régulière.

    "*" couvre un segment, "**" zéro ou plusieurs segments.

    Example:
        compile_pattern("/api/**/user").match("/api/v1/users/user")  # match
    """
    parts = []
    for segment in pattern.strip("/").split("/"):
        if not segment:
            continue
        if segment == "**":
            parts.append(r"(?:/[^/]+)*")
        else:
            parts.append("/" + "[^/]*".join(re.escape(piece) for piece in segment.split("*")))
    return re.compile("^" + "".join(parts) + "/?$")


def normalize_path(path: str) -> str:
    """Supprime les doubles slashes et résout . et .. pour éviter les contournements."""
    if not path:
        return "/"
    collapsed = re.sub(r"/+", "/", "/" + path)
    normalized = posixpath.normpath(collapsed)
    return normalized if normalized.startswith("/") else "/" + normalized


class AccessPolicy(IAccessPolicy):
    """
    Vérificateur d'accès par chemin et autorité.

    Example:
        policy = AccessPolicy()
        policy.decide("/admin/x", "GET", {"USER"})   # DENY_FORBIDDEN
        policy.enforce("/user/x", "GET", {"USER"})   # OK
    """

    DEFAULT_RULES: Tuple[AccessRule, ...] = (
        AccessRule(("/login", "/logout"), Requirement.PUBLIC),
        AccessRule(("/admin/**",), Requirement.AUTHORITY, frozenset({"ADMIN"})),
        AccessRule(("/user/**", "/api/**/user"), Requirement.AUTHORITY, frozenset({"USER", "ADMIN"})),
        AccessRule(("/**",), Requirement.AUTHENTICATED),
    )

    def __init__(
        self,
        rules: Optional[Sequence[AccessRule]] = None,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        """
        Args:
            rules: Règles dans l'ordre d'évaluation (défaut: DEFAULT_RULES)
        """
        self._rules: List[AccessRule] = list(rules if rules is not None else self.DEFAULT_RULES)
        self._compiled: List[Tuple[AccessRule, List[Pattern[str]]]] = [
            (rule, [compile_pattern(p) for p in rule.patterns]) for rule in self._rules
        ]
        self._logger = logger or StructuredLogger("portier.access_policy")

    @property
    def rules(self) -> List[AccessRule]:
        return list(self._rules)

    def match(self, path: str, method: str) -> Optional[AccessRule]:
        """Première règle correspondant au chemin et à la méthode."""
        normalized = normalize_path(path)
        verb = (method or "GET").upper()
        for rule, patterns in self._compiled:
            if rule.methods is not None and verb not in rule.methods:
                continue
            if any(p.match(normalized) for p in patterns):
                return rule
        return None

    def decide(
        self, path: str, method: str, authorities: Optional[Iterable[str]]
    ) -> AccessDecision:
        held: Optional[FrozenSet[str]] = frozenset(authorities) if authorities is not None else None
        rule = self.match(path, method)

        if rule is None:
            # Aucune règle: refus, jamais d'autorisation implicite
            return AccessDecision.DENY_UNAUTHENTICATED if held is None else AccessDecision.DENY_FORBIDDEN

        if rule.requirement is Requirement.PUBLIC:
            return AccessDecision.PERMIT
        if held is None:
            return AccessDecision.DENY_UNAUTHENTICATED
        if rule.requirement is Requirement.AUTHENTICATED:
            return AccessDecision.PERMIT
        if self.has_any_authority(held, rule.authorities):
            return AccessDecision.PERMIT
        return AccessDecision.DENY_FORBIDDEN

    def enforce(self, path: str, method: str, authorities: Optional[Iterable[str]]) -> None:
        """
        Raises:
            AuthorizationFault: Non authentifié (401) ou autorité insuffisante (403)
        """
        decision = self.decide(path, method, authorities)
        if decision is AccessDecision.PERMIT:
            return

        self._logger.warn("Accès refusé", path=path, method=method, decision=decision.value)
        if decision is AccessDecision.DENY_UNAUTHENTICATED:
            raise AuthorizationFault("Authentification requise", authenticated=False)
        raise AuthorizationFault("Accès refusé")

    @staticmethod
    def has_any_authority(held: Optional[Iterable[str]], required: Iterable[str]) -> bool:
        """Contrôle au niveau d'un point d'accès: au moins une autorité requise est détenue."""
        if held is None:
            return False
        return bool(set(held) & set(required))
