"""
LOT 3: In-Memory Identity Store

Implémentation mémoire du store identité (tests et application de démonstration).

Note:
    Stockage en mémoire. Une implémentation SQL respectera la même interface.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import AsyncIterator, Dict, List, Optional

from .interfaces import IIdentityStore, Principal, Role


class InMemoryIdentityStore(IIdentityStore):
    """
    Store mémoire avec unicité des noms de rôle et unit of work.

    La unit of work sérialise les écritures du processus et restaure un
    instantané si le bloc lève, y compris sur annulation.
    """

    def __init__(self) -> None:
        self._roles: Dict[str, Role] = {}
        self._principals: Dict[int, Principal] = {}
        self._next_role_id = 1
        self._next_principal_id = 1
        self._uow_lock = asyncio.Lock()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        async with self._uow_lock:
            snapshot = (
                dict(self._roles),
                dict(self._principals),
                self._next_role_id,
                self._next_principal_id,
            )
            try:
                yield
            except BaseException:
                self._roles, self._principals, self._next_role_id, self._next_principal_id = snapshot
                raise

    # ── Rôles ────────────────────────────────────────────────────────────────

    async def find_role_by_name(self, name: str) -> Optional[Role]:
        return self._roles.get(name)

    async def insert_role_if_absent(self, name: str) -> Optional[Role]:
        if name in self._roles:
            return None
        role = Role(id=self._next_role_id, name=name)
        self._next_role_id += 1
        self._roles[name] = role
        return role

    async def find_all_roles(self) -> List[Role]:
        return sorted(self._roles.values(), key=lambda r: r.id)

    async def find_principals_by_role(self, role_name: str) -> List[Principal]:
        return [
            p for p in await self.find_all_principals()
            if any(role.name == role_name for role in p.roles)
        ]

    # ── Principaux ───────────────────────────────────────────────────────────

    async def save_principal(self, principal: Principal) -> Principal:
        if principal.id is None:
            principal = replace(principal, id=self._next_principal_id)
            self._next_principal_id += 1
        elif principal.id >= self._next_principal_id:
            self._next_principal_id = principal.id + 1
        self._principals[principal.id] = principal
        return principal

    async def find_principal_by_id(self, principal_id: int) -> Optional[Principal]:
        return self._principals.get(principal_id)

    async def find_principal_by_name(self, user_name: str) -> Optional[Principal]:
        for principal in self._principals.values():
            if principal.user_name == user_name:
                return principal
        return None

    async def find_all_principals(self) -> List[Principal]:
        return sorted(self._principals.values(), key=lambda p: p.id)

    async def delete_principal(self, principal_id: int) -> None:
        self._principals.pop(principal_id, None)

    async def exists_principal(self, principal_id: int) -> bool:
        return principal_id in self._principals
