"""
LOT 5: API REST des utilisateurs

Préfixe: /api/v1/users. Toutes les routes exigent ADMIN sauf /user.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status

from src.auth import Session
from src.identity import PrincipalCreate, PrincipalOut, PrincipalUpdate

from .container import Components
from .dependencies import get_components, require_authority


router = APIRouter(prefix="/api/v1/users", tags=["users"])

require_admin = require_authority("ADMIN")


@router.get("", response_model=List[PrincipalOut])
async def list_users(
    role: Optional[str] = None,
    _: Session = Depends(require_admin),
    components: Components = Depends(get_components),
) -> List[PrincipalOut]:
    """Tous les principaux, ou ceux détenant ?role=NOM (404 si le rôle est inconnu)."""
    if role is not None:
        return await components.identity.list_by_role(role)
    return await components.identity.list()


# Déclarée avant /{principal_id}
@router.get("/user", response_model=PrincipalOut)
async def current_user(
    session: Session = Depends(require_authority("USER", "ADMIN")),
    components: Components = Depends(get_components),
) -> PrincipalOut:
    """Représentation du principal connecté."""
    return await components.identity.get_by_id(session.principal_id)


@router.get("/{principal_id}", response_model=PrincipalOut)
async def get_user(
    principal_id: int,
    _: Session = Depends(require_admin),
    components: Components = Depends(get_components),
) -> PrincipalOut:
    return await components.identity.get_by_id(principal_id)


@router.post("", response_model=PrincipalOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: PrincipalCreate,
    _: Session = Depends(require_admin),
    components: Components = Depends(get_components),
) -> PrincipalOut:
    return await components.identity.create(payload)


@router.put("/{principal_id}", response_model=PrincipalOut)
async def update_user(
    principal_id: int,
    payload: PrincipalUpdate,
    _: Session = Depends(require_admin),
    components: Components = Depends(get_components),
) -> PrincipalOut:
    return await components.identity.update(principal_id, payload)


@router.delete("/{principal_id}")
async def delete_user(
    principal_id: int,
    _: Session = Depends(require_admin),
    components: Components = Depends(get_components),
) -> Dict[str, str]:
    message = await components.identity.delete(principal_id)
    await components.sessions.revoke_all(principal_id)
    return {"info": message}
