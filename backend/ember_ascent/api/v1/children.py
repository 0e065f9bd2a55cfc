"""
Ember Ascent - Children API Router
Parent-owned child profiles
"""
import uuid

from fastapi import APIRouter, status

from ember_ascent.api.deps import Auth, DbSession
from ember_ascent.schemas.user import ChildCreate, ChildResponse, ChildUpdate
from ember_ascent.services.children import ChildService

router = APIRouter(prefix="/children", tags=["Children"])


@router.get("", response_model=list[ChildResponse])
async def list_children(auth: Auth, db: DbSession):
    """All children of the signed-in (or impersonated) parent."""
    return await ChildService(db).list_for_parent(auth.effective_user_id)


@router.post("", response_model=ChildResponse, status_code=status.HTTP_201_CREATED)
async def create_child(data: ChildCreate, auth: Auth, db: DbSession):
    return await ChildService(db).create(auth.effective_user_id, data)


@router.get("/{child_id}", response_model=ChildResponse)
async def get_child(child_id: uuid.UUID, auth: Auth, db: DbSession):
    return await ChildService(db).get_for_parent(child_id, auth.effective_user_id)


@router.patch("/{child_id}", response_model=ChildResponse)
async def update_child(child_id: uuid.UUID, data: ChildUpdate, auth: Auth, db: DbSession):
    service = ChildService(db)
    child = await service.get_for_parent(child_id, auth.effective_user_id)
    return await service.update(child, data)


@router.delete("/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_child(child_id: uuid.UUID, auth: Auth, db: DbSession) -> None:
    service = ChildService(db)
    child = await service.get_for_parent(child_id, auth.effective_user_id)
    await service.delete(child)
