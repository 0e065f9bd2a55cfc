"""
Ember Ascent - Child Profile Service
Parent-owned learner profiles
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.exceptions import ForbiddenError, NotFoundError
from ember_ascent.models.user import Child
from ember_ascent.schemas.user import ChildCreate, ChildUpdate


class ChildService:
    """CRUD for the children of one parent."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_parent(self, child_id: uuid.UUID, parent_id: uuid.UUID) -> Child:
        """
        Load a child and check it belongs to the parent.

        Raises:
            NotFoundError: no such child
            ForbiddenError: the child belongs to someone else
        """
        result = await self.db.execute(select(Child).where(Child.id == child_id))
        child = result.scalar_one_or_none()
        if not child:
            raise NotFoundError("Child not found")
        if child.parent_id != parent_id:
            raise ForbiddenError("Access denied")
        return child

    async def list_for_parent(self, parent_id: uuid.UUID) -> list[Child]:
        result = await self.db.execute(
            select(Child).where(Child.parent_id == parent_id).order_by(Child.created_at)
        )
        return list(result.scalars().all())

    async def create(self, parent_id: uuid.UUID, data: ChildCreate) -> Child:
        child = Child(parent_id=parent_id, **data.model_dump())
        self.db.add(child)
        await self.db.flush()
        return child

    async def update(self, child: Child, data: ChildUpdate) -> Child:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(child, field, value)
        await self.db.flush()
        return child

    async def delete(self, child: Child) -> None:
        await self.db.delete(child)
        await self.db.flush()
