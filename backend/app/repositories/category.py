"""Category persistence. No business validation happens here."""

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category


def as_uuid(value: str | uuid.UUID | None) -> uuid.UUID | None:
    """Normalize an id given as a string into a UUID (None passes through)."""
    if value is None or isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


class CategoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict[str, Any]) -> Category:
        data = dict(data)
        if "parent_id" in data:
            data["parent_id"] = as_uuid(data["parent_id"])
        category = Category(**data)
        self.session.add(category)
        await self.session.flush()
        await self.session.refresh(category)
        return category

    async def find_by_id(self, category_id: str | uuid.UUID) -> Category | None:
        return await self.session.get(Category, as_uuid(category_id))

    async def find_by_name(self, name: str) -> Category | None:
        """Top-level category with this exact name."""
        result = await self.session.execute(
            select(Category).where(Category.name == name, Category.parent_id.is_(None))
        )
        return result.scalar_one_or_none()

    async def find_by_name_and_parent(
        self, name: str, parent_id: str | uuid.UUID | None
    ) -> Category | None:
        if parent_id is None:
            return await self.find_by_name(name)
        result = await self.session.execute(
            select(Category).where(
                Category.name == name,
                Category.parent_id == as_uuid(parent_id),
            )
        )
        return result.scalar_one_or_none()

    async def find_all(self, filters: dict[str, Any] | None = None) -> list[Category]:
        """All categories matching equality filters, e.g. {"parent_id": None}."""
        query = select(Category)
        for field, value in (filters or {}).items():
            column = getattr(Category, field)
            if field == "parent_id":
                value = as_uuid(value)
            query = query.where(column.is_(None) if value is None else column == value)
        result = await self.session.execute(query.order_by(Category.name))
        return list(result.scalars().all())

    async def update(self, category_id: str | uuid.UUID, data: dict[str, Any]) -> Category | None:
        category = await self.find_by_id(category_id)
        if not category:
            return None
        for field, value in data.items():
            if field == "parent_id":
                value = as_uuid(value)
            setattr(category, field, value)
        await self.session.flush()
        await self.session.refresh(category)
        return category

    async def delete(self, category_id: str | uuid.UUID) -> Category | None:
        category = await self.find_by_id(category_id)
        if not category:
            return None
        await self.session.delete(category)
        await self.session.flush()
        return category

    async def count_subcategories(self, parent_id: str | uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Category)
            .where(Category.parent_id == as_uuid(parent_id))
        )
        return result.scalar_one()
