"""Commission rule persistence. Global/category mode is not checked here."""

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission_rule import CommissionRule
from app.repositories.category import as_uuid


class CommissionRuleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict[str, Any]) -> CommissionRule:
        data = dict(data)
        if "category_id" in data:
            data["category_id"] = as_uuid(data["category_id"])
        rule = CommissionRule(**data)
        self.session.add(rule)
        await self.session.flush()
        await self.session.refresh(rule)
        return rule

    async def find_by_id(self, rule_id: str | uuid.UUID) -> CommissionRule | None:
        return await self.session.get(CommissionRule, as_uuid(rule_id))

    async def find_by_category_id(self, category_id: str | uuid.UUID) -> CommissionRule | None:
        result = await self.session.execute(
            select(CommissionRule).where(CommissionRule.category_id == as_uuid(category_id))
        )
        return result.scalar_one_or_none()

    async def find_global_rule(self) -> CommissionRule | None:
        result = await self.session.execute(
            select(CommissionRule)
            .where(CommissionRule.category_id.is_(None))
            .order_by(CommissionRule.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_all(self, filters: dict[str, Any] | None = None) -> list[CommissionRule]:
        query = select(CommissionRule)
        for field, value in (filters or {}).items():
            column = getattr(CommissionRule, field)
            if field == "category_id":
                value = as_uuid(value)
            query = query.where(column.is_(None) if value is None else column == value)
        result = await self.session.execute(query.order_by(CommissionRule.created_at))
        return list(result.scalars().all())

    async def update(self, rule_id: str | uuid.UUID, data: dict[str, Any]) -> CommissionRule | None:
        rule = await self.find_by_id(rule_id)
        if not rule:
            return None
        for field, value in data.items():
            if field == "category_id":
                value = as_uuid(value)
            setattr(rule, field, value)
        await self.session.flush()
        await self.session.refresh(rule)
        return rule

    async def delete(self, rule_id: str | uuid.UUID) -> CommissionRule | None:
        rule = await self.find_by_id(rule_id)
        if not rule:
            return None
        await self.session.delete(rule)
        await self.session.flush()
        return rule
