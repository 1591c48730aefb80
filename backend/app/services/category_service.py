"""Category business rules: hierarchy, scoped name uniqueness and commission rules.

Commission rules belong to top-level categories only. Whenever a category ends
up as a subcategory its rule is removed, and commission input supplied for a
subcategory is ignored. The single global rule (no category) is created lazily
the first time it is read.

Methods only flush; the request-scoped session commits, so a category write and
its paired commission-rule write are applied together or not at all.
"""

import logging
import uuid

from app.core.errors import (
    CategoryHasSubcategories,
    CategoryNotFound,
    CommissionRuleNotFound,
    DuplicateCategoryName,
    DuplicateSubcategoryName,
    InvalidId,
    ParentNotFound,
    SelfParenting,
)
from app.models.category import Category
from app.models.commission_rule import CommissionRule
from app.repositories.category import CategoryRepository, as_uuid
from app.repositories.commission_rule import CommissionRuleRepository
from app.schemas.category import (
    CategoryDetailResponse,
    CategoryResponse,
    CategorySummaryResponse,
    CategoryWithRule,
    CreateCategoryInput,
    UpdateCategoryInput,
)
from app.schemas.commission import CommissionRuleInput, CommissionRuleResponse

logger = logging.getLogger(__name__)

DEFAULT_GLOBAL_COMMISSION = 0.0


def parse_id(value: str | uuid.UUID | None, message: str = "Invalid category ID") -> uuid.UUID:
    """Parse a client-supplied id, raising InvalidId (400) when malformed."""
    if value is None:
        raise InvalidId(message)
    try:
        return as_uuid(value)
    except (ValueError, TypeError, AttributeError):
        raise InvalidId(message)


def _rule_response(rule: CommissionRule | None) -> CommissionRuleResponse | None:
    return CommissionRuleResponse.model_validate(rule) if rule else None


class CategoryService:
    def __init__(
        self,
        categories: CategoryRepository,
        commission_rules: CommissionRuleRepository,
    ):
        self.categories = categories
        self.commission_rules = commission_rules

    # ── Create ─────────────────────────────────────
    async def create_category(
        self,
        category_input: CreateCategoryInput,
        commission_input: CommissionRuleInput | None = None,
    ) -> CategoryWithRule:
        parent_id = category_input.parent_id

        if parent_id is not None:
            if not await self.categories.find_by_id(parent_id):
                raise ParentNotFound()
        await self._ensure_unique_name(category_input.name, parent_id)

        category = await self.categories.create(category_input.model_dump())
        logger.info("Category created: id=%s name=%s parent=%s", category.id, category.name, parent_id)

        rule = None
        if category.is_top_level and commission_input and not commission_input.remove_rule:
            rule = await self.commission_rules.create(self._rule_data(category.id, commission_input))
            logger.info("Commission rule attached to category %s", category.id)

        return CategoryWithRule(
            category=CategoryResponse.model_validate(category),
            commission_rule=_rule_response(rule),
        )

    # ── Update ─────────────────────────────────────
    async def update_category(
        self,
        category_id: str | uuid.UUID,
        update_input: UpdateCategoryInput,
        commission_input: CommissionRuleInput | None = None,
    ) -> CategoryWithRule:
        cid = parse_id(category_id)
        category = await self.categories.find_by_id(cid)
        if not category:
            raise CategoryNotFound()

        data = update_input.model_dump(exclude_unset=True)
        # Required columns are never cleared by a partial update
        for key in ("name", "status"):
            if key in data and data[key] is None:
                del data[key]

        new_parent_id = category.parent_id
        if update_input.changes_parent:
            new_parent_id = update_input.parent_id
            if new_parent_id is not None:
                await self._ensure_valid_parent(category, new_parent_id)

        new_name = data.get("name", category.name)
        if new_name != category.name or new_parent_id != category.parent_id:
            await self._ensure_unique_name(new_name, new_parent_id, exclude_id=category.id)

        updated = await self.categories.update(cid, data)
        logger.info("Category updated: id=%s fields=%s", cid, sorted(data))

        rule = await self.commission_rules.find_by_category_id(cid)
        if not updated.is_top_level:
            if rule:
                await self.commission_rules.delete(rule.id)
                logger.info("Commission rule removed from subcategory %s", cid)
            rule = None
        elif commission_input is not None:
            rule = await self._apply_commission(cid, rule, commission_input)

        return CategoryWithRule(
            category=CategoryResponse.model_validate(updated),
            commission_rule=_rule_response(rule),
        )

    async def _apply_commission(
        self,
        category_id: uuid.UUID,
        existing: CommissionRule | None,
        commission_input: CommissionRuleInput,
    ) -> CommissionRule | None:
        if commission_input.remove_rule:
            if existing:
                await self.commission_rules.delete(existing.id)
                logger.info("Commission rule removed from category %s", category_id)
            return None

        rule_data = self._rule_data(category_id, commission_input)
        if existing:
            return await self.commission_rules.update(existing.id, rule_data)
        return await self.commission_rules.create(rule_data)

    # ── Read ───────────────────────────────────────
    async def get_category_by_id(self, category_id: str | uuid.UUID) -> CategoryDetailResponse:
        cid = parse_id(category_id)
        category = await self.categories.find_by_id(cid)
        if not category:
            raise CategoryNotFound()

        rule = None
        if category.is_top_level:
            rule = await self.commission_rules.find_by_category_id(cid)
        children = await self.categories.find_all({"parent_id": cid})

        detail = CategoryDetailResponse(
            **CategoryResponse.model_validate(category).model_dump(),
            commission_rule=_rule_response(rule),
            sub_categories=[CategoryResponse.model_validate(c) for c in children],
        )
        if rule:
            if rule.category_commission is not None:
                detail.commission_type = "percentage"
                detail.commission_value = rule.category_commission
            elif rule.flat_fee is not None:
                detail.commission_type = "flat"
                detail.commission_value = rule.flat_fee
            detail.commission_status = rule.status
        return detail

    async def get_all_top_level_categories_with_details(self) -> list[CategorySummaryResponse]:
        categories = await self.categories.find_all({"parent_id": None})
        summaries = []
        for category in categories:
            rule = await self.commission_rules.find_by_category_id(category.id)
            summaries.append(
                CategorySummaryResponse(
                    **CategoryResponse.model_validate(category).model_dump(),
                    sub_category_count=await self.categories.count_subcategories(category.id),
                    commission_rule=_rule_response(rule),
                )
            )
        return summaries

    async def get_all_subcategories(self, parent_id: str | uuid.UUID) -> list[CategoryResponse]:
        pid = parse_id(parent_id, "Invalid parent category ID")
        children = await self.categories.find_all({"parent_id": pid})
        return [CategoryResponse.model_validate(c) for c in children]

    # ── Delete ─────────────────────────────────────
    async def delete_category(self, category_id: str | uuid.UUID) -> CategoryResponse:
        cid = parse_id(category_id)
        category = await self.categories.find_by_id(cid)
        if not category:
            raise CategoryNotFound()
        if await self.categories.count_subcategories(cid) > 0:
            raise CategoryHasSubcategories()

        response = CategoryResponse.model_validate(category)
        if category.is_top_level:
            rule = await self.commission_rules.find_by_category_id(cid)
            if rule:
                await self.commission_rules.delete(rule.id)
        await self.categories.delete(cid)
        logger.info("Category deleted: id=%s name=%s", cid, response.name)
        return response

    # ── Global commission ──────────────────────────
    async def get_global_commission_rule(self) -> CommissionRuleResponse:
        rule = await self.commission_rules.find_global_rule()
        if not rule:
            rule = await self.commission_rules.create(
                {"category_id": None, "global_commission": DEFAULT_GLOBAL_COMMISSION, "status": True}
            )
            logger.info("Global commission rule initialised at %s%%", DEFAULT_GLOBAL_COMMISSION)
        return CommissionRuleResponse.model_validate(rule)

    async def update_global_commission(self, percentage: float) -> CommissionRuleResponse:
        rule = await self.commission_rules.find_global_rule()
        if rule:
            rule = await self.commission_rules.update(rule.id, {"global_commission": percentage})
        else:
            rule = await self.commission_rules.create(
                {"category_id": None, "global_commission": percentage, "status": True}
            )
        logger.info("Global commission set to %s%%", percentage)
        return CommissionRuleResponse.model_validate(rule)

    # ── Commission rules (read-only) ───────────────
    async def list_commission_rules(self) -> list[CommissionRuleResponse]:
        rules = await self.commission_rules.find_all()
        return [CommissionRuleResponse.model_validate(r) for r in rules]

    async def get_commission_rule(self, rule_id: str | uuid.UUID) -> CommissionRuleResponse:
        rule = await self.commission_rules.find_by_id(parse_id(rule_id, "Invalid rule ID"))
        if not rule:
            raise CommissionRuleNotFound()
        return CommissionRuleResponse.model_validate(rule)

    # ── Helpers ────────────────────────────────────
    async def _ensure_unique_name(
        self,
        name: str,
        parent_id: uuid.UUID | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        existing = await self.categories.find_by_name_and_parent(name, parent_id)
        if existing and existing.id != exclude_id:
            if parent_id is None:
                raise DuplicateCategoryName()
            raise DuplicateSubcategoryName()

    async def _ensure_valid_parent(self, category: Category, parent_id: uuid.UUID) -> None:
        if parent_id == category.id:
            raise SelfParenting()
        parent = await self.categories.find_by_id(parent_id)
        if not parent:
            raise ParentNotFound()

        # Walk up from the new parent; meeting the category means a cycle
        seen = {parent.id}
        node = parent
        while node.parent_id is not None:
            if node.parent_id == category.id:
                raise SelfParenting("Category cannot be moved under one of its own subcategories")
            if node.parent_id in seen:
                break
            seen.add(node.parent_id)
            node = await self.categories.find_by_id(node.parent_id)
            if node is None:
                break

    @staticmethod
    def _rule_data(category_id: uuid.UUID, commission_input: CommissionRuleInput) -> dict:
        return {
            "category_id": category_id,
            "flat_fee": commission_input.flat_fee,
            "category_commission": commission_input.category_commission,
            "status": commission_input.status,
        }
