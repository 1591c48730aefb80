"""Tests for category business rules (hierarchy, names, commission rules)."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.errors import (
    CategoryHasSubcategories,
    CategoryNotFound,
    CommissionRuleNotFound,
    DuplicateCategoryName,
    DuplicateNameError,
    DuplicateSubcategoryName,
    InvalidId,
    ParentNotFound,
    SelfParenting,
)
from app.schemas.category import CreateCategoryInput, UpdateCategoryInput
from app.schemas.commission import CommissionRuleInput


async def _top(service, name, **commission):
    rule = CommissionRuleInput(**commission) if commission else None
    result = await service.create_category(CreateCategoryInput(name=name), rule)
    return result.category


async def _sub(service, name, parent_id):
    result = await service.create_category(CreateCategoryInput(name=name, parent_id=parent_id))
    return result.category


# ── Create ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_with_commission_round_trip(category_service):
    """A top-level category created with a percentage rule reads back with that rule."""
    created = await category_service.create_category(
        CreateCategoryInput(name="Cleaning", status=True),
        CommissionRuleInput(category_commission=10, status=True),
    )
    assert created.commission_rule is not None
    assert created.commission_rule.category_id == created.category.id

    detail = await category_service.get_category_by_id(str(created.category.id))
    assert detail.name == "Cleaning"
    assert detail.commission_rule.category_commission == 10
    assert detail.commission_type == "percentage"
    assert detail.commission_value == 10
    assert detail.commission_status is True


@pytest.mark.asyncio
async def test_create_defaults_status_to_active(category_service):
    category = await _top(category_service, "Plumbing")
    assert category.status is True
    assert category.parent_id is None


@pytest.mark.asyncio
async def test_create_without_commission_has_no_rule(category_service):
    result = await category_service.create_category(CreateCategoryInput(name="Gardening"))
    assert result.commission_rule is None


@pytest.mark.asyncio
async def test_name_scopes(category_service):
    """Same name is fine in a different scope, a second top-level duplicate is not."""
    a = await _top(category_service, "A")
    sub_a = await _sub(category_service, "A", a.id)
    assert sub_a.parent_id == a.id

    with pytest.raises(DuplicateCategoryName) as exc_info:
        await _top(category_service, "A")
    assert isinstance(exc_info.value, DuplicateNameError)
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_duplicate_subcategory_name_under_same_parent(category_service):
    parent = await _top(category_service, "Repairs")
    await _sub(category_service, "Electrical", parent.id)

    with pytest.raises(DuplicateSubcategoryName):
        await _sub(category_service, "Electrical", parent.id)


@pytest.mark.asyncio
async def test_subcategory_names_are_independent_across_parents(category_service):
    first = await _top(category_service, "Home")
    second = await _top(category_service, "Office")
    await _sub(category_service, "Deep Clean", first.id)
    other = await _sub(category_service, "Deep Clean", second.id)
    assert other.parent_id == second.id


@pytest.mark.asyncio
async def test_create_subcategory_with_unknown_parent(category_service):
    with pytest.raises(ParentNotFound) as exc_info:
        await _sub(category_service, "Orphan", uuid.uuid4())
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_create_subcategory_ignores_commission(category_service, rule_repo):
    parent = await _top(category_service, "Beauty")
    result = await category_service.create_category(
        CreateCategoryInput(name="Haircut", parent_id=parent.id),
        CommissionRuleInput(flat_fee=5),
    )
    assert result.commission_rule is None
    assert await rule_repo.find_by_category_id(result.category.id) is None


# ── Update ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_unknown_category(category_service):
    with pytest.raises(CategoryNotFound):
        await category_service.update_category(uuid.uuid4(), UpdateCategoryInput(name="Nope"))


@pytest.mark.asyncio
async def test_update_malformed_id(category_service):
    with pytest.raises(InvalidId) as exc_info:
        await category_service.update_category("not-an-id", UpdateCategoryInput(name="Nope"))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_update_fields(category_service):
    category = await _top(category_service, "Moving")
    result = await category_service.update_category(
        category.id,
        UpdateCategoryInput(name="Moving & Packing", description="Boxes", status=False),
    )
    assert result.category.name == "Moving & Packing"
    assert result.category.description == "Boxes"
    assert result.category.status is False


@pytest.mark.asyncio
async def test_update_keeping_same_name_is_not_a_conflict(category_service):
    category = await _top(category_service, "Painting")
    result = await category_service.update_category(
        category.id, UpdateCategoryInput(name="Painting", description="Walls")
    )
    assert result.category.name == "Painting"


@pytest.mark.asyncio
async def test_update_rename_to_existing_top_level_name(category_service):
    await _top(category_service, "Carpentry")
    other = await _top(category_service, "Woodwork")
    with pytest.raises(DuplicateCategoryName):
        await category_service.update_category(other.id, UpdateCategoryInput(name="Carpentry"))


@pytest.mark.asyncio
async def test_reparent_into_scope_with_same_name(category_service):
    parent = await _top(category_service, "Vehicles")
    await _sub(category_service, "Wash", parent.id)
    loose = await _top(category_service, "Wash")

    with pytest.raises(DuplicateSubcategoryName):
        await category_service.update_category(loose.id, UpdateCategoryInput(parent_id=parent.id))


@pytest.mark.asyncio
async def test_update_self_parenting(category_service):
    category = await _top(category_service, "Loop")
    with pytest.raises(SelfParenting) as exc_info:
        await category_service.update_category(category.id, UpdateCategoryInput(parent_id=category.id))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_update_cannot_move_under_own_subcategory(category_service):
    root = await _top(category_service, "Root")
    child = await _sub(category_service, "Child", root.id)
    with pytest.raises(SelfParenting):
        await category_service.update_category(root.id, UpdateCategoryInput(parent_id=child.id))


@pytest.mark.asyncio
async def test_update_unknown_parent(category_service):
    category = await _top(category_service, "Tutoring")
    with pytest.raises(ParentNotFound):
        await category_service.update_category(category.id, UpdateCategoryInput(parent_id=uuid.uuid4()))


@pytest.mark.asyncio
async def test_reparenting_removes_commission_rule(category_service, rule_repo):
    parent = await _top(category_service, "Events")
    category = await _top(category_service, "Catering", flat_fee=25)
    assert await rule_repo.find_by_category_id(category.id) is not None

    result = await category_service.update_category(
        category.id,
        UpdateCategoryInput(parent_id=parent.id),
        CommissionRuleInput(category_commission=50),
    )
    assert result.category.parent_id == parent.id
    assert result.commission_rule is None
    assert await rule_repo.find_by_category_id(category.id) is None


@pytest.mark.asyncio
async def test_subcategory_promoted_to_top_level_then_gets_rule(category_service):
    parent = await _top(category_service, "Pets")
    sub = await _sub(category_service, "Grooming", parent.id)

    promoted = await category_service.update_category(
        sub.id,
        UpdateCategoryInput(parent_id=None),
        CommissionRuleInput(remove_rule=True),
    )
    assert promoted.category.parent_id is None
    assert promoted.commission_rule is None

    attached = await category_service.update_category(
        sub.id, UpdateCategoryInput(), CommissionRuleInput(category_commission=5, status=True)
    )
    assert attached.commission_rule is not None
    assert attached.commission_rule.category_commission == 5


@pytest.mark.asyncio
async def test_update_switches_rule_from_flat_to_percentage(category_service, rule_repo):
    category = await _top(category_service, "Laundry", flat_fee=3)
    original = await rule_repo.find_by_category_id(category.id)

    result = await category_service.update_category(
        category.id, UpdateCategoryInput(), CommissionRuleInput(category_commission=12, status=False)
    )
    assert result.commission_rule.id == original.id
    assert result.commission_rule.flat_fee is None
    assert result.commission_rule.category_commission == 12
    assert result.commission_rule.status is False


@pytest.mark.asyncio
async def test_update_remove_rule(category_service, rule_repo):
    category = await _top(category_service, "Security", category_commission=8)
    result = await category_service.update_category(
        category.id, UpdateCategoryInput(), CommissionRuleInput(remove_rule=True)
    )
    assert result.commission_rule is None
    assert await rule_repo.find_by_category_id(category.id) is None


@pytest.mark.asyncio
async def test_update_without_commission_input_keeps_rule(category_service):
    category = await _top(category_service, "Photography", flat_fee=40)
    result = await category_service.update_category(category.id, UpdateCategoryInput(status=False))
    assert result.commission_rule is not None
    assert result.commission_rule.flat_fee == 40


@pytest.mark.asyncio
async def test_subcategory_update_ignores_commission_input(category_service, rule_repo):
    parent = await _top(category_service, "Fitness")
    sub = await _sub(category_service, "Yoga", parent.id)
    result = await category_service.update_category(
        sub.id, UpdateCategoryInput(name="Hot Yoga"), CommissionRuleInput(flat_fee=10)
    )
    assert result.commission_rule is None
    assert await rule_repo.find_by_category_id(sub.id) is None


# ── Read ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_subcategory_never_includes_rule(category_service):
    parent = await _top(category_service, "Auto", category_commission=15)
    sub = await _sub(category_service, "Tyres", parent.id)

    detail = await category_service.get_category_by_id(sub.id)
    assert detail.commission_rule is None
    assert detail.commission_type == "none"


@pytest.mark.asyncio
async def test_get_category_lists_subcategories(category_service):
    parent = await _top(category_service, "Appliances")
    await _sub(category_service, "Fridge", parent.id)
    await _sub(category_service, "Oven", parent.id)

    detail = await category_service.get_category_by_id(parent.id)
    assert sorted(c.name for c in detail.sub_categories) == ["Fridge", "Oven"]


@pytest.mark.asyncio
async def test_get_unknown_category(category_service):
    with pytest.raises(CategoryNotFound):
        await category_service.get_category_by_id(uuid.uuid4())


@pytest.mark.asyncio
async def test_top_level_listing_with_details(category_service):
    cleaning = await _top(category_service, "Cleaning", category_commission=10)
    await _top(category_service, "Delivery")
    await _sub(category_service, "Windows", cleaning.id)
    await _sub(category_service, "Carpets", cleaning.id)

    listing = await category_service.get_all_top_level_categories_with_details()
    by_name = {c.name: c for c in listing}

    assert set(by_name) == {"Cleaning", "Delivery"}
    assert by_name["Cleaning"].sub_category_count == 2
    assert by_name["Cleaning"].commission_rule.category_commission == 10
    assert by_name["Delivery"].sub_category_count == 0
    assert by_name["Delivery"].commission_rule is None


@pytest.mark.asyncio
async def test_get_all_subcategories(category_service):
    parent = await _top(category_service, "Tech")
    other = await _top(category_service, "Legal")
    await _sub(category_service, "Phones", parent.id)
    await _sub(category_service, "Contracts", other.id)

    subs = await category_service.get_all_subcategories(str(parent.id))
    assert [c.name for c in subs] == ["Phones"]


@pytest.mark.asyncio
async def test_get_all_subcategories_malformed_parent(category_service):
    with pytest.raises(InvalidId):
        await category_service.get_all_subcategories("xyz")


# ── Delete ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_blocked_by_subcategories(category_service):
    parent = await _top(category_service, "Construction")
    await _sub(category_service, "Roofing", parent.id)

    with pytest.raises(CategoryHasSubcategories) as exc_info:
        await category_service.delete_category(parent.id)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_delete_top_level_removes_rule(category_service, category_repo, rule_repo):
    category = await _top(category_service, "Babysitting", flat_fee=7)

    deleted = await category_service.delete_category(str(category.id))
    assert deleted.name == "Babysitting"
    assert await category_repo.find_by_id(category.id) is None
    assert await rule_repo.find_by_category_id(category.id) is None


@pytest.mark.asyncio
async def test_delete_subcategory_leaves_parent_rule(category_service, rule_repo):
    parent = await _top(category_service, "Music", category_commission=20)
    sub = await _sub(category_service, "Guitar", parent.id)

    await category_service.delete_category(sub.id)
    assert await rule_repo.find_by_category_id(parent.id) is not None
    # Parent can go once its last child is gone
    await category_service.delete_category(parent.id)


@pytest.mark.asyncio
async def test_delete_unknown_category(category_service):
    with pytest.raises(CategoryNotFound):
        await category_service.delete_category(uuid.uuid4())


# ── Global commission ──────────────────────────────

@pytest.mark.asyncio
async def test_global_rule_created_once(category_service, rule_repo):
    first = await category_service.get_global_commission_rule()
    second = await category_service.get_global_commission_rule()

    assert first.global_commission == 0
    assert first.category_id is None
    assert second.id == first.id
    assert len(await rule_repo.find_all({"category_id": None})) == 1


@pytest.mark.asyncio
async def test_update_global_commission(category_service):
    created = await category_service.get_global_commission_rule()
    updated = await category_service.update_global_commission(12.5)

    assert updated.id == created.id
    assert updated.global_commission == 12.5
    assert (await category_service.get_global_commission_rule()).global_commission == 12.5


@pytest.mark.asyncio
async def test_update_global_commission_creates_rule_when_missing(category_service, rule_repo):
    updated = await category_service.update_global_commission(3)
    assert updated.global_commission == 3
    assert (await rule_repo.find_global_rule()).id == updated.id


# ── Commission rules (read-only) ───────────────────

@pytest.mark.asyncio
async def test_list_and_get_commission_rules(category_service):
    await category_service.get_global_commission_rule()
    category = await _top(category_service, "Courier", flat_fee=2)

    rules = await category_service.list_commission_rules()
    assert len(rules) == 2

    category_rule = next(r for r in rules if r.category_id == category.id)
    fetched = await category_service.get_commission_rule(str(category_rule.id))
    assert fetched.flat_fee == 2


@pytest.mark.asyncio
async def test_get_unknown_commission_rule(category_service):
    with pytest.raises(CommissionRuleNotFound):
        await category_service.get_commission_rule(uuid.uuid4())


# ── Collaborator checks (mocked repositories) ─────

@pytest.mark.asyncio
async def test_malformed_id_never_reaches_repository():
    from app.services.category_service import CategoryService

    categories = AsyncMock()
    rules = AsyncMock()
    service = CategoryService(categories, rules)

    with pytest.raises(InvalidId):
        await service.delete_category("12345")
    categories.find_by_id.assert_not_awaited()
    rules.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_blocked_delete_leaves_rule_untouched():
    from app.services.category_service import CategoryService

    category = MagicMock(id=uuid.uuid4(), parent_id=None, is_top_level=True)
    categories = AsyncMock()
    categories.find_by_id.return_value = category
    categories.count_subcategories.return_value = 3
    rules = AsyncMock()
    service = CategoryService(categories, rules)

    with pytest.raises(CategoryHasSubcategories):
        await service.delete_category(category.id)
    rules.find_by_category_id.assert_not_awaited()
    categories.delete.assert_not_awaited()
