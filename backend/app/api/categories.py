"""Category and global-commission endpoints (Admin only)."""

from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.core.deps import get_category_service, get_image_uploader, require_admin
from app.core.errors import DomainError, InvalidInputError
from app.schemas.auth import CurrentUser
from app.schemas.category import (
    CategoryDeleteResponse,
    CategoryDetailResponse,
    CategoryForm,
    CategoryMutationResponse,
    CategoryUpdateForm,
)
from app.schemas.commission import (
    CommissionRuleResponse,
    GlobalCommissionUpdate,
    GlobalCommissionUpdateResponse,
)
from app.services.category_service import CategoryService
from app.services.uploads import ImageUploader

router = APIRouter(prefix="/categories", tags=["categories"])


def _validate_form(model, raw: dict):
    """Validate multipart fields; absent fields are dropped so defaults apply."""
    try:
        return model.model_validate({k: v for k, v in raw.items() if v is not None})
    except ValidationError as exc:
        raise InvalidInputError.from_pydantic(exc)


async def parse_category_form(
    name: str | None = Form(None),
    description: str | None = Form(None),
    status_: str | None = Form(None, alias="status"),
    parent_id: str | None = Form(None, alias="parentId"),
    commission_type: str | None = Form(None, alias="commissionType"),
    commission_value: str | None = Form(None, alias="commissionValue"),
    commission_status: str | None = Form(None, alias="commissionStatus"),
) -> CategoryForm:
    return _validate_form(
        CategoryForm,
        {
            "name": name,
            "description": description,
            "status": status_,
            "parentId": parent_id,
            "commissionType": commission_type,
            "commissionValue": commission_value,
            "commissionStatus": commission_status,
        },
    )


async def parse_category_update_form(
    name: str | None = Form(None),
    description: str | None = Form(None),
    status_: str | None = Form(None, alias="status"),
    parent_id: str | None = Form(None, alias="parentId"),
    commission_type: str | None = Form(None, alias="commissionType"),
    commission_value: str | None = Form(None, alias="commissionValue"),
    commission_status: str | None = Form(None, alias="commissionStatus"),
    icon_url: str | None = Form(None, alias="iconUrl"),
) -> CategoryUpdateForm:
    return _validate_form(
        CategoryUpdateForm,
        {
            "name": name,
            "description": description,
            "status": status_,
            "parentId": parent_id,
            "commissionType": commission_type,
            "commissionValue": commission_value,
            "commissionStatus": commission_status,
            "iconUrl": icon_url,
        },
    )


def _has_file(upload: UploadFile | None) -> bool:
    # Browsers send an empty part when no file was picked
    return upload is not None and bool(upload.filename)


@asynccontextmanager
async def _discard_icon_on_error(uploader: ImageUploader, icon_url: str | None):
    """Remove a freshly stored icon when the write it belongs to is rejected."""
    try:
        yield
    except (DomainError, IntegrityError):
        if icon_url:
            await uploader.discard(icon_url)
        raise


# ── Global commission (registered before /{category_id}) ──
@router.get("/global-commission", response_model=CommissionRuleResponse)
async def get_global_commission(
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    """Get the global commission rule, creating it at 0% on first access."""
    return await service.get_global_commission_rule()


@router.put("/global-commission", response_model=GlobalCommissionUpdateResponse)
async def update_global_commission(
    body: GlobalCommissionUpdate,
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    """Set the platform-wide commission percentage (0-100)."""
    rule = await service.update_global_commission(body.global_commission)
    return GlobalCommissionUpdateResponse(rule=rule)


# ── Categories ─────────────────────────────────────
@router.get("", response_model=None)
async def list_categories(
    parent_id: str | None = Query(None, alias="parentId"),
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    """Top-level categories with details, or the subcategories of `parentId`."""
    if parent_id:
        return await service.get_all_subcategories(parent_id)
    return await service.get_all_top_level_categories_with_details()


@router.get("/{category_id}", response_model=CategoryDetailResponse)
async def get_category(
    category_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    """Get one category with its subcategories and, if top-level, its commission rule."""
    return await service.get_category_by_id(category_id)


@router.post("", response_model=CategoryMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    current_user: CurrentUser = Depends(require_admin),
    form: CategoryForm = Depends(parse_category_form),
    category_icon: UploadFile | None = File(None, alias="categoryIcon"),
    service: CategoryService = Depends(get_category_service),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """Create a category or subcategory, with optional icon and commission rule."""
    icon_url = await uploader.upload(category_icon) if _has_file(category_icon) else None

    async with _discard_icon_on_error(uploader, icon_url):
        result = await service.create_category(
            form.to_category_input(icon_url=icon_url),
            form.to_commission_input(),
        )
    return CategoryMutationResponse(
        message="Category created successfully",
        category=result.category,
        commission_rule=result.commission_rule,
    )


@router.put("/{category_id}", response_model=CategoryMutationResponse)
async def update_category(
    category_id: str,
    current_user: CurrentUser = Depends(require_admin),
    form: CategoryUpdateForm = Depends(parse_category_update_form),
    category_icon: UploadFile | None = File(None, alias="categoryIcon"),
    service: CategoryService = Depends(get_category_service),
    uploader: ImageUploader = Depends(get_image_uploader),
):
    """Update a category; commission handling depends on the resulting scope."""
    icon_url = await uploader.upload(category_icon) if _has_file(category_icon) else None

    async with _discard_icon_on_error(uploader, icon_url):
        result = await service.update_category(
            category_id,
            form.to_update_input(icon_url=icon_url),
            form.to_commission_input(),
        )
    return CategoryMutationResponse(
        message="Category updated successfully",
        category=result.category,
        commission_rule=result.commission_rule,
    )


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
async def delete_category(
    category_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    """Delete a category that has no subcategories, along with its commission rule."""
    deleted = await service.delete_category(category_id)
    return CategoryDeleteResponse(category=deleted)
