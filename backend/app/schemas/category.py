"""Category schemas: service inputs, multipart form parsing and API responses."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.commission import CommissionRuleInput, CommissionRuleResponse
from app.schemas.common import CamelModel

CommissionType = Literal["percentage", "flat", "none"]


def _blank_to_none(value):
    if isinstance(value, str) and value.strip() in ("", "null", "undefined"):
        return None
    return value


# ── Service inputs ─────────────────────────────────
class CreateCategoryInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    parent_id: UUID | None = None
    status: bool = True
    icon_url: str | None = None


class UpdateCategoryInput(BaseModel):
    """Partial update; only fields explicitly set are applied.

    `parent_id` set to None means "make top-level", while leaving it unset keeps
    the current parent.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    parent_id: UUID | None = None
    status: bool | None = None
    icon_url: str | None = None

    @property
    def changes_parent(self) -> bool:
        return "parent_id" in self.model_fields_set


# ── Multipart forms ────────────────────────────────
class _CategoryFormBase(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str | None = Field(None, max_length=500)
    parent_id: UUID | None = None
    commission_type: CommissionType | None = None
    commission_value: float | None = Field(None, ge=0)
    commission_status: bool = True

    @field_validator(
        "description", "parent_id", "commission_type", "commission_value", mode="before"
    )
    @classmethod
    def _blank(cls, value):
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _percentage_range(self):
        if (
            self.commission_type == "percentage"
            and self.commission_value is not None
            and self.commission_value > 100
        ):
            raise ValueError("Percentage commission cannot exceed 100%")
        return self

    def _amount_input(self) -> CommissionRuleInput | None:
        if self.commission_type == "percentage":
            return CommissionRuleInput(
                category_commission=self.commission_value, status=self.commission_status
            )
        if self.commission_type == "flat":
            return CommissionRuleInput(flat_fee=self.commission_value, status=self.commission_status)
        return None


class CategoryForm(_CategoryFormBase):
    """Create form. A commission type other than "none" requires a value."""

    name: str = Field(..., min_length=2, max_length=100)
    status: bool = True

    @model_validator(mode="after")
    def _value_required(self):
        if (
            self.parent_id is None
            and self.commission_type in ("percentage", "flat")
            and self.commission_value is None
        ):
            raise ValueError("Commission value is required for selected commission type")
        return self

    def to_category_input(self, icon_url: str | None = None) -> CreateCategoryInput:
        return CreateCategoryInput(
            name=self.name,
            description=self.description,
            parent_id=self.parent_id,
            status=self.status,
            icon_url=icon_url,
        )

    def to_commission_input(self) -> CommissionRuleInput | None:
        if self.commission_value is None:
            return None
        return self._amount_input()


class CategoryUpdateForm(_CategoryFormBase):
    """Update form. Absent fields are left unchanged."""

    name: str | None = Field(None, min_length=2, max_length=100)
    status: bool | None = None
    icon_url: str | None = None

    @field_validator("icon_url", mode="before")
    @classmethod
    def _blank_icon(cls, value):
        return _blank_to_none(value)

    def to_update_input(self, icon_url: str | None = None) -> UpdateCategoryInput:
        fields = {}
        for key in ("name", "status"):
            if getattr(self, key) is not None:
                fields[key] = getattr(self, key)
        # Nullable fields: an explicit blank clears them
        for key in ("description", "parent_id"):
            if key in self.model_fields_set:
                fields[key] = getattr(self, key)
        if icon_url is not None:
            fields["icon_url"] = icon_url
        elif "icon_url" in self.model_fields_set:
            # A blank iconUrl clears the icon, any other value is kept as given
            fields["icon_url"] = self.icon_url
        return UpdateCategoryInput(**fields)

    def to_commission_input(self) -> CommissionRuleInput | None:
        if self.commission_type is None:
            return None
        if self.commission_type == "none" or self.commission_value is None:
            return CommissionRuleInput(remove_rule=True, status=self.commission_status)
        return self._amount_input()


# ── Responses ──────────────────────────────────────
class CategoryResponse(CamelModel):
    id: UUID
    name: str
    description: str | None = None
    parent_id: UUID | None = None
    status: bool
    icon_url: str | None = None
    created_at: datetime
    updated_at: datetime


class CategorySummaryResponse(CategoryResponse):
    """Top-level listing entry."""

    sub_category_count: int = 0
    commission_rule: CommissionRuleResponse | None = None


class CategoryDetailResponse(CategoryResponse):
    commission_rule: CommissionRuleResponse | None = None
    sub_categories: list[CategoryResponse] = []
    # Flattened view of the rule, matching the admin form fields
    commission_type: CommissionType = "none"
    commission_value: float | None = None
    commission_status: bool = False


class CategoryWithRule(CamelModel):
    category: CategoryResponse
    commission_rule: CommissionRuleResponse | None = None


class CategoryMutationResponse(CategoryWithRule):
    message: str


class CategoryDeleteResponse(CamelModel):
    message: str = "Category deleted successfully"
    category: CategoryResponse
