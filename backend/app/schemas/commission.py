"""Commission rule schemas for service input and API responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import CamelModel


class CommissionRuleInput(BaseModel):
    """Category-scoped rule input. `remove_rule` deletes instead of upserting."""

    flat_fee: float | None = Field(None, ge=0)
    category_commission: float | None = Field(None, ge=0, le=100)
    status: bool = True
    remove_rule: bool = False

    @model_validator(mode="after")
    def _exactly_one_amount(self) -> "CommissionRuleInput":
        if self.remove_rule:
            return self
        if self.flat_fee is None and self.category_commission is None:
            raise ValueError("Either flat_fee or category_commission must be provided")
        if self.flat_fee is not None and self.category_commission is not None:
            raise ValueError("Cannot have both flat_fee and category_commission")
        return self


class CommissionRuleResponse(CamelModel):
    id: UUID
    category_id: UUID | None = None
    global_commission: float | None = None
    flat_fee: float | None = None
    category_commission: float | None = None
    status: bool
    created_at: datetime
    updated_at: datetime


class GlobalCommissionUpdate(CamelModel):
    global_commission: float = Field(..., ge=0, le=100)


class GlobalCommissionUpdateResponse(CamelModel):
    message: str = "Global commission updated successfully"
    rule: CommissionRuleResponse
