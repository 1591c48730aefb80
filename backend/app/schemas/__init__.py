from app.schemas.category import (
    CreateCategoryInput, UpdateCategoryInput, CategoryForm, CategoryUpdateForm,
    CategoryResponse, CategorySummaryResponse, CategoryDetailResponse, CategoryWithRule,
)
from app.schemas.commission import (
    CommissionRuleInput, CommissionRuleResponse, GlobalCommissionUpdate,
)
from app.schemas.auth import (
    RegisterRequest, LoginRequest, AuthResponse, UserPublic, CurrentUser,
)

__all__ = [
    "CreateCategoryInput", "UpdateCategoryInput", "CategoryForm", "CategoryUpdateForm",
    "CategoryResponse", "CategorySummaryResponse", "CategoryDetailResponse", "CategoryWithRule",
    "CommissionRuleInput", "CommissionRuleResponse", "GlobalCommissionUpdate",
    "RegisterRequest", "LoginRequest", "AuthResponse", "UserPublic", "CurrentUser",
]
