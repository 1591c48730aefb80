"""Read-only commission rule endpoints.

Category rules are created and changed through the category endpoints, and the
global rule through /categories/global-commission.
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_category_service, require_admin
from app.schemas.auth import CurrentUser
from app.schemas.commission import CommissionRuleResponse
from app.services.category_service import CategoryService

router = APIRouter(prefix="/commission-rules", tags=["commission-rules"])


@router.get("/all", response_model=list[CommissionRuleResponse])
async def list_commission_rules(
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    return await service.list_commission_rules()


@router.get("/{rule_id}", response_model=CommissionRuleResponse)
async def get_commission_rule(
    rule_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_commission_rule(rule_id)
