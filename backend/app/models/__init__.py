"""SQLAlchemy models for QuickMate."""

from app.models.user import User, UserRole
from app.models.category import Category
from app.models.commission_rule import CommissionRule

__all__ = [
    "User",
    "UserRole",
    "Category",
    "CommissionRule",
]
