"""Commission rule model - one global rule plus at most one rule per top-level category."""

import uuid

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class CommissionRule(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "commission_rules"
    __table_args__ = (
        # Global rule: only global_commission. Category rule: exactly one of flat_fee / category_commission.
        CheckConstraint(
            "(category_id IS NULL AND global_commission IS NOT NULL "
            "AND flat_fee IS NULL AND category_commission IS NULL) "
            "OR (category_id IS NOT NULL AND global_commission IS NULL "
            "AND ((flat_fee IS NULL) <> (category_commission IS NULL)))",
            name="ck_commission_rules_mode",
        ),
        CheckConstraint(
            "global_commission BETWEEN 0 AND 100", name="ck_commission_rules_global_range"
        ),
        CheckConstraint(
            "category_commission BETWEEN 0 AND 100", name="ck_commission_rules_category_range"
        ),
        CheckConstraint("flat_fee >= 0", name="ck_commission_rules_flat_fee_positive"),
        # NULLs never collide in a unique constraint, so the single global rule gets its own index
        Index(
            "uq_commission_rules_global",
            text("(category_id IS NULL)"),
            unique=True,
            postgresql_where=text("category_id IS NULL"),
            sqlite_where=text("category_id IS NULL"),
        ),
    )

    category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="CASCADE"), unique=True, nullable=True
    )
    global_commission: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False))
    flat_fee: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False))
    category_commission: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False))
    status: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def is_global(self) -> bool:
        return self.category_id is None

    def __repr__(self) -> str:
        scope = "global" if self.is_global else str(self.category_id)
        return f"<CommissionRule {scope}>"
