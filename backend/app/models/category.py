"""Category model - top-level categories and their subcategories."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class Category(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "categories"
    __table_args__ = (
        # Sibling names are unique per parent
        UniqueConstraint("parent_id", "name", name="uq_categories_parent_name"),
        # NULLs never collide in a unique constraint, so top-level names need their own index
        Index(
            "uq_categories_top_level_name",
            "name",
            unique=True,
            postgresql_where=text("parent_id IS NULL"),
            sqlite_where=text("parent_id IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    icon_url: Mapped[str | None] = mapped_column(String(500))

    # Self-referential: NULL means top-level
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return f"<Category {self.name}>"
