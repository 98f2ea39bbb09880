from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Enum, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from suagrana.models.base import Base, TimestampMixin


class CategoryType(str, PyEnum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(Base, TimestampMixin):
    """Tenant-defined label for income or expense entries"""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    category_type: Mapped[CategoryType] = mapped_column(
        Enum(CategoryType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", "category_type", name="uq_category_tenant_name_type"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}', type={self.category_type.value})>"
