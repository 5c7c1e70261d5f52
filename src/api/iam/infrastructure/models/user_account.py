"""SQLAlchemy ORM model for the user_accounts table."""

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class UserAccountModel(Base, TimestampMixin):
    """ORM model for user_accounts table.

    tenant_id is nullable: platform accounts belong to no clinic. The table
    is read by email at login, before a clinic is known, so it does not use
    TenantScopedMixin.
    """

    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    tenant_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<UserAccountModel(id={self.id}, email={self.email})>"
