from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, TimestampMixin, new_id


class Account(Base, TimestampMixin):
    """Identity record: credentials plus the metadata captured at sign-up."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    email: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Login e-mail address",
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="PBKDF2-SHA256 hashed password"
    )

    user_metadata: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="full_name, phone, gender, dob, role as submitted at sign-up",
    )

    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    last_sign_in_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (UniqueConstraint("email", name="uq_accounts_email"),)

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}')>"
