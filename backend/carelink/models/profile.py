from datetime import date
from enum import StrEnum

from sqlalchemy import Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, TimestampMixin


class UserRole(StrEnum):
    super_admin = "super_admin"
    hospital_admin = "hospital_admin"
    doctor = "doctor"
    doctor_assistant = "doctor_assistant"
    patient = "patient"


class ApprovalStatus(StrEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Profile(Base, TimestampMixin):
    """Generic per-account record holding the role and the login approval gate."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Same id as the owning account; patients registered by an assistant have none",
    )

    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)

    role: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=UserRole.patient.value,
        server_default="patient",
    )
    approval_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStatus.pending.value,
        server_default="pending",
    )

    __table_args__ = (
        Index("ix_profiles_role_approval_status", "role", "approval_status"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role}, approval_status={self.approval_status})>"
