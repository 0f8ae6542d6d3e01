from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, TimestampMixin
from carelink.models.profile import ApprovalStatus


class DoctorProfile(Base, TimestampMixin):
    """Doctor credentials and the hospital-level approval gate."""

    __tablename__ = "doctor_profiles"

    profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    specialization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hospital_id: Mapped[str | None] = mapped_column(
        ForeignKey("hospitals.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    license_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cnic: Mapped[str | None] = mapped_column(String(32), nullable=True)

    approval_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStatus.pending.value,
        server_default="pending",
    )

    def __repr__(self) -> str:
        return f"<DoctorProfile(profile_id={self.profile_id}, approval_status={self.approval_status})>"


class DoctorAssistantProfile(Base, TimestampMixin):
    """Links an assistant to the doctor (and hospital) they work for."""

    __tablename__ = "doctor_assistant_profiles"

    profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    doctor_profile_id: Mapped[str] = mapped_column(
        ForeignKey("doctor_profiles.profile_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    hospital_id: Mapped[str | None] = mapped_column(
        ForeignKey("hospitals.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )

    approval_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStatus.pending.value,
        server_default="pending",
    )

    def __repr__(self) -> str:
        return f"<DoctorAssistantProfile(profile_id={self.profile_id}, doctor_profile_id={self.doctor_profile_id})>"
