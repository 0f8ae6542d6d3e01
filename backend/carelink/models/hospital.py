from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, TimestampMixin, new_id
from carelink.models.profile import ApprovalStatus


class Hospital(Base, TimestampMixin):
    """Hospital submitted by a hospital admin at registration."""

    __tablename__ = "hospitals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    hospital_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    admin_profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
        comment="Owning hospital_admin profile; set once at registration",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStatus.pending.value,
        server_default="pending",
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Hospital(id={self.id}, name='{self.name}', status={self.status})>"


class HospitalAdminProfile(Base, TimestampMixin):
    """Links a hospital_admin profile to the hospital it administers."""

    __tablename__ = "hospital_admin_profiles"

    profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    hospital_id: Mapped[str] = mapped_column(
        ForeignKey("hospitals.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<HospitalAdminProfile(profile_id={self.profile_id}, hospital_id={self.hospital_id})>"
