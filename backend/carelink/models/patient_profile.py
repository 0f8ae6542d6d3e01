from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, TimestampMixin, new_id


class PatientProfile(Base, TimestampMixin):
    """One hospital linkage of a patient identity, keyed by national id (cnic)."""

    __tablename__ = "patient_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
        comment="Canonical patient profile; shared by every row with this cnic",
    )
    hospital_id: Mapped[str | None] = mapped_column(
        ForeignKey("hospitals.id", ondelete="CASCADE"),
        nullable=True,
    )
    cnic: Mapped[str] = mapped_column(String(32), nullable=False)
    created_by: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        comment="Assistant profile that registered or last relinked the patient",
    )

    __table_args__ = (
        UniqueConstraint("cnic", "hospital_id", name="uq_patient_profiles_cnic_hospital"),
        Index("ix_patient_profiles_cnic", "cnic"),
        Index("ix_patient_profiles_hospital_created", "hospital_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<PatientProfile(id={self.id}, cnic='{self.cnic}', hospital_id={self.hospital_id})>"
