"""API Routes for CareLink."""

from carelink.api import (
    assistant,
    auth,
    doctor,
    health,
    hospital_admin,
    hospitals,
    patients,
    profile,
    superadmin,
)

__all__ = [
    "assistant",
    "auth",
    "doctor",
    "health",
    "hospital_admin",
    "hospitals",
    "patients",
    "profile",
    "superadmin",
]
