"""Domain services for CareLink.

Imports are resolved lazily so that importing one service does not pull in the
others (and their settings) during application startup.
"""

from importlib import import_module

__all__ = [
    # Store
    "ClinicStore",
    "SQLClinicStore",
    "InMemoryClinicStore",
    # Identity
    "IdentityProvider",
    "LocalIdentityProvider",
    # Registration
    "RegistrationService",
    # Approval workflow
    "ApprovalWorkflow",
    "ApprovalOutcome",
    "EntityRef",
    "Gate",
    # Patient reconciliation
    "PatientReconciler",
    "ReconciliationResult",
    "ReconciliationStatus",
]

_LAZY_IMPORTS = {
    "ClinicStore": ("carelink.services.store", "ClinicStore"),
    "SQLClinicStore": ("carelink.services.store", "SQLClinicStore"),
    "InMemoryClinicStore": ("carelink.services.store", "InMemoryClinicStore"),
    "IdentityProvider": ("carelink.services.identity", "IdentityProvider"),
    "LocalIdentityProvider": ("carelink.services.identity", "LocalIdentityProvider"),
    "RegistrationService": ("carelink.services.registration", "RegistrationService"),
    "ApprovalWorkflow": ("carelink.services.workflow", "ApprovalWorkflow"),
    "ApprovalOutcome": ("carelink.services.workflow", "ApprovalOutcome"),
    "EntityRef": ("carelink.services.workflow", "EntityRef"),
    "Gate": ("carelink.services.workflow", "Gate"),
    "PatientReconciler": ("carelink.services.reconciliation", "PatientReconciler"),
    "ReconciliationResult": ("carelink.services.reconciliation", "ReconciliationResult"),
    "ReconciliationStatus": ("carelink.services.reconciliation", "ReconciliationStatus"),
}


def __getattr__(name: str):
    target = _LAZY_IMPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)
