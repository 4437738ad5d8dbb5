"""Services package."""

from tappark.services.audit_service import AuditService
from tappark.services.eligibility_service import EligibilityScanner
from tappark.services.expiration_service import ExpiryError, ReservationExpirer
from tappark.services.reconciliation_service import ReconciliationService
from tappark.services.sweep_service import SweepCoordinator

__all__ = [
    "EligibilityScanner",
    "ReservationExpirer",
    "ExpiryError",
    "SweepCoordinator",
    "AuditService",
    "ReconciliationService",
]
