"""
app/repositories package marker.
"""

from app.repositories.audit_log_repository import AuditLogRepository
from app.repositories.lab_data_repository import LabDataRepository
from app.repositories.lab_reference_repository import LabReferenceRepository

__all__ = [
    "AuditLogRepository",
    "LabDataRepository",
    "LabReferenceRepository",
]
