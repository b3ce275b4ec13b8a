"""
app/domain package marker.
"""

from app.domain.caller import IMPORT_ALLOWED_ROLES, CallerIdentity
from app.domain.lab_data import (
    ExtractedLabData,
    HoldTimeViolation,
    LabDataImportSummary,
    ParsedRecord,
    RowValidationError,
)

__all__ = [
    "CallerIdentity",
    "ExtractedLabData",
    "HoldTimeViolation",
    "IMPORT_ALLOWED_ROLES",
    "LabDataImportSummary",
    "ParsedRecord",
    "RowValidationError",
]
