"""
app/schemas package marker.
"""

from app.schemas.lab_data import (
    DateRangeResponse,
    LabDataErrorResponse,
    LabDataExtractionResponse,
    LabDataImportResponse,
    LabDataParseResponse,
)

__all__ = [
    "DateRangeResponse",
    "LabDataErrorResponse",
    "LabDataExtractionResponse",
    "LabDataImportResponse",
    "LabDataParseResponse",
]
