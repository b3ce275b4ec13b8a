"""
app/api/routers package marker.
"""

from app.api.routers.lab_data import router as lab_data_router

__all__ = [
    "lab_data_router",
]
