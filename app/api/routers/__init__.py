"""
app/api/routers package marker.
"""

from app.api.routers.export_router import router as export_router
from app.api.routers.import_router import router as import_router

__all__ = [
    "export_router",
    "import_router",
]
