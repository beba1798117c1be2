"""
Routes package - contiene los routers de registros, seguridad y actividad
"""

from routes.actividad import router as actividad_router
from routes.registros import router as registros_router
from routes.seguridad import router as seguridad_router

__all__ = ["registros_router", "seguridad_router", "actividad_router"]
