"""
Pydantic types for the activity log
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app_types.seguridad import ModeloCamel


class AccionActividad(str, Enum):
    LOGIN = "login"
    LOGIN_GOOGLE = "login_google"
    LOGOUT = "logout"
    REGISTER = "register"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"
    EXPORT = "export"
    VIEW = "view"


class ModuloActividad(str, Enum):
    AUTH = "auth"
    USERS = "users"
    ROLES = "roles"
    CANCER = "cancer"
    ARTHRITIS = "arthritis"
    IPS = "ips"
    PROFILE = "profile"
    SYSTEM = "system"


ETIQUETAS_ACCION = {
    AccionActividad.LOGIN: "Inicio de sesión",
    AccionActividad.LOGIN_GOOGLE: "Inicio con Google",
    AccionActividad.LOGOUT: "Cierre de sesión",
    AccionActividad.REGISTER: "Registro",
    AccionActividad.CREATE: "Creación",
    AccionActividad.UPDATE: "Actualización",
    AccionActividad.DELETE: "Eliminación",
    AccionActividad.IMPORT: "Importación",
    AccionActividad.EXPORT: "Exportación",
    AccionActividad.VIEW: "Consulta",
}


class RegistroActividad(ModeloCamel):
    """
    Activity log entry (append-only)
    """

    id: str
    user_id: str
    user_email: str = ""
    user_name: str = ""
    action: AccionActividad
    module: ModuloActividad
    description: str
    details: Optional[Dict[str, Any]] = None
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    created_at: Optional[datetime] = None


class PaginaActividad(BaseModel):
    """
    Response model for one page of the activity log
    """

    registros: List[RegistroActividad]
    total_registros: int
    cursor: Optional[str] = None
    hay_mas: bool = Field(..., description="Verdadero si la página vino completa")
