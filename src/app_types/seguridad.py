"""
Pydantic types for users, roles, permissions and sessions
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ModeloCamel(BaseModel):
    """
    Base model serialized with camelCase keys, as stored in the documents
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Permiso(BaseModel):
    """
    Static permission catalog entry
    """

    id: str
    name: str
    description: str
    module: str


class Rol(ModeloCamel):
    """
    Role with its assigned permission ids
    """

    id: str
    name: str
    display_name: str
    description: str = ""
    permissions: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RolCrear(ModeloCamel):
    """
    Request model for role creation
    """

    name: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    description: str = ""
    permissions: List[str] = Field(default_factory=list)


class RolActualizar(ModeloCamel):
    """
    Request model for role update (the name is immutable)
    """

    display_name: Optional[str] = None
    description: Optional[str] = None
    permissions: Optional[List[str]] = None


class PerfilUsuario(ModeloCamel):
    """
    User profile, one per authenticated identity
    """

    uid: str
    email: str = ""
    display_name: str = ""
    photo_url: str = Field(default="", alias="photoURL")
    phone: str = ""
    address: str = ""
    role_id: str = ""
    role_name: str = "user"
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PerfilActualizar(ModeloCamel):
    """
    Request model for the own-profile update
    """

    display_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")


class UsuarioActualizar(ModeloCamel):
    """
    Request model for the admin user update
    """

    role_id: Optional[str] = None
    is_active: Optional[bool] = None
    display_name: Optional[str] = None


class EstadoSesion(str, Enum):
    """
    Estados de autenticación de una solicitud
    """

    NO_AUTENTICADO = "no_autenticado"
    AUTENTICADO_SIN_PERFIL = "autenticado_sin_perfil"
    AUTENTICADO_CON_PERFIL = "autenticado_con_perfil"


class Identidad(BaseModel):
    """
    Identity asserted by the auth provider token
    """

    uid: str
    email: str = ""
    display_name: str = ""
    photo_url: str = ""


class RespuestaSesion(BaseModel):
    """
    Response model for the current session
    """

    estado: EstadoSesion
    perfil: Optional[PerfilUsuario] = None
    permisos: List[str] = Field(default_factory=list)
    es_admin: bool = False
    es_superadmin: bool = False


class EventoAutenticacion(BaseModel):
    """
    Request model for auth events recorded by the UI
    """

    accion: str = Field(..., description="login, login_google o logout")
