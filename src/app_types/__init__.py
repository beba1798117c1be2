"""
Types module for API request/response models
"""

from app_types.actividad import (
    AccionActividad,
    ModuloActividad,
    PaginaActividad,
    RegistroActividad,
)
from app_types.monitoring import HealthStatus
from app_types.registros import (
    ConteoCategoria,
    CostoPeriodo,
    IndicadoresCancer,
    RespuestaPagina,
    ResultadoEliminacion,
    ResultadoImportacion,
    ResumenTablero,
)
from app_types.seguridad import (
    EstadoSesion,
    EventoAutenticacion,
    Identidad,
    PerfilActualizar,
    PerfilUsuario,
    Permiso,
    RespuestaSesion,
    Rol,
    RolActualizar,
    RolCrear,
    UsuarioActualizar,
)

__all__ = [
    # Registry types
    "RespuestaPagina",
    "ResultadoImportacion",
    "ResultadoEliminacion",
    "ConteoCategoria",
    "CostoPeriodo",
    "IndicadoresCancer",
    "ResumenTablero",
    # Security types
    "Permiso",
    "Rol",
    "RolCrear",
    "RolActualizar",
    "PerfilUsuario",
    "PerfilActualizar",
    "UsuarioActualizar",
    "EstadoSesion",
    "Identidad",
    "RespuestaSesion",
    "EventoAutenticacion",
    # Activity types
    "AccionActividad",
    "ModuloActividad",
    "RegistroActividad",
    "PaginaActividad",
    # Monitoring types
    "HealthStatus",
]
