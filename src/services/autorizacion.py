"""
Control de acceso por roles y permisos

- Catálogo estático de permisos y roles por defecto
- Verificaciones puede / es_admin / es_superadmin
- Estados de sesión
- Resolución de permisos por rol con caché en memoria por nombre de rol
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from app_types.seguridad import EstadoSesion, Identidad, PerfilUsuario, Permiso
from services.almacen import AlmacenDocumentos, Consulta
from utils.logging_config import get_logger

logger = get_logger(__name__)

COLECCION_ROLES = "roles"

SUPERADMIN = "superadmin"
ADMIN = "admin"
EDITOR = "editor"
USUARIO = "user"

ROLES_PROTEGIDOS: FrozenSet[str] = frozenset({SUPERADMIN, ADMIN, EDITOR, USUARIO})


# ============================================================================
# CATÁLOGO DE PERMISOS
# ============================================================================


def _permisos_registro(modulo: str, titulo: str) -> List[Permiso]:
    return [
        Permiso(id=f"{modulo}.view", name=f"Ver {titulo}", description=f"Ver {titulo.lower()}", module=modulo),
        Permiso(id=f"{modulo}.create", name=f"Crear {titulo}", description=f"Crear {titulo.lower()}", module=modulo),
        Permiso(id=f"{modulo}.edit", name=f"Editar {titulo}", description=f"Editar {titulo.lower()}", module=modulo),
        Permiso(id=f"{modulo}.delete", name=f"Eliminar {titulo}", description=f"Eliminar {titulo.lower()}", module=modulo),
        Permiso(id=f"{modulo}.import", name=f"Importar Excel {titulo}", description="Importar registros desde Excel", module=modulo),
    ]


PERMISOS: List[Permiso] = [
    # Usuarios
    Permiso(id="users.view", name="Ver Usuarios", description="Ver lista de usuarios", module="users"),
    Permiso(id="users.create", name="Crear Usuarios", description="Crear nuevos usuarios", module="users"),
    Permiso(id="users.edit", name="Editar Usuarios", description="Editar usuarios existentes", module="users"),
    Permiso(id="users.delete", name="Eliminar Usuarios", description="Eliminar usuarios", module="users"),
    # Roles
    Permiso(id="roles.view", name="Ver Roles", description="Ver lista de roles", module="roles"),
    Permiso(id="roles.create", name="Crear Roles", description="Crear nuevos roles", module="roles"),
    Permiso(id="roles.edit", name="Editar Roles", description="Editar roles existentes", module="roles"),
    Permiso(id="roles.delete", name="Eliminar Roles", description="Eliminar roles", module="roles"),
    # Perfiles
    Permiso(id="profiles.view", name="Ver Perfiles", description="Ver perfiles", module="profiles"),
    Permiso(id="profiles.edit", name="Editar Perfiles", description="Editar perfiles", module="profiles"),
    # Tablero
    Permiso(id="dashboard.view", name="Ver Dashboard", description="Ver dashboard de administración", module="dashboard"),
    # Registros
    *_permisos_registro("cancer", "Registros Cáncer"),
    *_permisos_registro("arthritis", "Registros Artritis"),
    *_permisos_registro("ips", "Registros IPS"),
    # Bitácora
    Permiso(
        id="activity.view",
        name="Ver Registro de Actividad",
        description="Ver el log de actividad de la plataforma",
        module="activity",
    ),
]

IDS_PERMISOS: FrozenSet[str] = frozenset(p.id for p in PERMISOS)

_REGISTROS = ("cancer", "arthritis", "ips")

ROLES_POR_DEFECTO: List[Dict[str, object]] = [
    {
        "name": SUPERADMIN,
        "displayName": "Super Administrador",
        "description": "Acceso total al sistema",
        "permissions": [p.id for p in PERMISOS],
    },
    {
        "name": ADMIN,
        "displayName": "Administrador",
        "description": "Administración de usuarios, roles y perfiles",
        "permissions": [p.id for p in PERMISOS],
    },
    {
        "name": EDITOR,
        "displayName": "Editor",
        "description": "Puede editar contenido",
        "permissions": ["dashboard.view", "profiles.view", "profiles.edit"]
        + [
            f"{registro}.{accion}"
            for registro in _REGISTROS
            for accion in ("view", "create", "edit", "delete", "import")
        ]
        + ["activity.view"],
    },
    {
        "name": USUARIO,
        "displayName": "Usuario",
        "description": "Usuario básico del sistema",
        "permissions": ["dashboard.view", "profiles.view"]
        + [f"{registro}.view" for registro in _REGISTROS],
    },
]


def validar_permisos(permisos: Iterable[str]) -> List[str]:
    """
    Raises:
        ValueError: Si algún permiso no pertenece al catálogo
    """
    lista = list(dict.fromkeys(permisos))
    desconocidos = [p for p in lista if p not in IDS_PERMISOS]
    if desconocidos:
        raise ValueError(f"Permisos desconocidos: {', '.join(desconocidos)}")
    return lista


# ============================================================================
# VERIFICACIONES
# ============================================================================


def puede(perfil: Optional[PerfilUsuario], permiso: str, permisos_rol: Iterable[str]) -> bool:
    """
    Verificar si un perfil tiene un permiso

    El superadmin cumple cualquier permiso sin consultar su rol. Perfiles
    inexistentes o desactivados no cumplen ninguno.
    """
    if perfil is None or not perfil.is_active:
        return False
    if perfil.role_name == SUPERADMIN:
        return True
    return permiso in set(permisos_rol)


def es_admin(perfil: Optional[PerfilUsuario]) -> bool:
    return perfil is not None and perfil.is_active and perfil.role_name in (ADMIN, SUPERADMIN)


def es_superadmin(perfil: Optional[PerfilUsuario]) -> bool:
    return perfil is not None and perfil.is_active and perfil.role_name == SUPERADMIN


def estado_sesion(
    identidad: Optional[Identidad], perfil: Optional[PerfilUsuario]
) -> EstadoSesion:
    if identidad is None:
        return EstadoSesion.NO_AUTENTICADO
    if perfil is None:
        return EstadoSesion.AUTENTICADO_SIN_PERFIL
    return EstadoSesion.AUTENTICADO_CON_PERFIL


# ============================================================================
# RESOLUCIÓN DE PERMISOS
# ============================================================================


class ResolutorPermisos:
    """
    Permisos por nombre de rol con caché en memoria

    La caché vive lo que el proceso y se invalida cuando un rol se crea,
    edita o elimina.
    """

    def __init__(self, almacen: AlmacenDocumentos):
        self.almacen = almacen
        self._cache: Dict[str, List[str]] = {}

    def permisos(self, nombre_rol: str) -> List[str]:
        if nombre_rol in self._cache:
            return self._cache[nombre_rol]
        resultado = self.almacen.consultar(
            COLECCION_ROLES, Consulta(igualdades=(("name", nombre_rol),)), limite=1
        )
        permisos: List[str] = []
        if resultado.documentos:
            permisos = list(resultado.documentos[0].datos.get("permissions") or [])
            self._cache[nombre_rol] = permisos
        else:
            logger.warning(f"Rol no encontrado al resolver permisos: {nombre_rol}")
        return permisos

    def invalidar(self) -> None:
        self._cache.clear()


@dataclass
class Sesion:
    """Identidad autenticada con su perfil y los permisos de su rol"""

    identidad: Optional[Identidad] = None
    perfil: Optional[PerfilUsuario] = None
    permisos: List[str] = field(default_factory=list)

    @property
    def estado(self) -> EstadoSesion:
        return estado_sesion(self.identidad, self.perfil)

    def puede(self, permiso: str) -> bool:
        return puede(self.perfil, permiso, self.permisos)

    @property
    def es_admin(self) -> bool:
        return es_admin(self.perfil)

    @property
    def es_superadmin(self) -> bool:
        return es_superadmin(self.perfil)
