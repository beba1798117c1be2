"""
Dependencias compartidas por los routers

- Contenedor de servicios (almacén, servicios de registro, resolutor de
  permisos, verificador de tokens) como instancia global perezosa
- Sesión del usuario a partir del token bearer
- Guardas por permiso y por rol
"""

from typing import Dict, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app_types.seguridad import EstadoSesion
from models.esquemas import ESQUEMAS
from services.almacen import AlmacenDocumentos, AlmacenSQL
from services.autenticacion import ErrorAutenticacion, ProveedorJWT
from services.autorizacion import ResolutorPermisos, Sesion
from services.registros import ServicioRegistro
from services.usuarios import abrir_sesion
from utils.logging_config import get_logger
from utils.settings import Settings, engine, settings

logger = get_logger(__name__)

esquema_bearer = HTTPBearer(auto_error=False)


class Contenedor:
    """Servicios de la aplicación compartidos entre solicitudes"""

    def __init__(
        self,
        almacen: AlmacenDocumentos,
        proveedor: Optional[ProveedorJWT],
        cache_dir: str = ".cache",
    ):
        self.almacen = almacen
        self.proveedor = proveedor
        self.resolutor = ResolutorPermisos(almacen)
        self.registros: Dict[str, ServicioRegistro] = {
            nombre: ServicioRegistro.con_espejo(esquema, almacen, cache_dir)
            for nombre, esquema in ESQUEMAS.items()
        }

    @classmethod
    def desde_configuracion(cls, config: Settings) -> "Contenedor":
        almacen = AlmacenSQL(engine)
        proveedor = None
        if config.auth_jwt_secret or config.auth_jwks_url:
            proveedor = ProveedorJWT(
                secreto=config.auth_jwt_secret,
                algoritmo=config.auth_jwt_algoritmo,
                jwks_url=config.auth_jwks_url,
                emisor=config.auth_emisor,
                audiencia=config.auth_audiencia,
            )
        else:
            logger.warning("Autenticación sin configurar: todas las rutas protegidas responderán 401")
        return cls(almacen, proveedor, config.cache_dir)

    def servicio(self, nombre: str) -> ServicioRegistro:
        """
        Raises:
            HTTPException: 404 si el registro no existe
        """
        servicio = self.registros.get(nombre)
        if servicio is None:
            raise HTTPException(status_code=404, detail=f"Registro desconocido: {nombre}")
        return servicio


# Instancia global del contenedor
_contenedor: Optional[Contenedor] = None


def get_contenedor() -> Contenedor:
    """
    Obtener o crear la instancia global del contenedor

    Returns:
        Instancia singleton de Contenedor
    """
    global _contenedor
    if _contenedor is None:
        _contenedor = Contenedor.desde_configuracion(settings)
    return _contenedor


# ============================================================================
# SESIÓN Y GUARDAS
# ============================================================================


async def get_sesion(
    credenciales: Optional[HTTPAuthorizationCredentials] = Depends(esquema_bearer),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Sesion:
    """
    Resolver la sesión del token bearer

    401 sin token o con token inválido; 403 si el perfil está desactivado.
    """
    if credenciales is None or not credenciales.credentials:
        raise HTTPException(status_code=401, detail="Se requiere autenticación")
    if contenedor.proveedor is None:
        raise HTTPException(status_code=401, detail="Autenticación no configurada")
    try:
        identidad = contenedor.proveedor.identidad(credenciales.credentials)
    except ErrorAutenticacion as e:
        raise HTTPException(status_code=401, detail=str(e))

    try:
        sesion = abrir_sesion(contenedor.almacen, contenedor.resolutor, identidad)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cargando perfil: {str(e)}")

    if sesion.estado != EstadoSesion.AUTENTICADO_CON_PERFIL or not sesion.perfil.is_active:
        raise HTTPException(status_code=403, detail="Usuario desactivado")
    return sesion


def requiere_permiso(permiso: str):
    """Dependencia que exige un permiso del catálogo"""

    async def verificar(sesion: Sesion = Depends(get_sesion)) -> Sesion:
        if not sesion.puede(permiso):
            raise HTTPException(status_code=403, detail=f"Permiso requerido: {permiso}")
        return sesion

    return verificar


def requiere_roles(*roles: str):
    """Dependencia que exige pertenecer a alguno de los roles"""

    async def verificar(sesion: Sesion = Depends(get_sesion)) -> Sesion:
        if sesion.perfil is None or sesion.perfil.role_name not in roles:
            raise HTTPException(status_code=403, detail="Acceso restringido a administradores")
        return sesion

    return verificar


def verificar_permiso_registro(sesion: Sesion, registro: str, accion: str) -> None:
    """
    Verificar `<registro>.<accion>` para rutas parametrizadas por registro

    Raises:
        HTTPException: 403 si falta el permiso
    """
    permiso = f"{registro}.{accion}"
    if not sesion.puede(permiso):
        raise HTTPException(status_code=403, detail=f"Permiso requerido: {permiso}")
