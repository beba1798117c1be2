"""
Rutas de sesión, roles, usuarios y perfil propio
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app_types.actividad import AccionActividad, ModuloActividad
from app_types.seguridad import (
    EventoAutenticacion,
    PerfilActualizar,
    PerfilUsuario,
    Permiso,
    RespuestaSesion,
    Rol,
    RolActualizar,
    RolCrear,
    UsuarioActualizar,
)
from routes.dependencias import Contenedor, get_contenedor, get_sesion, requiere_roles
from services.actividad import calcular_cambios, registrar_actividad
from services.autorizacion import ADMIN, PERMISOS, SUPERADMIN, Sesion
from services.usuarios import (
    actualizar_perfil_propio,
    actualizar_rol,
    actualizar_usuario,
    crear_rol,
    eliminar_rol,
    eliminar_usuario,
    listar_roles,
    listar_usuarios,
    obtener_rol,
)
from utils.errores import OperacionNoPermitida, RegistroNoEncontrado
from utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["seguridad"])

solo_administradores = requiere_roles(ADMIN, SUPERADMIN)
solo_superadmin = requiere_roles(SUPERADMIN)

EVENTOS_AUTENTICACION = {
    AccionActividad.LOGIN: "Inicio de sesión por email",
    AccionActividad.LOGIN_GOOGLE: "Inicio de sesión con Google",
    AccionActividad.LOGOUT: "Cierre de sesión",
}


# ============================================================================
# SESIÓN
# ============================================================================


@router.get("/auth/sesion", response_model=RespuestaSesion)
async def obtener_sesion(sesion: Sesion = Depends(get_sesion)) -> RespuestaSesion:
    """
    Sesión actual: estado, perfil y permisos del rol

    El perfil se crea en el primer acceso (la primera cuenta del sistema
    queda como superadmin).
    """
    return RespuestaSesion(
        estado=sesion.estado,
        perfil=sesion.perfil,
        permisos=sesion.permisos,
        es_admin=sesion.es_admin,
        es_superadmin=sesion.es_superadmin,
    )


@router.post("/auth/eventos", status_code=201)
async def registrar_evento_autenticacion(
    evento: EventoAutenticacion,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> dict:
    """Registrar en la bitácora un inicio o cierre de sesión hecho en la UI"""
    try:
        accion = AccionActividad(evento.accion)
    except ValueError:
        accion = None
    if accion not in EVENTOS_AUTENTICACION:
        raise HTTPException(
            status_code=400, detail="La acción debe ser login, login_google o logout"
        )
    id_entrada = registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        accion,
        ModuloActividad.AUTH,
        f"{EVENTOS_AUTENTICACION[accion]}: {sesion.perfil.email}",
    )
    return {"registrado": id_entrada is not None}


@router.get("/permisos", response_model=List[Permiso])
async def listar_permisos(sesion: Sesion = Depends(get_sesion)) -> List[Permiso]:
    """Catálogo estático de permisos"""
    return PERMISOS


# ============================================================================
# ROLES
# ============================================================================


@router.get("/roles", response_model=List[Rol])
async def get_roles(
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> List[Rol]:
    try:
        return listar_roles(contenedor.almacen)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listando roles: {str(e)}")


@router.get("/roles/{id_rol}", response_model=Rol)
async def get_rol(
    id_rol: str,
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Rol:
    try:
        return obtener_rol(contenedor.almacen, id_rol)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/roles", response_model=Rol, status_code=201)
async def post_rol(
    datos: RolCrear,
    sesion: Sesion = Depends(solo_superadmin),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Rol:
    """Crear un rol con sus permisos"""
    try:
        rol = crear_rol(contenedor.almacen, datos)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OperacionNoPermitida as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creando rol: {str(e)}")

    contenedor.resolutor.invalidar()
    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.CREATE,
        ModuloActividad.ROLES,
        f"Rol creado: {rol.display_name}",
        id_objetivo=rol.id,
        nombre_objetivo=rol.name,
    )
    return rol


@router.patch("/roles/{id_rol}", response_model=Rol)
async def patch_rol(
    id_rol: str,
    cambios: RolActualizar,
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Rol:
    """Actualizar nombre visible, descripción y permisos de un rol"""
    try:
        anterior, rol = actualizar_rol(contenedor.almacen, id_rol, cambios)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error actualizando rol: {str(e)}")

    contenedor.resolutor.invalidar()
    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.UPDATE,
        ModuloActividad.ROLES,
        f"Rol actualizado: {rol.display_name} ({len(rol.permissions)} permisos)",
        detalles={
            "cambios": calcular_cambios(
                anterior.model_dump(), rol.model_dump(), ("display_name", "description", "permissions")
            )
        },
        id_objetivo=rol.id,
        nombre_objetivo=rol.name,
    )
    return rol


@router.delete("/roles/{id_rol}")
async def delete_rol(
    id_rol: str,
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> dict:
    """Eliminar un rol que no sea del sistema ni tenga usuarios asignados"""
    try:
        rol = eliminar_rol(contenedor.almacen, id_rol)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OperacionNoPermitida as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error eliminando rol: {str(e)}")

    contenedor.resolutor.invalidar()
    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.DELETE,
        ModuloActividad.ROLES,
        f"Rol eliminado: {rol.display_name}",
        id_objetivo=rol.id,
        nombre_objetivo=rol.name,
    )
    return {"mensaje": "Rol eliminado exitosamente", "id": id_rol}


# ============================================================================
# USUARIOS
# ============================================================================


@router.get("/usuarios", response_model=List[PerfilUsuario])
async def get_usuarios(
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> List[PerfilUsuario]:
    try:
        return listar_usuarios(contenedor.almacen)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listando usuarios: {str(e)}")


@router.patch("/usuarios/{uid}", response_model=PerfilUsuario)
async def patch_usuario(
    uid: str,
    cambios: UsuarioActualizar,
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> PerfilUsuario:
    """Cambiar rol, estado activo o nombre de un usuario"""
    try:
        anterior, perfil = actualizar_usuario(contenedor.almacen, uid, cambios)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error actualizando usuario: {str(e)}")

    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.UPDATE,
        ModuloActividad.USERS,
        f"Usuario actualizado: {perfil.display_name or perfil.email}",
        detalles={
            "cambios": calcular_cambios(
                anterior.model_dump(), perfil.model_dump(), ("display_name", "role_name", "is_active")
            )
        },
        id_objetivo=uid,
        nombre_objetivo=perfil.email,
    )
    return perfil


@router.delete("/usuarios/{uid}")
async def delete_usuario(
    uid: str,
    sesion: Sesion = Depends(solo_administradores),
    contenedor: Contenedor = Depends(get_contenedor),
) -> dict:
    """Eliminar el perfil de un usuario (el superadmin no se puede eliminar)"""
    try:
        perfil = eliminar_usuario(contenedor.almacen, uid)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OperacionNoPermitida as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error eliminando usuario: {str(e)}")

    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.DELETE,
        ModuloActividad.USERS,
        f"Usuario eliminado: {perfil.display_name or perfil.email}",
        id_objetivo=uid,
        nombre_objetivo=perfil.email,
    )
    return {"mensaje": "Usuario eliminado exitosamente", "uid": uid}


# ============================================================================
# PERFIL PROPIO
# ============================================================================


@router.get("/perfil", response_model=PerfilUsuario)
async def get_perfil(sesion: Sesion = Depends(get_sesion)) -> PerfilUsuario:
    if not sesion.puede("profiles.view"):
        raise HTTPException(status_code=403, detail="Permiso requerido: profiles.view")
    return sesion.perfil


@router.patch("/perfil", response_model=PerfilUsuario)
async def patch_perfil(
    cambios: PerfilActualizar,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> PerfilUsuario:
    """Actualizar nombre, teléfono, dirección y foto del propio perfil"""
    if not sesion.puede("profiles.edit"):
        raise HTTPException(status_code=403, detail="Permiso requerido: profiles.edit")
    try:
        anterior, perfil = actualizar_perfil_propio(
            contenedor.almacen, sesion.perfil.uid, cambios
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error actualizando perfil: {str(e)}")

    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.UPDATE,
        ModuloActividad.PROFILE,
        f"Perfil actualizado: {perfil.display_name}",
        detalles={
            "cambios": calcular_cambios(
                anterior.model_dump(), perfil.model_dump(), ("display_name", "phone", "address", "photo_url")
            )
        },
        id_objetivo=perfil.uid,
        nombre_objetivo=perfil.email,
    )
    return perfil
