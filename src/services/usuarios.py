"""
Servicio de usuarios, roles y perfiles

Gestiona las colecciones `roles` y `users`:
- Siembra de los roles por defecto al arrancar
- CRUD de roles con protección de los roles del sistema
- Perfiles de usuario, aprovisionados en el primer acceso
- Apertura de sesión: identidad -> perfil -> permisos del rol
"""

from typing import List, Optional, Tuple

from app_types.actividad import AccionActividad, ModuloActividad
from app_types.seguridad import (
    Identidad,
    PerfilActualizar,
    PerfilUsuario,
    Rol,
    RolActualizar,
    RolCrear,
    UsuarioActualizar,
)
from services.actividad import registrar_actividad
from services.almacen import AlmacenDocumentos, Consulta, DocumentoCrudo
from services.autorizacion import (
    COLECCION_ROLES,
    ROLES_POR_DEFECTO,
    ROLES_PROTEGIDOS,
    SUPERADMIN,
    USUARIO,
    ResolutorPermisos,
    Sesion,
    validar_permisos,
)
from utils.errores import OperacionNoPermitida, RegistroNoEncontrado
from utils.logging_config import get_logger

logger = get_logger(__name__)

COLECCION_USUARIOS = "users"


# ============================================================================
# ROLES
# ============================================================================


def _a_rol(documento: DocumentoCrudo) -> Rol:
    return Rol(
        id=documento.id,
        created_at=documento.created_at,
        updated_at=documento.updated_at,
        **documento.datos,
    )


def listar_roles(almacen: AlmacenDocumentos) -> List[Rol]:
    resultado = almacen.consultar(COLECCION_ROLES, Consulta(orden=("createdAt", "asc")))
    return [_a_rol(doc) for doc in resultado.documentos]


def obtener_rol(almacen: AlmacenDocumentos, id_rol: str) -> Rol:
    documento = almacen.obtener(COLECCION_ROLES, id_rol)
    if documento is None:
        raise RegistroNoEncontrado(COLECCION_ROLES, id_rol)
    return _a_rol(documento)


def obtener_rol_por_nombre(almacen: AlmacenDocumentos, nombre: str) -> Optional[Rol]:
    resultado = almacen.consultar(
        COLECCION_ROLES, Consulta(igualdades=(("name", nombre),)), limite=1
    )
    return _a_rol(resultado.documentos[0]) if resultado.documentos else None


def inicializar_roles(almacen: AlmacenDocumentos) -> int:
    """
    Crear los roles por defecto que falten

    Returns:
        Cantidad de roles creados
    """
    existentes = {rol.name for rol in listar_roles(almacen)}
    creados = 0
    for definicion in ROLES_POR_DEFECTO:
        if definicion["name"] not in existentes:
            almacen.insertar(COLECCION_ROLES, dict(definicion))
            creados += 1
    if creados:
        logger.info(f"Roles por defecto creados: {creados}")
    return creados


def crear_rol(almacen: AlmacenDocumentos, datos: RolCrear) -> Rol:
    """
    Raises:
        ValueError: Si hay permisos desconocidos
        OperacionNoPermitida: Si ya existe un rol con ese nombre
    """
    nombre = datos.name.strip()
    if not nombre:
        raise ValueError("El nombre del rol es obligatorio")
    if obtener_rol_por_nombre(almacen, nombre) is not None:
        raise OperacionNoPermitida(f"Ya existe un rol con el nombre {nombre}")
    id_rol = almacen.insertar(
        COLECCION_ROLES,
        {
            "name": nombre,
            "displayName": datos.display_name.strip(),
            "description": datos.description,
            "permissions": validar_permisos(datos.permissions),
        },
    )
    return obtener_rol(almacen, id_rol)


def actualizar_rol(
    almacen: AlmacenDocumentos, id_rol: str, cambios: RolActualizar
) -> Tuple[Rol, Rol]:
    """
    Actualizar nombre visible, descripción y permisos (el nombre no cambia)

    Returns:
        (rol anterior, rol actualizado)
    """
    anterior = obtener_rol(almacen, id_rol)
    datos = {}
    if cambios.display_name is not None:
        if not cambios.display_name.strip():
            raise ValueError("El nombre visible del rol es obligatorio")
        datos["displayName"] = cambios.display_name.strip()
    if cambios.description is not None:
        datos["description"] = cambios.description
    if cambios.permissions is not None:
        datos["permissions"] = validar_permisos(cambios.permissions)
    if datos:
        almacen.actualizar(COLECCION_ROLES, id_rol, datos)
    return anterior, obtener_rol(almacen, id_rol)


def eliminar_rol(almacen: AlmacenDocumentos, id_rol: str) -> Rol:
    """
    Raises:
        OperacionNoPermitida: Si el rol es del sistema o tiene usuarios asignados
    """
    rol = obtener_rol(almacen, id_rol)
    if rol.name in ROLES_PROTEGIDOS:
        raise OperacionNoPermitida("No se puede eliminar un rol del sistema")
    asignados = almacen.contar(
        COLECCION_USUARIOS, Consulta(igualdades=(("roleId", id_rol),))
    )
    if asignados > 0:
        raise OperacionNoPermitida(
            "No se puede eliminar un rol que tiene usuarios asignados"
        )
    almacen.eliminar(COLECCION_ROLES, id_rol)
    return rol


# ============================================================================
# PERFILES
# ============================================================================


def _a_perfil(documento: DocumentoCrudo) -> PerfilUsuario:
    datos = {k: v for k, v in documento.datos.items() if k != "uid"}
    return PerfilUsuario(
        uid=documento.id,
        created_at=documento.created_at,
        updated_at=documento.updated_at,
        **datos,
    )


def obtener_perfil(almacen: AlmacenDocumentos, uid: str) -> Optional[PerfilUsuario]:
    documento = almacen.obtener(COLECCION_USUARIOS, uid)
    return _a_perfil(documento) if documento else None


def obtener_perfil_existente(almacen: AlmacenDocumentos, uid: str) -> PerfilUsuario:
    perfil = obtener_perfil(almacen, uid)
    if perfil is None:
        raise RegistroNoEncontrado(COLECCION_USUARIOS, uid)
    return perfil


def listar_usuarios(almacen: AlmacenDocumentos) -> List[PerfilUsuario]:
    resultado = almacen.consultar(COLECCION_USUARIOS, Consulta())
    return [_a_perfil(doc) for doc in resultado.documentos]


def existe_superadmin(almacen: AlmacenDocumentos) -> bool:
    return (
        almacen.contar(
            COLECCION_USUARIOS, Consulta(igualdades=(("roleName", SUPERADMIN),))
        )
        > 0
    )


def aprovisionar_perfil(almacen: AlmacenDocumentos, identidad: Identidad) -> PerfilUsuario:
    """
    Crear el perfil de una identidad que aún no lo tiene

    La primera cuenta del sistema recibe el rol superadmin; las siguientes,
    el rol user.
    """
    nombre_rol = USUARIO if existe_superadmin(almacen) else SUPERADMIN
    rol = obtener_rol_por_nombre(almacen, nombre_rol)
    if rol is None:
        inicializar_roles(almacen)
        rol = obtener_rol_por_nombre(almacen, nombre_rol)
    if rol is None:
        raise LookupError(f"Rol {nombre_rol} no encontrado")

    almacen.insertar(
        COLECCION_USUARIOS,
        {
            "email": identidad.email,
            "displayName": identidad.display_name,
            "photoURL": identidad.photo_url,
            "phone": "",
            "address": "",
            "roleId": rol.id,
            "roleName": nombre_rol,
            "isActive": True,
        },
        id_documento=identidad.uid,
    )
    logger.info(f"Perfil creado para {identidad.email} con rol {nombre_rol}")
    return obtener_perfil_existente(almacen, identidad.uid)


def actualizar_perfil_propio(
    almacen: AlmacenDocumentos, uid: str, cambios: PerfilActualizar
) -> Tuple[PerfilUsuario, PerfilUsuario]:
    """Actualizar displayName, phone, address y photoURL del propio perfil"""
    anterior = obtener_perfil_existente(almacen, uid)
    datos = cambios.model_dump(by_alias=True, exclude_none=True)
    if datos:
        almacen.actualizar(COLECCION_USUARIOS, uid, datos)
    return anterior, obtener_perfil_existente(almacen, uid)


def actualizar_usuario(
    almacen: AlmacenDocumentos, uid: str, cambios: UsuarioActualizar
) -> Tuple[PerfilUsuario, PerfilUsuario]:
    """
    Cambiar rol, estado activo o nombre de un usuario (administración)

    Returns:
        (perfil anterior, perfil actualizado)
    """
    anterior = obtener_perfil_existente(almacen, uid)
    datos = {}
    if cambios.role_id is not None:
        rol = obtener_rol(almacen, cambios.role_id)
        datos["roleId"] = rol.id
        datos["roleName"] = rol.name
    if cambios.is_active is not None:
        datos["isActive"] = cambios.is_active
    if cambios.display_name is not None:
        datos["displayName"] = cambios.display_name
    if datos:
        almacen.actualizar(COLECCION_USUARIOS, uid, datos)
    return anterior, obtener_perfil_existente(almacen, uid)


def eliminar_usuario(almacen: AlmacenDocumentos, uid: str) -> PerfilUsuario:
    """
    Raises:
        OperacionNoPermitida: Si el perfil es el del superadmin
    """
    perfil = obtener_perfil_existente(almacen, uid)
    if perfil.role_name == SUPERADMIN:
        raise OperacionNoPermitida("No se puede eliminar al superadmin")
    almacen.eliminar(COLECCION_USUARIOS, uid)
    return perfil


# ============================================================================
# SESIÓN
# ============================================================================


def abrir_sesion(
    almacen: AlmacenDocumentos, resolutor: ResolutorPermisos, identidad: Identidad
) -> Sesion:
    """
    Resolver la sesión de una identidad autenticada

    Si la identidad no tiene perfil se aprovisiona (y se registra la actividad
    de registro). Los permisos salen del rol del perfil.
    """
    perfil = obtener_perfil(almacen, identidad.uid)
    if perfil is None:
        perfil = aprovisionar_perfil(almacen, identidad)
        registrar_actividad(
            almacen,
            perfil,
            AccionActividad.REGISTER,
            ModuloActividad.AUTH,
            f"Nuevo usuario registrado: {perfil.email}",
            id_objetivo=perfil.uid,
            nombre_objetivo=perfil.display_name or perfil.email,
        )
    permisos = resolutor.permisos(perfil.role_name) if perfil.role_name else []
    return Sesion(identidad=identidad, perfil=perfil, permisos=permisos)
