"""
Bitácora de actividad

Registra las acciones relevantes de los usuarios (colección activityLogs).
La escritura es de mejor esfuerzo: un fallo nunca interrumpe ni revierte la
acción que se está registrando; sólo queda en el log de diagnóstico.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app_types.actividad import AccionActividad, ModuloActividad, RegistroActividad
from app_types.seguridad import PerfilUsuario
from services.almacen import AlmacenDocumentos, Consulta, Cursor
from utils.logging_config import get_diagnostic_logger, get_logger

logger = get_logger(__name__)
diagnostico = get_diagnostic_logger("actividad")

COLECCION_ACTIVIDAD = "activityLogs"
FILTROS_ACTIVIDAD = ("module", "action", "userId", "userEmail")


def registrar_actividad(
    almacen: AlmacenDocumentos,
    usuario: Optional[PerfilUsuario],
    accion: AccionActividad,
    modulo: ModuloActividad,
    descripcion: str,
    detalles: Optional[Dict[str, Any]] = None,
    id_objetivo: Optional[str] = None,
    nombre_objetivo: Optional[str] = None,
) -> Optional[str]:
    """
    Registrar una entrada en la bitácora

    Args:
        almacen: Almacén de documentos
        usuario: Perfil que ejecuta la acción
        accion: Acción realizada
        modulo: Módulo afectado
        descripcion: Descripción legible
        detalles: Datos adicionales (por ejemplo, cambios campo a campo)
        id_objetivo: Id del objeto afectado
        nombre_objetivo: Nombre del objeto afectado

    Returns:
        Id de la entrada, o None si no se pudo registrar
    """
    try:
        entrada: Dict[str, Any] = {
            "userId": usuario.uid if usuario else "",
            "userEmail": usuario.email if usuario else "",
            "userName": (usuario.display_name or usuario.email) if usuario else "",
            "action": AccionActividad(accion).value,
            "module": ModuloActividad(modulo).value,
            "description": descripcion,
        }
        if detalles:
            entrada["details"] = detalles
        if id_objetivo:
            entrada["targetId"] = id_objetivo
        if nombre_objetivo:
            entrada["targetName"] = nombre_objetivo
        return almacen.insertar(COLECCION_ACTIVIDAD, entrada)
    except Exception as e:
        diagnostico.error(f"Error registrando actividad ({accion}/{modulo}): {e}")
        return None


def calcular_cambios(
    anterior: Mapping[str, Any], actual: Mapping[str, Any], campos: Iterable[str]
) -> Dict[str, Dict[str, Any]]:
    """Mapa campo -> {before, after} de los campos que cambiaron"""
    cambios: Dict[str, Dict[str, Any]] = {}
    for campo in campos:
        antes = anterior.get(campo)
        despues = actual.get(campo)
        if antes != despues:
            cambios[campo] = {"before": antes, "after": despues}
    return cambios


def listar_actividad(
    almacen: AlmacenDocumentos,
    tamano_pagina: int = 50,
    despues_de: Optional[Cursor] = None,
    filtros: Optional[Mapping[str, Any]] = None,
) -> Tuple[List[RegistroActividad], int, Optional[Cursor], bool]:
    """
    Listar la bitácora, más reciente primero

    El conteo se recalcula en cada llamada.

    Returns:
        (entradas, total, cursor, hay_mas)

    Raises:
        ValueError: Si un filtro no está soportado o el tamaño es inválido
    """
    if tamano_pagina < 1:
        raise ValueError("El tamaño de página debe ser al menos 1")

    igualdades = []
    for clave, valor in (filtros or {}).items():
        if clave not in FILTROS_ACTIVIDAD:
            raise ValueError(f"Filtro no soportado para actividad: {clave}")
        if valor is not None and str(valor).strip():
            igualdades.append((clave, str(valor)))
    # Orden estable de las restricciones
    igualdades.sort(key=lambda par: FILTROS_ACTIVIDAD.index(par[0]))
    consulta = Consulta(igualdades=tuple(igualdades))

    resultado = almacen.consultar(
        COLECCION_ACTIVIDAD, consulta, despues_de=despues_de, limite=tamano_pagina
    )
    entradas = []
    for documento in resultado.documentos:
        try:
            entradas.append(
                RegistroActividad(
                    id=documento.id,
                    created_at=documento.created_at,
                    **documento.datos,
                )
            )
        except ValueError as e:
            logger.warning(f"Entrada de actividad ilegible {documento.id}: {e}")
    total = almacen.contar(COLECCION_ACTIVIDAD, consulta)
    return entradas, total, resultado.cursor, len(resultado.documentos) == tamano_pagina
