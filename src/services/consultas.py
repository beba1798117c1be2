"""
Constructor de consultas a partir de filtros

Traduce un mapa disperso de filtros de igualdad (y, para el directorio de
IPS, una búsqueda por prefijo del nombre) en una Consulta ordenada. La
construcción es pura: los mismos filtros producen siempre la misma consulta
y la misma clave de caché, sin importar el orden de inserción.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from models.esquemas import EsquemaRegistro
from services.almacen import CAMPO_CREACION, Consulta

# Centinela alto para el intervalo semiabierto de prefijo
CENTINELA_PREFIJO = "\uf8ff"

Filtros = Optional[Mapping[str, Any]]


def normalizar_filtros(esquema: EsquemaRegistro, filtros: Filtros) -> Dict[str, str]:
    """
    Limpiar los filtros: descartar vacíos y validar las claves

    Raises:
        ValueError: Si algún filtro no está soportado por el registro
    """
    if not filtros:
        return {}
    permitidos = esquema.campos_consultables
    normalizados: Dict[str, str] = {}
    for clave, valor in filtros.items():
        if clave not in permitidos:
            raise ValueError(f"Filtro no soportado para {esquema.nombre}: {clave}")
        if valor is None:
            continue
        texto = str(valor)
        if not texto.strip():
            continue
        if clave == esquema.campo_prefijo:
            texto = texto.strip().upper()
        normalizados[clave] = texto
    return normalizados


def construir_consulta(esquema: EsquemaRegistro, filtros: Filtros = None) -> Consulta:
    """
    Construir la consulta ordenada para un conjunto de filtros

    Orden por defecto: createdAt descendente. Con filtro de prefijo el orden
    pasa a ser el campo del prefijo ascendente y se agrega el intervalo
    [valor, valor + centinela).

    Args:
        esquema: Esquema del registro
        filtros: Mapa campo -> valor

    Returns:
        Consulta lista para el almacén
    """
    normalizados = normalizar_filtros(esquema, filtros)

    igualdades: List[Tuple[str, str]] = [
        (campo, normalizados[campo]) for campo in esquema.filtrables if campo in normalizados
    ]

    prefijo = normalizados.get(esquema.campo_prefijo) if esquema.campo_prefijo else None
    if prefijo:
        return Consulta(
            igualdades=tuple(igualdades),
            rango=(esquema.campo_prefijo, prefijo, prefijo + CENTINELA_PREFIJO),
            orden=(esquema.campo_prefijo, "asc"),
        )

    return Consulta(igualdades=tuple(igualdades), orden=(CAMPO_CREACION, "desc"))


def clave_filtros(esquema: EsquemaRegistro, filtros: Filtros = None) -> str:
    """Firma serializada de los filtros, usada como clave de la caché de conteos"""
    return json.dumps(normalizar_filtros(esquema, filtros), sort_keys=True, ensure_ascii=False)
