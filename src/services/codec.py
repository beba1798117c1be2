"""
Codec de registros

Convierte documentos crudos del almacén en registros con forma canónica:
todos los campos declarados presentes, texto para los campos de texto y
número para los numéricos, sin importar la representación histórica
(booleanos antiguos, números, cadenas) con la que se hayan guardado.
"""

import math
from datetime import datetime
from typing import Any, Dict, Union

from models.esquemas import EsquemaRegistro
from services.almacen import CAMPOS_SISTEMA, DocumentoCrudo, ahora_utc, en_utc

Numero = Union[int, float]


def a_texto(valor: Any) -> str:
    """
    Coaccionar un valor almacenado a texto de presentación

    None -> "", booleano -> "1" / "", números enteros sin ".0",
    cualquier otro valor -> str(valor).
    """
    if valor is None:
        return ""
    if isinstance(valor, bool):
        return "1" if valor else ""
    if isinstance(valor, float):
        if math.isnan(valor):
            return ""
        if valor.is_integer():
            return str(int(valor))
        return str(valor)
    if isinstance(valor, int):
        return str(valor)
    return str(valor)


def a_numero(valor: Any) -> Numero:
    """
    Coaccionar un valor almacenado a número

    None o "" -> 0, booleano -> 1 / 0, cadenas numéricas se interpretan,
    cualquier valor no interpretable -> 0.
    """
    if valor is None:
        return 0
    if isinstance(valor, bool):
        return 1 if valor else 0
    if isinstance(valor, (int, float)):
        if isinstance(valor, float) and (math.isnan(valor) or math.isinf(valor)):
            return 0
        return valor
    texto = str(valor).strip().replace(",", "")
    if not texto:
        return 0
    try:
        numero = float(texto)
    except ValueError:
        return 0
    if math.isnan(numero) or math.isinf(numero):
        return 0
    return int(numero) if numero.is_integer() else numero


def decodificar(esquema: EsquemaRegistro, documento: DocumentoCrudo) -> Dict[str, Any]:
    """
    Decodificar un documento en un registro del esquema

    Nunca lanza excepciones por campos faltantes o de tipo inesperado.

    Args:
        esquema: Esquema del registro
        documento: Documento crudo del almacén

    Returns:
        Diccionario con id, todos los campos declarados, createdAt y updatedAt
    """
    datos = documento.datos or {}
    registro: Dict[str, Any] = {"id": documento.id}
    for campo in esquema.campos:
        valor = datos.get(campo)
        registro[campo] = a_numero(valor) if esquema.es_numerico(campo) else a_texto(valor)
    registro["createdAt"] = _marca(documento.created_at)
    registro["updatedAt"] = _marca(documento.updated_at)
    return registro


def _marca(valor: Any) -> datetime:
    if isinstance(valor, datetime):
        return en_utc(valor)
    if isinstance(valor, str):
        try:
            return en_utc(datetime.fromisoformat(valor))
        except ValueError:
            pass
    return ahora_utc()


def preparar_escritura(esquema: EsquemaRegistro, datos: Dict[str, Any]) -> Dict[str, Any]:
    """
    Preparar un mapa de campos para escribirlo en el almacén

    Descarta id, createdAt, updatedAt y claves que el esquema no declara.
    Los campos numéricos se guardan como número y el resto como texto.
    """
    declarados = set(esquema.campos)
    limpio: Dict[str, Any] = {}
    for campo, valor in datos.items():
        if campo in CAMPOS_SISTEMA or campo not in declarados:
            continue
        limpio[campo] = a_numero(valor) if esquema.es_numerico(campo) else a_texto(valor)
    return limpio
