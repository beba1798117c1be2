"""
Lectura y generación de libros Excel

- Lectura de la primera hoja de un .xlsx (o un .csv) en filas por encabezado
- Mapeo de filas a campos del registro según el esquema
- Generación del libro exportado y de la plantilla con filas de ejemplo
"""

from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from models.esquemas import EsquemaRegistro
from services.codec import a_numero
from utils.logging_config import get_logger

logger = get_logger(__name__)

EXTENSIONES_PERMITIDAS = (".xlsx", ".csv")


def celda_a_texto(valor: Any) -> str:
    """
    Convertir una celda en texto de presentación

    NaN/None -> "", fechas -> dd/mm/aaaa, flotantes enteros sin ".0".
    """
    if valor is None:
        return ""
    if isinstance(valor, float) and pd.isna(valor):
        return ""
    if valor is pd.NaT:
        return ""
    if isinstance(valor, (datetime, date)):
        return valor.strftime("%d/%m/%Y")
    if isinstance(valor, bool):
        return "1" if valor else ""
    if isinstance(valor, float) and valor.is_integer():
        return str(int(valor))
    return str(valor).strip()


def leer_hoja(contenido: bytes, nombre_archivo: str) -> List[Dict[str, str]]:
    """
    Leer la primera hoja de un archivo en filas por encabezado

    Args:
        contenido: Bytes del archivo subido
        nombre_archivo: Nombre original (define el formato)

    Returns:
        Lista de filas {encabezado: texto}, omitiendo filas totalmente vacías

    Raises:
        ValueError: Si el formato no es soportado o no hay registros
    """
    nombre = (nombre_archivo or "").lower()
    if not nombre.endswith(EXTENSIONES_PERMITIDAS):
        raise ValueError("El archivo debe ser un Excel (.xlsx) o CSV (.csv)")

    buffer = BytesIO(contenido)
    try:
        if nombre.endswith(".csv"):
            df = pd.read_csv(buffer, dtype=object, keep_default_na=False)
        else:
            df = pd.read_excel(buffer, sheet_name=0, engine="openpyxl", dtype=object)
    except Exception as e:
        raise ValueError(f"No se pudo leer el archivo: {str(e)}") from e

    df.columns = [str(columna).strip() for columna in df.columns]

    filas: List[Dict[str, str]] = []
    for registro in df.to_dict(orient="records"):
        fila = {encabezado: celda_a_texto(valor) for encabezado, valor in registro.items()}
        if any(fila.values()):
            filas.append(fila)

    if not filas:
        raise ValueError("El archivo no contiene registros")

    logger.info(f"Leídas {len(filas)} filas de {nombre_archivo}")
    return filas


def mapear_fila(esquema: EsquemaRegistro, fila: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mapear una fila por encabezado a los campos del registro

    Parte de los valores por defecto ("" o 0) y copia cada encabezado conocido
    cuyo valor recortado no esté vacío. Los campos numéricos se interpretan
    (no interpretable -> 0).
    """
    registro: Dict[str, Any] = {
        campo: 0 if esquema.es_numerico(campo) else "" for campo in esquema.campos
    }
    for encabezado, campo in esquema.encabezados_excel:
        valor = fila.get(encabezado)
        if valor is None:
            continue
        texto = str(valor).strip()
        if not texto:
            continue
        registro[campo] = a_numero(valor) if esquema.es_numerico(campo) else texto
    return registro


def _escribir_libro(filas: Iterable[Dict[str, Any]], encabezados: List[str], hoja: str) -> bytes:
    df = pd.DataFrame(list(filas), columns=encabezados)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        # Excel limita el nombre de hoja a 31 caracteres
        df.to_excel(writer, sheet_name=hoja[:31], index=False)
    return buffer.getvalue()


def generar_libro(
    esquema: EsquemaRegistro,
    registros: List[Dict[str, Any]],
    hoja: Optional[str] = None,
) -> bytes:
    """
    Generar un libro .xlsx con los registros, una columna por encabezado

    Args:
        esquema: Esquema del registro
        registros: Registros decodificados
        hoja: Nombre de la hoja (por defecto el del esquema)

    Returns:
        Bytes del libro
    """
    encabezados = [encabezado for encabezado, _ in esquema.encabezados_excel]
    filas = (
        {encabezado: registro.get(campo, "") for encabezado, campo in esquema.encabezados_excel}
        for registro in registros
    )
    return _escribir_libro(filas, encabezados, hoja or esquema.nombre_hoja)


def generar_plantilla(esquema: EsquemaRegistro) -> bytes:
    """Libro de ejemplo con todos los encabezados y las filas de muestra"""
    encabezados = [encabezado for encabezado, _ in esquema.encabezados_excel]
    filas = (
        {encabezado: ejemplo.get(encabezado, "") for encabezado in encabezados}
        for ejemplo in esquema.filas_ejemplo
    )
    return _escribir_libro(filas, encabezados, esquema.nombre_hoja)
