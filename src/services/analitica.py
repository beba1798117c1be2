"""
Analítica del tablero de registros

Calcula sobre la lista completa de registros (obtener_todos) los indicadores
y distribuciones que muestra el tablero:
- Indicadores del registro de cáncer (valor total, pacientes, estancia)
- Conteos por campo con etiqueta para valores vacíos
- Costo por periodo
- Distribución por región de red para el directorio de IPS
"""

from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from app_types.registros import (
    ConteoCategoria,
    CostoPeriodo,
    IndicadoresCancer,
    ResumenTablero,
)
from models.esquemas import CANCER, IPS, EsquemaRegistro
from utils.logging_config import get_logger
from utils.red_prestadores import resolver_region_red

logger = get_logger(__name__)

# Etiquetas para valores vacíos y límites de cada distribución
DISTRIBUCIONES_CANCER = (
    ("codDiagnostico", "Sin Dx", 10),
    ("epcDepartamento", "Sin Depto", 8),
    ("tipoServicio", "Sin Tipo", None),
    ("tipoContrato", "Sin Contrato", None),
    ("estado", "Sin Estado", None),
)


def _dataframe(registros: List[Dict[str, Any]], columnas: List[str]) -> pd.DataFrame:
    df = pd.DataFrame(registros)
    for columna in columnas:
        if columna not in df.columns:
            df[columna] = ""
    return df


def _texto(serie: pd.Series) -> pd.Series:
    return serie.fillna("").astype(str).str.strip()


def _numero(serie: pd.Series) -> pd.Series:
    return pd.to_numeric(serie, errors="coerce").fillna(0)


def filtrar_registros(
    registros: List[Dict[str, Any]], filtros: Optional[Mapping[str, Any]] = None
) -> List[Dict[str, Any]]:
    """Filtrar en memoria por igualdad exacta; valores vacíos no filtran"""
    activos = {k: str(v) for k, v in (filtros or {}).items() if v is not None and str(v).strip()}
    if not activos:
        return registros
    return [r for r in registros if all(str(r.get(k, "")) == v for k, v in activos.items())]


def valores_distintos(
    registros: List[Dict[str, Any]], campos: List[str]
) -> Dict[str, List[str]]:
    """
    Valores únicos no vacíos por campo, ordenados

    Args:
        registros: Registros decodificados
        campos: Campos a consultar

    Returns:
        Diccionario campo -> lista ordenada de valores
    """
    if not registros:
        return {campo: [] for campo in campos}
    df = _dataframe(registros, campos)
    resultado: Dict[str, List[str]] = {}
    for campo in campos:
        valores = _texto(df[campo])
        resultado[campo] = sorted(v for v in valores.unique() if v)
    return resultado


def contar_por_campo(
    registros: List[Dict[str, Any]],
    campo: str,
    etiqueta_vacia: str,
    limite: Optional[int] = None,
) -> List[ConteoCategoria]:
    """
    Contar registros por valor de un campo, de mayor a menor

    Args:
        registros: Registros decodificados
        campo: Campo a agrupar
        etiqueta_vacia: Etiqueta para valores vacíos
        limite: Máximo de categorías (None = todas)
    """
    if not registros:
        return []
    df = _dataframe(registros, [campo])
    categorias = _texto(df[campo]).replace("", etiqueta_vacia)
    conteos = (
        categorias.value_counts()
        .rename_axis("nombre")
        .reset_index(name="valor")
        .sort_values(["valor", "nombre"], ascending=[False, True])
    )
    if limite is not None:
        conteos = conteos.head(limite)
    return [
        ConteoCategoria(nombre=fila.nombre, valor=int(fila.valor))
        for fila in conteos.itertuples(index=False)
    ]


def costo_por_periodo(registros: List[Dict[str, Any]]) -> List[CostoPeriodo]:
    """Valor total y cantidad de registros por periodo, en orden de periodo"""
    if not registros:
        return []
    df = _dataframe(registros, ["periodo", "valorTotal"])
    df["periodo"] = _texto(df["periodo"]).replace("", "Sin Periodo")
    df["valorTotal"] = _numero(df["valorTotal"])
    agrupado = (
        df.groupby("periodo")
        .agg(valor=("valorTotal", "sum"), registros=("valorTotal", "size"))
        .reset_index()
        .sort_values("periodo")
    )
    return [
        CostoPeriodo(periodo=fila.periodo, valor=float(fila.valor), registros=int(fila.registros))
        for fila in agrupado.itertuples(index=False)
    ]


def indicadores_cancer(registros: List[Dict[str, Any]]) -> IndicadoresCancer:
    """KPIs del registro de cáncer"""
    if not registros:
        return IndicadoresCancer()
    columnas = ["valorTotal", "diasEstancia", "epcDepartamento", "codDiagnostico", "numeroDocumento"]
    df = _dataframe(registros, columnas)

    def unicos(campo: str) -> int:
        valores = _texto(df[campo])
        return int(valores[valores != ""].nunique())

    total = len(df)
    return IndicadoresCancer(
        total_registros=total,
        valor_total=float(_numero(df["valorTotal"]).sum()),
        departamentos_unicos=unicos("epcDepartamento"),
        diagnosticos_unicos=unicos("codDiagnostico"),
        pacientes_unicos=unicos("numeroDocumento"),
        promedio_estancia=float(_numero(df["diasEstancia"]).sum() / total),
    )


def resumen_cancer(registros: List[Dict[str, Any]]) -> ResumenTablero:
    """Resumen completo del tablero del registro de cáncer"""
    distribuciones = {
        campo: contar_por_campo(registros, campo, etiqueta, limite)
        for campo, etiqueta, limite in DISTRIBUCIONES_CANCER
    }
    return ResumenTablero(
        registro=CANCER.nombre,
        total_registros=len(registros),
        indicadores=indicadores_cancer(registros),
        distribuciones=distribuciones,
        costo_por_periodo=costo_por_periodo(registros),
    )


def resumen_registro(
    esquema: EsquemaRegistro, registros: List[Dict[str, Any]]
) -> ResumenTablero:
    """
    Resumen del tablero para cualquier registro

    El registro de cáncer usa resumen_cancer; los demás reciben el total y una
    distribución por cada campo filtrable. El directorio de IPS agrega la
    distribución por región de red.
    """
    if esquema.nombre == CANCER.nombre:
        return resumen_cancer(registros)

    distribuciones = {
        campo: contar_por_campo(registros, campo, "Sin dato")
        for campo in esquema.filtrables
        if campo != "numeroDocumento"
    }
    if esquema.nombre == IPS.nombre:
        con_region = [
            {"regionRed": resolver_region_red(r.get("nomIps", ""), r.get("departamento", ""))}
            for r in registros
        ]
        distribuciones["regionRed"] = contar_por_campo(con_region, "regionRed", "OTRAS")

    logger.info(f"Resumen de tablero calculado para {esquema.nombre}: {len(registros)} registros")
    return ResumenTablero(
        registro=esquema.nombre,
        total_registros=len(registros),
        distribuciones=distribuciones,
    )
