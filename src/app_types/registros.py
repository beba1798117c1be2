"""
Pydantic types for registry endpoints
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RespuestaPagina(BaseModel):
    """
    Response model for one page of registry records
    """

    registros: List[Dict[str, Any]]
    total_registros: int = Field(
        ..., description="Total para los filtros (0 si se omitió el conteo)"
    )
    cursor: Optional[str] = Field(
        default=None, description="Token del último documento de la página"
    )
    hay_mas: bool = Field(
        ..., description="Verdadero si la página vino completa"
    )


class ResultadoImportacion(BaseModel):
    """
    Response model for bulk import
    """

    mensaje: str
    importados: int
    total: int


class ResultadoEliminacion(BaseModel):
    """
    Response model for delete-all
    """

    mensaje: str
    eliminados: int


class ConteoCategoria(BaseModel):
    nombre: str
    valor: int


class CostoPeriodo(BaseModel):
    periodo: str
    valor: float
    registros: int


class IndicadoresCancer(BaseModel):
    """
    KPIs for the cancer registry dashboard
    """

    total_registros: int = 0
    valor_total: float = 0.0
    departamentos_unicos: int = 0
    diagnosticos_unicos: int = 0
    pacientes_unicos: int = 0
    promedio_estancia: float = 0.0


class ResumenTablero(BaseModel):
    """
    Response model for a registry dashboard
    """

    registro: str
    total_registros: int
    indicadores: Optional[IndicadoresCancer] = None
    distribuciones: Dict[str, List[ConteoCategoria]] = Field(default_factory=dict)
    costo_por_periodo: List[CostoPeriodo] = Field(default_factory=list)
