"""
Modelo de base de datos del almacén de documentos

Todas las colecciones (registros de cáncer, artritis e IPS, usuarios, roles y
bitácora de actividad) comparten una única tabla de documentos planos:
- coleccion + id: identidad del documento
- datos: mapa de campos en JSON
- created_at / updated_at: marcas de tiempo asignadas por el servidor (UTC)
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Index
from sqlmodel import Field, SQLModel


# ============================================================================
# MODELO DOCUMENTO
# ============================================================================
class Documento(SQLModel, table=True):
    """
    Modelo de la tabla Documentos

    Un documento pertenece a una colección y guarda sus campos como JSON.
    El orden por defecto de las consultas es created_at descendente con el
    id como desempate.
    """

    __table_args__ = (Index("ix_documento_coleccion_creado", "coleccion", "created_at"),)

    # Clave primaria compuesta
    coleccion: str = Field(primary_key=True, max_length=64)
    id: str = Field(primary_key=True, max_length=64)

    # Campos del documento
    datos: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Marcas de tiempo del servidor
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
