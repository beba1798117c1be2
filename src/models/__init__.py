"""
Models package.
Importa las tablas para que queden registradas en SQLModel.metadata
"""

from models.tables import Documento

__all__ = ["Documento"]
