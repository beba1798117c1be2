"""
Pydantic types for service health
"""

from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """
    Health check response
    """

    status: str = Field(
        ..., description="Status: 'healthy', 'degraded', or 'unhealthy'"
    )
    database_connected: bool
    registros: Dict[str, bool] = Field(
        default_factory=dict, description="Registros que responden al conteo"
    )
    timestamp: datetime
    uptime_seconds: float
    version: str
