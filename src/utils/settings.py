"""
Configuración de la aplicación y base de datos

Gestiona variables de entorno, la conexión a la base de datos (PostgreSQL en
producción, SQLite local como respaldo) y los parámetros de autenticación.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine


class Settings(BaseSettings):
    """Configuración de la aplicación cargada desde variables de entorno"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # URL completa de SQLAlchemy; si está definida tiene prioridad
    db_url: Optional[str] = None

    db_username: Optional[str] = None
    db_password: Optional[str] = None
    db_host: Optional[str] = None
    db_port: int = 5432
    db_name: Optional[str] = None

    # Autenticación por token bearer
    auth_jwt_secret: Optional[str] = None
    auth_jwt_algoritmo: str = "HS256"
    auth_jwks_url: Optional[str] = None
    auth_emisor: Optional[str] = None
    auth_audiencia: Optional[str] = None

    # Espejo en disco de la caché de registros
    cache_dir: str = ".cache"

    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """Construir URL de conexión (PostgreSQL o SQLite local)"""
        if self.db_url:
            return self.db_url
        if self.db_username and self.db_host and self.db_name:
            return f"postgresql+psycopg://{self.db_username}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        return "sqlite:///registros.db"


def crear_motor(url: str):
    """
    Crear el motor de base de datos para una URL

    Las bases SQLite en memoria comparten una única conexión para que todas
    las sesiones vean las mismas tablas.

    Args:
        url: URL de SQLAlchemy

    Returns:
        Engine de SQLAlchemy
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False)


# Instancia global de configuración
settings = Settings()

# Motor de base de datos
engine = crear_motor(settings.database_url)

