"""
API de Registros de Salud Pública
FastAPI application con routers de registros (cáncer, artritis, IPS),
seguridad (sesión, roles, usuarios, perfil) y bitácora de actividad
"""

import time
from datetime import datetime

import uvicorn
from fastapi import Depends, FastAPI
from sqlmodel import Session, text

from app_types.monitoring import HealthStatus
from routes import actividad_router, registros_router, seguridad_router
from routes.dependencias import Contenedor, get_contenedor
from services.usuarios import inicializar_roles
from utils.logging_config import get_logger, setup_logging
from utils.settings import settings

# Configurar sistema de logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)

# Registrar tiempo de inicio para cálculo de uptime
startup_time = time.time()

VERSION = "1.0.0"

# ============================================================================
# CONFIGURACIÓN DE LA APLICACIÓN
# ============================================================================

app = FastAPI(
    title="API de Registros de Salud Pública",
    description="Administración de los registros de cáncer, artritis y directorio de IPS con control de acceso por roles",
    version=VERSION,
)

# Incluir routers
app.include_router(registros_router)
app.include_router(seguridad_router)
app.include_router(actividad_router)


@app.on_event("startup")
async def startup_event():
    """Crear tablas y sembrar los roles por defecto al arrancar"""
    logger.info("Iniciando API...")
    try:
        contenedor = app.dependency_overrides.get(get_contenedor, get_contenedor)()
        contenedor.almacen.crear_tablas()
        inicializar_roles(contenedor.almacen)
        logger.info("Almacén y roles inicializados en el arranque")
    except Exception as e:
        logger.error(f"Error inicializando almacén en el arranque: {e}")


@app.get("/health", response_model=HealthStatus)
async def health_check(contenedor: Contenedor = Depends(get_contenedor)) -> HealthStatus:
    """
    Endpoint de verificación de salud del sistema

    Verifica el estado de la API, la base de datos y los servicios de registro.
    """
    # Verificar conexión a base de datos
    db_connected = False
    try:
        with Session(contenedor.almacen.engine) as session:
            session.execute(text("SELECT 1"))
            db_connected = True
    except Exception as e:
        logger.error(f"Falló verificación de conexión a base de datos: {e}")

    # Verificar que cada registro responda al conteo
    registros = {}
    for nombre, servicio in contenedor.registros.items():
        try:
            servicio.contar()
            registros[nombre] = True
        except Exception as e:
            logger.error(f"Falló verificación del registro {nombre}: {e}")
            registros[nombre] = False

    # Determinar estado general del sistema
    if db_connected and all(registros.values()):
        status = "healthy"
    elif db_connected:
        status = "degraded"
    else:
        status = "unhealthy"

    uptime = time.time() - startup_time

    return HealthStatus(
        status=status,
        database_connected=db_connected,
        registros=registros,
        timestamp=datetime.now(),
        uptime_seconds=round(uptime, 2),
        version=VERSION,
    )


# ============================================================================
# EJECUTAR SERVIDOR
# ============================================================================

if __name__ == "__main__":
    # Ejecutar servidor con uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,  # Desactivar en producción
    )
