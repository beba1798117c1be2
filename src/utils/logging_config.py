"""
Configuración del sistema de logging de la aplicación

Gestiona el logging a consola y archivo con formato estandarizado, más un
canal de diagnóstico separado para fallos que se ignoran a propósito
(auditoría, espejo de caché en disco).
"""

import logging
import sys
from pathlib import Path
from typing import Optional

# Crear directorio de logs
LOGS_DIR = Path("logs")
LOGS_DIR.mkdir(exist_ok=True)

FORMATO_POR_DEFECTO = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d] - %(message)s"
)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Configurar sistema de logging para toda la aplicación

    Args:
        log_level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Ruta opcional para logging a archivo
        format_string: Formato opcional personalizado
    """
    formatter = logging.Formatter(format_string or FORMATO_POR_DEFECTO)

    # Logger raíz
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Eliminar handlers existentes
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # Handler para consola
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Handler para archivo (si se especifica)
    if log_file:
        file_handler = logging.FileHandler(LOGS_DIR / log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # También registrar en log general de la aplicación
    app_file_handler = logging.FileHandler(LOGS_DIR / "app.log", encoding="utf-8")
    app_file_handler.setLevel(logging.DEBUG)
    app_file_handler.setFormatter(formatter)
    root_logger.addHandler(app_file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Obtener instancia de logger para un módulo

    Args:
        name: Nombre del logger (típicamente __name__)

    Returns:
        Instancia de logger configurada
    """
    return logging.getLogger(name)


def get_diagnostic_logger(nombre: str) -> logging.Logger:
    """
    Obtener un logger del canal de diagnóstico

    Escribe en logs/diagnostico.log además de propagar al logger raíz.

    Args:
        nombre: Sufijo del logger (por ejemplo "actividad")

    Returns:
        Logger "diagnostico.<nombre>"
    """
    logger = logging.getLogger(f"diagnostico.{nombre}")
    if not any(getattr(h, "_diagnostico", False) for h in logger.handlers):
        handler = logging.FileHandler(LOGS_DIR / "diagnostico.log", encoding="utf-8")
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter(FORMATO_POR_DEFECTO))
        handler._diagnostico = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger


# Inicializar logging al importar
setup_logging()
