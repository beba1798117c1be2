"""
Caché con vigencia de los registros

Cada servicio de registro tiene su propia CacheRegistros con dos entradas:
- "todos los registros": lista completa con su marca de tiempo
- conteos por firma de filtros: un mapa que comparte una sola marca de tiempo

Una entrada es válida mientras ahora - marca < ttl. Toda mutación invalida
ambas entradas (y el espejo en disco, si existe) antes de retornar.
"""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from utils.logging_config import get_diagnostic_logger, get_logger

logger = get_logger(__name__)
diagnostico = get_diagnostic_logger("cache")


CAMPOS_MARCA = ("createdAt", "updatedAt")


def _serializar(valor: Any) -> str:
    if isinstance(valor, datetime):
        return valor.isoformat()
    return str(valor)


def _restaurar_marcas(registro: Dict[str, Any]) -> Dict[str, Any]:
    """Las marcas de tiempo vuelven del JSON como texto ISO"""
    for campo in CAMPOS_MARCA:
        if isinstance(registro.get(campo), str):
            registro[campo] = datetime.fromisoformat(registro[campo])
    return registro


class EspejoDisco:
    """
    Espejo persistente de "todos los registros"

    Guarda un archivo JSON {"data": [...], "timestamp": segundos} para que la
    caché sobreviva a reinicios del proceso mientras siga vigente. Los fallos
    de lectura o escritura se registran y se ignoran.
    """

    def __init__(self, ruta: Path, ttl_segundos: float, reloj: Callable[[], float] = time.time):
        self.ruta = Path(ruta)
        self.ttl_segundos = ttl_segundos
        self.reloj = reloj

    def leer(self) -> Optional[List[Dict[str, Any]]]:
        if not self.ruta.exists():
            return None
        try:
            with open(self.ruta, "r", encoding="utf-8") as f:
                contenido = json.load(f)
            if self.reloj() - float(contenido["timestamp"]) < self.ttl_segundos:
                return [_restaurar_marcas(registro) for registro in contenido["data"]]
        except Exception as e:
            diagnostico.warning(f"Espejo de caché ilegible {self.ruta}: {e}")
        self.eliminar()
        return None

    def escribir(self, registros: List[Dict[str, Any]]) -> None:
        try:
            self.ruta.parent.mkdir(parents=True, exist_ok=True)
            with open(self.ruta, "w", encoding="utf-8") as f:
                json.dump(
                    {"data": registros, "timestamp": self.reloj()},
                    f,
                    ensure_ascii=False,
                    default=_serializar,
                )
        except Exception as e:
            diagnostico.warning(f"No se pudo escribir el espejo de caché {self.ruta}: {e}")

    def eliminar(self) -> None:
        try:
            self.ruta.unlink(missing_ok=True)
        except Exception as e:
            diagnostico.warning(f"No se pudo eliminar el espejo de caché {self.ruta}: {e}")


class CacheRegistros:
    """Memo con vigencia de la lista completa y de los conteos por filtro"""

    def __init__(
        self,
        ttl_segundos: float,
        reloj: Callable[[], float] = time.time,
        espejo: Optional[EspejoDisco] = None,
    ):
        self.ttl_segundos = ttl_segundos
        self.reloj = reloj
        self.espejo = espejo
        self._todos: Optional[Dict[str, Any]] = None
        self._conteos: Dict[str, Any] = {"data": {}, "timestamp": 0.0}

    def _vigente(self, marca: float) -> bool:
        return self.reloj() - marca < self.ttl_segundos

    # ------------------------------------------------------------------
    # Todos los registros
    # ------------------------------------------------------------------

    def obtener_todos(self) -> Optional[List[Dict[str, Any]]]:
        """Lista completa en memoria o, si no hay, desde el espejo en disco"""
        if self._todos is not None and self._vigente(self._todos["timestamp"]):
            return self._todos["data"]
        if self.espejo is not None:
            registros = self.espejo.leer()
            if registros is not None:
                self._todos = {"data": registros, "timestamp": self.reloj()}
                return registros
        return None

    def guardar_todos(self, registros: List[Dict[str, Any]]) -> None:
        self._todos = {"data": registros, "timestamp": self.reloj()}
        if self.espejo is not None:
            self.espejo.escribir(registros)

    # ------------------------------------------------------------------
    # Conteos por firma de filtros
    # ------------------------------------------------------------------

    def obtener_conteo(self, clave: str) -> Optional[int]:
        if not self._vigente(self._conteos["timestamp"]):
            return None
        return self._conteos["data"].get(clave)

    def guardar_conteo(self, clave: str, total: int) -> None:
        # Un conteo nuevo renueva la marca de todo el mapa
        if not self._vigente(self._conteos["timestamp"]):
            self._conteos = {"data": {}, "timestamp": 0.0}
        self._conteos["data"][clave] = total
        self._conteos["timestamp"] = self.reloj()

    def invalidar(self) -> None:
        """Vaciar ambas entradas y el espejo en disco"""
        self._todos = None
        self._conteos = {"data": {}, "timestamp": 0.0}
        if self.espejo is not None:
            self.espejo.eliminar()
        logger.debug("Caché de registros invalidada")
