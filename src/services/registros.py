"""
Servicio genérico de registros

Un único motor, parametrizado por EsquemaRegistro, atiende los registros de
cáncer, artritis e IPS:
- Paginación por cursor con conteo total separado y cacheado por filtros
- CRUD de documentos individuales
- Importación masiva en lotes de 400, borrado total en lotes de 400
- Exportación en flujo por bloques de 500
- Invalidación de la caché después de cada mutación
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.esquemas import EsquemaRegistro
from services.almacen import AlmacenDocumentos, Consulta, Cursor
from services.cache import CacheRegistros, EspejoDisco
from services.codec import decodificar, preparar_escritura
from services.consultas import Filtros, clave_filtros, construir_consulta
from utils.errores import ErrorLoteParcial, RegistroNoEncontrado
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Tamaño de bloque para importación y borrado (límite del almacén: 500 por lote)
TAMANO_LOTE = 400
# Tamaño de bloque para la exportación en flujo
TAMANO_BLOQUE_EXPORTACION = 500

ProgresoImportacion = Callable[[int, int], None]
ProgresoBorrado = Callable[[int], None]


@dataclass
class PaginaRegistros:
    """
    Resultado de una página

    hay_mas es verdadero si la página trajo exactamente tamano_pagina
    documentos; cuando quedan justo tamano_pagina documentos reporta True y
    la siguiente página llega vacía.
    """

    registros: List[Dict[str, Any]] = field(default_factory=list)
    total_registros: int = 0
    cursor: Optional[Cursor] = None
    hay_mas: bool = False


class ServicioRegistro:
    """
    Motor de un registro de salud pública

    Args:
        esquema: Esquema del registro
        almacen: Colaborador de almacenamiento
        cache: Caché propia del servicio (por defecto, una nueva con el TTL del esquema)
    """

    def __init__(
        self,
        esquema: EsquemaRegistro,
        almacen: AlmacenDocumentos,
        cache: Optional[CacheRegistros] = None,
    ):
        self.esquema = esquema
        self.almacen = almacen
        self.cache = cache or CacheRegistros(esquema.ttl_cache)

    @classmethod
    def con_espejo(
        cls, esquema: EsquemaRegistro, almacen: AlmacenDocumentos, cache_dir: str
    ) -> "ServicioRegistro":
        """Crear el servicio con espejo en disco si el esquema lo pide"""
        espejo = None
        if esquema.persistir_cache:
            ruta = Path(cache_dir) / f"cache_{esquema.coleccion}.json"
            espejo = EspejoDisco(ruta, esquema.ttl_cache)
        return cls(esquema, almacen, CacheRegistros(esquema.ttl_cache, espejo=espejo))

    @property
    def coleccion(self) -> str:
        return self.esquema.coleccion

    # ========================================================================
    # LECTURAS
    # ========================================================================

    def obtener_pagina(
        self,
        tamano_pagina: int = 50,
        despues_de: Optional[Cursor] = None,
        filtros: Filtros = None,
        omitir_conteo: bool = False,
    ) -> PaginaRegistros:
        """
        Obtener una página de registros

        Args:
            tamano_pagina: Documentos por página (>= 1)
            despues_de: Cursor del último documento de la página anterior
            filtros: Filtros de igualdad (y prefijo para IPS)
            omitir_conteo: No calcular el total (se retorna 0)

        Returns:
            PaginaRegistros con registros, total, cursor y hay_mas
        """
        if tamano_pagina < 1:
            raise ValueError("El tamaño de página debe ser al menos 1")

        consulta = construir_consulta(self.esquema, filtros)
        resultado = self.almacen.consultar(
            self.coleccion, consulta, despues_de=despues_de, limite=tamano_pagina
        )
        registros = [decodificar(self.esquema, doc) for doc in resultado.documentos]

        total = 0 if omitir_conteo else self.contar(filtros, consulta)

        return PaginaRegistros(
            registros=registros,
            total_registros=total,
            cursor=resultado.cursor,
            hay_mas=len(resultado.documentos) == tamano_pagina,
        )

    def contar(self, filtros: Filtros = None, consulta: Optional[Consulta] = None) -> int:
        """Total de registros para los filtros, usando la caché de conteos"""
        clave = clave_filtros(self.esquema, filtros)
        total = self.cache.obtener_conteo(clave)
        if total is None:
            consulta = consulta or construir_consulta(self.esquema, filtros)
            total = self.almacen.contar(self.coleccion, consulta)
            self.cache.guardar_conteo(clave, total)
        return total

    def obtener_por_id(self, id_registro: str) -> Dict[str, Any]:
        """
        Raises:
            RegistroNoEncontrado: Si el registro no existe
        """
        documento = self.almacen.obtener(self.coleccion, id_registro)
        if documento is None:
            raise RegistroNoEncontrado(self.coleccion, id_registro)
        return decodificar(self.esquema, documento)

    def obtener_todos(
        self, forzar: bool = False, al_progresar: Optional[ProgresoImportacion] = None
    ) -> List[Dict[str, Any]]:
        """
        Obtener todos los registros (memoria, espejo en disco o exportación)

        Args:
            forzar: Ignorar la caché vigente
            al_progresar: Callback (cargados, total) si hay que leer del almacén
        """
        if not forzar:
            registros = self.cache.obtener_todos()
            if registros is not None:
                return registros
        registros = self.exportar(al_progresar=al_progresar)
        self.cache.guardar_todos(registros)
        return registros

    def exportar(
        self, filtros: Filtros = None, al_progresar: Optional[ProgresoImportacion] = None
    ) -> List[Dict[str, Any]]:
        """
        Recorrer toda la colección filtrada en bloques de 500

        Reporta (cargados, total_esperado) después de cada bloque.
        """
        consulta = construir_consulta(self.esquema, filtros)
        total = self.almacen.contar(self.coleccion, consulta)
        registros: List[Dict[str, Any]] = []
        cursor: Optional[Cursor] = None

        while True:
            resultado = self.almacen.consultar(
                self.coleccion, consulta, despues_de=cursor, limite=TAMANO_BLOQUE_EXPORTACION
            )
            registros.extend(decodificar(self.esquema, doc) for doc in resultado.documentos)
            if al_progresar:
                al_progresar(len(registros), total)
            if len(resultado.documentos) < TAMANO_BLOQUE_EXPORTACION:
                break
            cursor = resultado.cursor

        logger.info(f"Exportados {len(registros)} registros de {self.coleccion}")
        return registros

    # ========================================================================
    # MUTACIONES INDIVIDUALES
    # ========================================================================

    def crear(self, datos: Dict[str, Any]) -> Dict[str, Any]:
        """Crear un registro y retornarlo decodificado"""
        try:
            id_registro = self.almacen.insertar(
                self.coleccion, preparar_escritura(self.esquema, datos)
            )
        finally:
            self.invalidar_cache()
        return self.obtener_por_id(id_registro)

    def actualizar(
        self, id_registro: str, cambios: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Actualizar campos de un registro

        Returns:
            (registro anterior, registro actualizado)
        """
        anterior = self.obtener_por_id(id_registro)
        try:
            self.almacen.actualizar(
                self.coleccion, id_registro, preparar_escritura(self.esquema, cambios)
            )
        finally:
            self.invalidar_cache()
        return anterior, self.obtener_por_id(id_registro)

    def eliminar(self, id_registro: str) -> Dict[str, Any]:
        """Eliminar un registro y retornar cómo estaba"""
        anterior = self.obtener_por_id(id_registro)
        try:
            self.almacen.eliminar(self.coleccion, id_registro)
        finally:
            self.invalidar_cache()
        return anterior

    # ========================================================================
    # OPERACIONES MASIVAS
    # ========================================================================

    def importar(
        self,
        registros: List[Dict[str, Any]],
        al_progresar: Optional[ProgresoImportacion] = None,
    ) -> int:
        """
        Importar registros en lotes atómicos de 400

        Cada lote se confirma completo o no se confirma; los lotes anteriores a
        un fallo quedan confirmados.

        Args:
            registros: Registros ya mapeados a campos
            al_progresar: Callback (importados, total) tras cada lote

        Returns:
            Cantidad de registros importados

        Raises:
            ErrorLoteParcial: Si falla un lote; incluye los ya importados
        """
        total = len(registros)
        importados = 0
        try:
            for inicio in range(0, total, TAMANO_LOTE):
                bloque = registros[inicio : inicio + TAMANO_LOTE]
                lote = self.almacen.lote()
                for datos in bloque:
                    lote.insertar(self.coleccion, preparar_escritura(self.esquema, datos))
                try:
                    lote.confirmar()
                except Exception as e:
                    logger.error(
                        f"Falló lote de importación en {self.coleccion} "
                        f"tras {importados}/{total} registros: {e}"
                    )
                    raise ErrorLoteParcial(
                        f"Error importando registros: {str(e)}", importados, total
                    ) from e
                importados += len(bloque)
                if al_progresar:
                    al_progresar(importados, total)
        finally:
            self.invalidar_cache()

        logger.info(f"Importados {importados} registros en {self.coleccion}")
        return importados

    def eliminar_todos(self, al_progresar: Optional[ProgresoBorrado] = None) -> int:
        """
        Eliminar toda la colección en lotes de 400

        Se detiene cuando una lectura trae menos de 400 documentos.

        Returns:
            Cantidad de registros eliminados

        Raises:
            ErrorLoteParcial: Si falla un lote; incluye los ya eliminados y el
                total que tenía la colección antes de empezar
        """
        eliminados = 0
        total = self.almacen.contar(self.coleccion, Consulta())
        try:
            while True:
                resultado = self.almacen.consultar(
                    self.coleccion, Consulta(), limite=TAMANO_LOTE
                )
                documentos = resultado.documentos
                if not documentos:
                    break
                lote = self.almacen.lote()
                for documento in documentos:
                    lote.eliminar(self.coleccion, documento.id)
                try:
                    lote.confirmar()
                except Exception as e:
                    logger.error(
                        f"Falló lote de borrado en {self.coleccion} "
                        f"tras {eliminados} registros: {e}"
                    )
                    raise ErrorLoteParcial(
                        f"Error eliminando registros: {str(e)}", eliminados, total
                    ) from e
                eliminados += len(documentos)
                if al_progresar:
                    al_progresar(eliminados)
                if len(documentos) < TAMANO_LOTE:
                    break
        finally:
            self.invalidar_cache()

        logger.info(f"Eliminados {eliminados} registros de {self.coleccion}")
        return eliminados

    def invalidar_cache(self) -> None:
        self.cache.invalidar()
