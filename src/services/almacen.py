"""
Adaptador de almacenamiento de documentos

Expone las primitivas que consumen los servicios de registros, usuarios y
actividad: lectura por id, inserción (con o sin id explícito), actualización
parcial, borrado, consultas con igualdades/rango/orden/límite a partir de un
cursor, conteo sin materializar documentos y lotes atómicos de escritura.

La implementación AlmacenSQL guarda cada colección en la tabla `documento`
mediante SQLModel.
"""

import base64
import binascii
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, func, or_
from sqlmodel import Session, SQLModel, select

from models.tables import Documento
from utils.errores import RegistroNoEncontrado
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Límite de operaciones por lote atómico
MAX_OPERACIONES_LOTE = 500

CAMPO_CREACION = "createdAt"
CAMPO_ACTUALIZACION = "updatedAt"
CAMPOS_SISTEMA = ("id", CAMPO_CREACION, CAMPO_ACTUALIZACION)


def ahora_utc() -> datetime:
    """Marca de tiempo del servidor (UTC con zona)"""
    return datetime.now(timezone.utc)


def en_utc(valor: Optional[datetime]) -> Optional[datetime]:
    """Completar con UTC una marca sin zona (SQLite no conserva el desplazamiento)"""
    if valor is not None and valor.tzinfo is None:
        return valor.replace(tzinfo=timezone.utc)
    return valor


# ============================================================================
# TIPOS DE CONSULTA
# ============================================================================


@dataclass(frozen=True)
class Cursor:
    """Posición opaca: último documento devuelto por la consulta anterior"""

    valor: Any
    id: str


@dataclass(frozen=True)
class Consulta:
    """
    Descripción ordenada de una consulta

    Attributes:
        igualdades: Restricciones campo == valor, en orden determinista
        rango: (campo, desde, hasta) para un intervalo semiabierto [desde, hasta)
        orden: (campo, "asc" | "desc")
    """

    igualdades: Tuple[Tuple[str, str], ...] = ()
    rango: Optional[Tuple[str, str, str]] = None
    orden: Tuple[str, str] = (CAMPO_CREACION, "desc")


@dataclass
class DocumentoCrudo:
    """Documento tal como lo guarda el almacén"""

    id: str
    datos: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ResultadoConsulta:
    documentos: List[DocumentoCrudo] = field(default_factory=list)
    cursor: Optional[Cursor] = None


def serializar_cursor(cursor: Cursor) -> str:
    """Convertir un cursor en un token URL-safe"""
    valor = cursor.valor
    if isinstance(valor, datetime):
        carga = {"t": valor.isoformat(), "id": cursor.id}
    else:
        carga = {"v": valor, "id": cursor.id}
    crudo = json.dumps(carga, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(crudo).decode("ascii").rstrip("=")


def deserializar_cursor(token: str) -> Cursor:
    """
    Reconstruir un cursor a partir de su token

    Raises:
        ValueError: Si el token está malformado
    """
    try:
        relleno = "=" * (-len(token) % 4)
        carga = json.loads(base64.urlsafe_b64decode(token + relleno))
        if "t" in carga:
            marca = en_utc(datetime.fromisoformat(carga["t"]))
            return Cursor(valor=marca, id=str(carga["id"]))
        valor = carga["v"]
        if valor is not None and not isinstance(valor, str):
            raise TypeError(f"Valor de cursor no admitido: {type(valor).__name__}")
        return Cursor(valor=valor, id=str(carga["id"]))
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        raise ValueError(f"Cursor inválido: {token}") from e


def _validar_cursor(campo_orden: str, cursor: Cursor) -> None:
    """El tipo del valor del cursor debe corresponder al campo de orden"""
    por_marca = campo_orden in (CAMPO_CREACION, CAMPO_ACTUALIZACION)
    if por_marca and not isinstance(cursor.valor, datetime):
        raise ValueError(f"Cursor inválido para el orden {campo_orden}")
    if not por_marca and cursor.valor is not None and not isinstance(cursor.valor, str):
        raise ValueError(f"Cursor inválido para el orden {campo_orden}")


# ============================================================================
# INTERFAZ DEL ALMACÉN
# ============================================================================


class LoteEscritura:
    """
    Lote atómico de escrituras

    Acumula inserciones y borrados; confirmar() los aplica en una única
    transacción. Todos los documentos insertados comparten la misma marca de
    tiempo del servidor.
    """

    def __init__(self, almacen: "AlmacenDocumentos"):
        self._almacen = almacen
        self.operaciones: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []
        self.confirmado = False

    def _agregar(self, operacion: Tuple[str, str, str, Optional[Dict[str, Any]]]) -> None:
        if self.confirmado:
            raise RuntimeError("El lote ya fue confirmado")
        if len(self.operaciones) >= MAX_OPERACIONES_LOTE:
            raise ValueError(
                f"Un lote admite como máximo {MAX_OPERACIONES_LOTE} operaciones"
            )
        self.operaciones.append(operacion)

    def insertar(self, coleccion: str, datos: Dict[str, Any], id_documento: Optional[str] = None) -> str:
        id_documento = id_documento or nuevo_id()
        self._agregar(("insertar", coleccion, id_documento, dict(datos)))
        return id_documento

    def eliminar(self, coleccion: str, id_documento: str) -> None:
        self._agregar(("eliminar", coleccion, id_documento, None))

    def confirmar(self) -> None:
        self._almacen._confirmar_lote(self.operaciones)
        self.confirmado = True

    def __len__(self) -> int:
        return len(self.operaciones)


def nuevo_id() -> str:
    """Identificador opaco asignado por el almacén"""
    return uuid.uuid4().hex[:20]


class AlmacenDocumentos:
    """Interfaz del colaborador de almacenamiento"""

    def obtener(self, coleccion: str, id_documento: str) -> Optional[DocumentoCrudo]:
        raise NotImplementedError

    def insertar(self, coleccion: str, datos: Dict[str, Any], id_documento: Optional[str] = None) -> str:
        raise NotImplementedError

    def actualizar(self, coleccion: str, id_documento: str, cambios: Dict[str, Any]) -> None:
        raise NotImplementedError

    def eliminar(self, coleccion: str, id_documento: str) -> None:
        raise NotImplementedError

    def consultar(
        self,
        coleccion: str,
        consulta: Consulta,
        despues_de: Optional[Cursor] = None,
        limite: Optional[int] = None,
    ) -> ResultadoConsulta:
        raise NotImplementedError

    def contar(self, coleccion: str, consulta: Consulta) -> int:
        raise NotImplementedError

    def lote(self) -> LoteEscritura:
        return LoteEscritura(self)

    def _confirmar_lote(self, operaciones) -> None:
        raise NotImplementedError


# ============================================================================
# IMPLEMENTACIÓN SQL
# ============================================================================


class AlmacenSQL(AlmacenDocumentos):
    """
    Almacén de documentos sobre la tabla `documento` (SQLModel)

    Los campos del documento viven en la columna JSON `datos`; createdAt y
    updatedAt se mapean a columnas propias para ordenar y paginar.
    """

    def __init__(self, engine):
        self.engine = engine

    def crear_tablas(self) -> None:
        """Crear la tabla de documentos si no existe"""
        SQLModel.metadata.create_all(self.engine, tables=[Documento.__table__])

    # ------------------------------------------------------------------
    # Expresiones de columna
    # ------------------------------------------------------------------

    @staticmethod
    def _columna(campo: str):
        if campo == CAMPO_CREACION:
            return Documento.created_at
        if campo == CAMPO_ACTUALIZACION:
            return Documento.updated_at
        if campo == "id":
            return Documento.id
        return Documento.datos[campo].as_string()

    def _filtrar(self, sentencia, coleccion: str, consulta: Consulta):
        sentencia = sentencia.where(Documento.coleccion == coleccion)
        for campo, valor in consulta.igualdades:
            sentencia = sentencia.where(self._columna(campo) == valor)
        if consulta.rango is not None:
            campo, desde, hasta = consulta.rango
            columna = self._columna(campo)
            sentencia = sentencia.where(columna >= desde, columna < hasta)
        return sentencia

    @staticmethod
    def _a_crudo(documento: Documento) -> DocumentoCrudo:
        return DocumentoCrudo(
            id=documento.id,
            datos=dict(documento.datos or {}),
            created_at=en_utc(documento.created_at),
            updated_at=en_utc(documento.updated_at),
        )

    @staticmethod
    def _valor_orden(documento: Documento, campo: str) -> Any:
        if campo == CAMPO_CREACION:
            return en_utc(documento.created_at)
        if campo == CAMPO_ACTUALIZACION:
            return en_utc(documento.updated_at)
        if campo == "id":
            return documento.id
        valor = (documento.datos or {}).get(campo)
        return None if valor is None else str(valor)

    # ------------------------------------------------------------------
    # Operaciones de documento
    # ------------------------------------------------------------------

    def obtener(self, coleccion: str, id_documento: str) -> Optional[DocumentoCrudo]:
        with Session(self.engine) as session:
            documento = session.get(Documento, (coleccion, id_documento))
            return self._a_crudo(documento) if documento else None

    def insertar(self, coleccion: str, datos: Dict[str, Any], id_documento: Optional[str] = None) -> str:
        id_documento = id_documento or nuevo_id()
        marca = ahora_utc()
        with Session(self.engine) as session:
            session.add(
                Documento(
                    coleccion=coleccion,
                    id=id_documento,
                    datos=_sin_campos_sistema(datos),
                    created_at=marca,
                    updated_at=marca,
                )
            )
            session.commit()
        return id_documento

    def actualizar(self, coleccion: str, id_documento: str, cambios: Dict[str, Any]) -> None:
        with Session(self.engine) as session:
            documento = session.get(Documento, (coleccion, id_documento))
            if documento is None:
                raise RegistroNoEncontrado(coleccion, id_documento)
            # Reasignar el dict para que SQLAlchemy detecte el cambio en la columna JSON
            documento.datos = {**(documento.datos or {}), **_sin_campos_sistema(cambios)}
            documento.updated_at = ahora_utc()
            session.add(documento)
            session.commit()

    def eliminar(self, coleccion: str, id_documento: str) -> None:
        with Session(self.engine) as session:
            session.exec(
                delete(Documento).where(
                    Documento.coleccion == coleccion, Documento.id == id_documento
                )
            )
            session.commit()

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    def consultar(
        self,
        coleccion: str,
        consulta: Consulta,
        despues_de: Optional[Cursor] = None,
        limite: Optional[int] = None,
    ) -> ResultadoConsulta:
        campo_orden, direccion = consulta.orden
        columna = self._columna(campo_orden)
        descendente = direccion == "desc"

        sentencia = self._filtrar(select(Documento), coleccion, consulta)

        if despues_de is not None:
            _validar_cursor(campo_orden, despues_de)
            if descendente:
                posterior = or_(
                    columna < despues_de.valor,
                    and_(columna == despues_de.valor, Documento.id < despues_de.id),
                )
            else:
                posterior = or_(
                    columna > despues_de.valor,
                    and_(columna == despues_de.valor, Documento.id > despues_de.id),
                )
            sentencia = sentencia.where(posterior)

        if descendente:
            sentencia = sentencia.order_by(columna.desc(), Documento.id.desc())
        else:
            sentencia = sentencia.order_by(columna.asc(), Documento.id.asc())

        if limite is not None:
            sentencia = sentencia.limit(limite)

        with Session(self.engine) as session:
            filas = session.exec(sentencia).all()
            documentos = [self._a_crudo(fila) for fila in filas]
            cursor = None
            if filas:
                ultimo = filas[-1]
                cursor = Cursor(valor=self._valor_orden(ultimo, campo_orden), id=ultimo.id)

        return ResultadoConsulta(documentos=documentos, cursor=cursor)

    def contar(self, coleccion: str, consulta: Consulta) -> int:
        sentencia = self._filtrar(
            select(func.count()).select_from(Documento), coleccion, consulta
        )
        with Session(self.engine) as session:
            return int(session.exec(sentencia).one())

    # ------------------------------------------------------------------
    # Lotes
    # ------------------------------------------------------------------

    def _confirmar_lote(self, operaciones) -> None:
        if not operaciones:
            return
        marca = ahora_utc()
        with Session(self.engine) as session:
            try:
                for tipo, coleccion, id_documento, datos in operaciones:
                    if tipo == "insertar":
                        session.add(
                            Documento(
                                coleccion=coleccion,
                                id=id_documento,
                                datos=_sin_campos_sistema(datos or {}),
                                created_at=marca,
                                updated_at=marca,
                            )
                        )
                    else:
                        session.exec(
                            delete(Documento).where(
                                Documento.coleccion == coleccion,
                                Documento.id == id_documento,
                            )
                        )
                session.commit()
            except Exception:
                session.rollback()
                logger.error(f"Lote de {len(operaciones)} operaciones revertido")
                raise


def _sin_campos_sistema(datos: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in datos.items() if k not in CAMPOS_SISTEMA}
