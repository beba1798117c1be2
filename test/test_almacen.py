"""
Pruebas del almacén de documentos sobre SQLite en memoria
"""

import base64
import json
from datetime import datetime, timezone

import pytest

from services.almacen import (
    MAX_OPERACIONES_LOTE,
    Consulta,
    Cursor,
    deserializar_cursor,
    serializar_cursor,
)
from utils.errores import RegistroNoEncontrado


def test_insertar_y_obtener(almacen):
    id_documento = almacen.insertar("cancerRecords", {"radicado": "1", "id": "ignorado"})

    documento = almacen.obtener("cancerRecords", id_documento)

    assert documento.id == id_documento
    assert documento.datos == {"radicado": "1"}
    assert documento.created_at == documento.updated_at
    assert almacen.obtener("ipsRecords", id_documento) is None


def test_actualizar_fusiona_y_conserva_creacion(almacen):
    id_documento = almacen.insertar("cancerRecords", {"radicado": "1", "estado": "ACTIVO"})
    creado = almacen.obtener("cancerRecords", id_documento)

    almacen.actualizar("cancerRecords", id_documento, {"estado": "CERRADO", "createdAt": "x"})

    actualizado = almacen.obtener("cancerRecords", id_documento)
    assert actualizado.datos == {"radicado": "1", "estado": "CERRADO"}
    assert actualizado.created_at == creado.created_at
    assert actualizado.updated_at >= creado.updated_at


def test_actualizar_inexistente(almacen):
    with pytest.raises(RegistroNoEncontrado):
        almacen.actualizar("cancerRecords", "no-existe", {"estado": "X"})


def test_consulta_por_cursor_recorre_sin_repetir(almacen):
    """Las páginas por cursor cubren la colección una sola vez, en orden"""
    for i in range(7):
        almacen.insertar("cancerRecords", {"radicado": str(i)})
    completa = [d.id for d in almacen.consultar("cancerRecords", Consulta()).documentos]

    vistos = []
    cursor = None
    while True:
        resultado = almacen.consultar("cancerRecords", Consulta(), despues_de=cursor, limite=3)
        vistos.extend(d.id for d in resultado.documentos)
        if len(resultado.documentos) < 3:
            break
        cursor = resultado.cursor

    assert vistos == completa
    assert len(set(vistos)) == 7


def test_empates_de_marca_se_desempatan_por_id(almacen):
    """Documentos de un mismo lote comparten marca de tiempo y no se pierden"""
    lote = almacen.lote()
    for i in range(5):
        lote.insertar("cancerRecords", {"radicado": str(i)})
    lote.confirmar()

    primera = almacen.consultar("cancerRecords", Consulta(), limite=2)
    segunda = almacen.consultar("cancerRecords", Consulta(), despues_de=primera.cursor, limite=10)

    ids = [d.id for d in primera.documentos + segunda.documentos]
    assert len(ids) == 5
    assert len(set(ids)) == 5
    assert len({d.created_at for d in primera.documentos + segunda.documentos}) == 1


def test_igualdades_y_conteo(almacen):
    almacen.insertar("cancerRecords", {"estado": "ACTIVO", "periodo": "2025-01"})
    almacen.insertar("cancerRecords", {"estado": "ACTIVO", "periodo": "2025-02"})
    almacen.insertar("cancerRecords", {"estado": "CERRADO", "periodo": "2025-01"})

    consulta = Consulta(igualdades=(("estado", "ACTIVO"), ("periodo", "2025-01")))

    assert almacen.contar("cancerRecords", consulta) == 1
    assert almacen.contar("cancerRecords", Consulta(igualdades=(("estado", "ACTIVO"),))) == 2
    assert almacen.contar("ipsRecords", Consulta()) == 0


def test_lote_excede_maximo(almacen):
    lote = almacen.lote()
    for i in range(MAX_OPERACIONES_LOTE):
        lote.insertar("cancerRecords", {"radicado": str(i)})

    with pytest.raises(ValueError):
        lote.insertar("cancerRecords", {"radicado": "extra"})


def test_lote_revierte_completo_si_falla(almacen):
    existente = almacen.insertar("cancerRecords", {"radicado": "0"})
    lote = almacen.lote()
    lote.insertar("cancerRecords", {"radicado": "1"})
    # Insertar un id repetido viola la clave primaria
    lote.insertar("cancerRecords", {"radicado": "2"}, id_documento=existente)

    with pytest.raises(Exception):
        lote.confirmar()

    assert almacen.contar("cancerRecords", Consulta()) == 1


def test_cursor_token_ida_y_vuelta():
    marca = datetime(2025, 5, 4, 10, 30, 15, 123456, tzinfo=timezone.utc)

    assert deserializar_cursor(serializar_cursor(Cursor(marca, "abc"))) == Cursor(marca, "abc")
    assert deserializar_cursor(serializar_cursor(Cursor("CLINICA", "z1"))) == Cursor("CLINICA", "z1")


def _token(carga):
    crudo = json.dumps(carga).encode("utf-8")
    return base64.urlsafe_b64encode(crudo).decode("ascii").rstrip("=")


@pytest.mark.parametrize(
    "token",
    [
        "no-es-base64!!",
        "e30",
        "bm9qc29u",
        _token({"v": {"a": 1}, "id": "x"}),
        _token({"v": [1, 2], "id": "x"}),
        _token({"t": "ayer", "id": "x"}),
    ],
)
def test_cursor_token_invalido(token):
    with pytest.raises(ValueError):
        deserializar_cursor(token)


def test_cursor_token_marca_sin_zona_se_lee_como_utc():
    cursor = deserializar_cursor(_token({"t": "2025-05-04T10:30:15", "id": "abc"}))

    assert cursor.valor == datetime(2025, 5, 4, 10, 30, 15, tzinfo=timezone.utc)


def test_marcas_de_tiempo_con_zona_utc(almacen):
    id_documento = almacen.insertar("cancerRecords", {"radicado": "1"})
    almacen.actualizar("cancerRecords", id_documento, {"estado": "ACTIVO"})

    documento = almacen.obtener("cancerRecords", id_documento)
    resultado = almacen.consultar("cancerRecords", Consulta())

    assert documento.created_at.tzinfo is not None
    assert documento.created_at.utcoffset().total_seconds() == 0
    assert documento.updated_at.tzinfo is not None
    assert resultado.cursor.valor.tzinfo is not None


def test_cursor_de_marca_sobrevive_al_token(almacen):
    """El cursor serializado de una página sirve para pedir la siguiente"""
    for i in range(3):
        almacen.insertar("cancerRecords", {"radicado": str(i)})

    primera = almacen.consultar("cancerRecords", Consulta(), limite=2)
    cursor = deserializar_cursor(serializar_cursor(primera.cursor))
    segunda = almacen.consultar("cancerRecords", Consulta(), despues_de=cursor, limite=2)

    vistos = {d.id for d in primera.documentos} | {d.id for d in segunda.documentos}
    assert len(segunda.documentos) == 1
    assert len(vistos) == 3


@pytest.mark.parametrize(
    "orden, cursor",
    [
        (("createdAt", "desc"), Cursor("abc", "x")),
        (("updatedAt", "asc"), Cursor(None, "x")),
        (("radicado", "asc"), Cursor(datetime(2025, 1, 1, tzinfo=timezone.utc), "x")),
    ],
)
def test_consultar_rechaza_cursor_de_otro_tipo(almacen, orden, cursor):
    almacen.insertar("cancerRecords", {"radicado": "1"})

    with pytest.raises(ValueError):
        almacen.consultar("cancerRecords", Consulta(orden=orden), despues_de=cursor)
