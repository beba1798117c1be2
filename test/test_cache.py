"""
Pruebas de la caché con vigencia y del espejo en disco
"""

import json
from datetime import datetime, timezone

from services.cache import CacheRegistros, EspejoDisco


class RelojFalso:
    def __init__(self, inicio=1000.0):
        self.ahora = inicio

    def __call__(self):
        return self.ahora


def test_todos_vigente_y_expirado():
    reloj = RelojFalso()
    cache = CacheRegistros(300, reloj=reloj)
    cache.guardar_todos([{"id": "1"}])

    reloj.ahora += 299
    assert cache.obtener_todos() == [{"id": "1"}]

    reloj.ahora += 1
    assert cache.obtener_todos() is None


def test_conteos_comparten_una_marca():
    """Un conteo nuevo renueva la vigencia de todo el mapa"""
    reloj = RelojFalso()
    cache = CacheRegistros(300, reloj=reloj)
    cache.guardar_conteo("{}", 10)

    reloj.ahora += 200
    cache.guardar_conteo('{"estado": "ACTIVO"}', 4)

    reloj.ahora += 200
    assert cache.obtener_conteo("{}") == 10
    assert cache.obtener_conteo('{"estado": "ACTIVO"}') == 4


def test_conteos_expirados_se_descartan_al_guardar():
    reloj = RelojFalso()
    cache = CacheRegistros(300, reloj=reloj)
    cache.guardar_conteo("{}", 10)

    reloj.ahora += 400
    cache.guardar_conteo('{"estado": "ACTIVO"}', 4)

    assert cache.obtener_conteo("{}") is None
    assert cache.obtener_conteo('{"estado": "ACTIVO"}') == 4


def test_invalidar_vacia_todo(tmp_path):
    espejo = EspejoDisco(tmp_path / "cache.json", 1800)
    cache = CacheRegistros(1800, espejo=espejo)
    cache.guardar_todos([{"id": "1"}])
    cache.guardar_conteo("{}", 1)

    cache.invalidar()

    assert cache.obtener_todos() is None
    assert cache.obtener_conteo("{}") is None
    assert not (tmp_path / "cache.json").exists()


def test_espejo_lee_lo_escrito(tmp_path):
    reloj = RelojFalso()
    ruta = tmp_path / "sub" / "cache.json"
    espejo = EspejoDisco(ruta, 1800, reloj=reloj)

    espejo.escribir([{"id": "1", "edad": 40}])

    assert json.loads(ruta.read_text(encoding="utf-8"))["timestamp"] == 1000.0
    assert espejo.leer() == [{"id": "1", "edad": 40}]


def test_espejo_expirado_se_elimina(tmp_path):
    reloj = RelojFalso()
    ruta = tmp_path / "cache.json"
    espejo = EspejoDisco(ruta, 1800, reloj=reloj)
    espejo.escribir([{"id": "1"}])

    reloj.ahora += 1800

    assert espejo.leer() is None
    assert not ruta.exists()


def test_espejo_corrupto_no_interrumpe(tmp_path):
    ruta = tmp_path / "cache.json"
    ruta.write_text("{no es json", encoding="utf-8")
    cache = CacheRegistros(1800, espejo=EspejoDisco(ruta, 1800))

    assert cache.obtener_todos() is None
    assert not ruta.exists()


def test_espejo_restaura_marcas_de_tiempo(tmp_path):
    marca = datetime(2025, 6, 1, 9, 15, 0, 250000, tzinfo=timezone.utc)
    espejo = EspejoDisco(tmp_path / "cache.json", 1800, reloj=RelojFalso())

    espejo.escribir([{"id": "1", "createdAt": marca, "updatedAt": marca, "fecha": "2025-06-01"}])

    leido = espejo.leer()[0]
    assert leido["createdAt"] == marca
    assert leido["updatedAt"] == marca
    assert leido["fecha"] == "2025-06-01"
