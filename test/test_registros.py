"""
Pruebas del servicio genérico de registros: paginación, CRUD, importación
masiva, borrado total, exportación y caché
"""

import json
from datetime import datetime

import pytest

from models.esquemas import ARTRITIS
from services.almacen import Consulta, LoteEscritura
from services.cache import CacheRegistros
from services.registros import ServicioRegistro
from utils.errores import ErrorLoteParcial, RegistroNoEncontrado

from conftest import registro_cancer


def _cargar(servicio, cantidad):
    return servicio.importar([registro_cancer(str(1000000 + i)) for i in range(cantidad)])


# ============================================================================
# LECTURAS Y CRUD
# ============================================================================


def test_pagina_con_total_y_hay_mas(servicio_cancer):
    _cargar(servicio_cancer, 5)

    pagina = servicio_cancer.obtener_pagina(tamano_pagina=2)

    assert len(pagina.registros) == 2
    assert pagina.total_registros == 5
    assert pagina.hay_mas is True
    assert pagina.cursor is not None


def test_omitir_conteo_retorna_cero(servicio_cancer, mocker):
    _cargar(servicio_cancer, 3)
    espia = mocker.spy(servicio_cancer.almacen, "contar")

    pagina = servicio_cancer.obtener_pagina(tamano_pagina=2, omitir_conteo=True)

    assert pagina.total_registros == 0
    espia.assert_not_called()


def test_tamano_pagina_invalido(servicio_cancer):
    with pytest.raises(ValueError):
        servicio_cancer.obtener_pagina(tamano_pagina=0)


def test_filtros_por_igualdad(servicio_cancer):
    servicio_cancer.crear(registro_cancer("1", estado="ACTIVO"))
    servicio_cancer.crear(registro_cancer("2", estado="CERRADO"))
    servicio_cancer.crear(registro_cancer("3", estado="ACTIVO"))

    pagina = servicio_cancer.obtener_pagina(filtros={"estado": "ACTIVO"})

    assert pagina.total_registros == 2
    assert {r["radicado"] for r in pagina.registros} == {"1", "3"}


def test_crear_actualizar_eliminar(servicio_cancer):
    creado = servicio_cancer.crear(registro_cancer("777", cantidad="2"))
    assert creado["cantidad"] == 2
    assert creado["radicado"] == "777"

    anterior, actualizado = servicio_cancer.actualizar(
        creado["id"], {"estado": "CERRADO", "id": "otro"}
    )
    assert anterior["estado"] == ""
    assert actualizado["estado"] == "CERRADO"
    assert actualizado["id"] == creado["id"]
    assert actualizado["createdAt"] == creado["createdAt"]

    eliminado = servicio_cancer.eliminar(creado["id"])
    assert eliminado["estado"] == "CERRADO"
    with pytest.raises(RegistroNoEncontrado):
        servicio_cancer.obtener_por_id(creado["id"])


def test_actualizar_inexistente(servicio_cancer):
    with pytest.raises(RegistroNoEncontrado):
        servicio_cancer.actualizar("no-existe", {"estado": "X"})


def test_prefijo_ips_ordena_por_nombre(servicio_ips):
    for nombre in ("CLINICA B", "HOSPITAL X", "CLINICA A", "CLINICAL CENTER", "CENTRO CLIN"):
        servicio_ips.crear({"nomIps": nombre, "departamento": "ATLANTICO"})

    pagina = servicio_ips.obtener_pagina(filtros={"nomIps": "clin"})

    assert [r["nomIps"] for r in pagina.registros] == ["CLINICA A", "CLINICA B", "CLINICAL CENTER"]
    assert pagina.total_registros == 3


def test_prefijo_ips_pagina_por_nombre(servicio_ips):
    for nombre in ("CLINICA C", "CLINICA A", "CLINICA B"):
        servicio_ips.crear({"nomIps": nombre})

    primera = servicio_ips.obtener_pagina(tamano_pagina=2, filtros={"nomIps": "CLINICA"})
    segunda = servicio_ips.obtener_pagina(
        tamano_pagina=2, despues_de=primera.cursor, filtros={"nomIps": "CLINICA"}
    )

    assert [r["nomIps"] for r in primera.registros] == ["CLINICA A", "CLINICA B"]
    assert [r["nomIps"] for r in segunda.registros] == ["CLINICA C"]
    assert segunda.hay_mas is False


# ============================================================================
# IMPORTACIÓN Y BORRADO MASIVO
# ============================================================================


def test_importar_en_lotes_de_400(servicio_cancer, mocker):
    """850 registros se confirman en tres lotes: 400, 400 y 50"""
    almacen = servicio_cancer.almacen
    confirmaciones = mocker.spy(almacen, "_confirmar_lote")
    progreso = []

    importados = servicio_cancer.importar(
        [registro_cancer(str(i)) for i in range(850)],
        al_progresar=lambda hechos, total: progreso.append((hechos, total)),
    )

    assert importados == 850
    assert [len(llamada.args[0]) for llamada in confirmaciones.call_args_list] == [400, 400, 50]
    assert progreso == [(400, 850), (800, 850), (850, 850)]
    assert almacen.contar("cancerRecords", Consulta()) == 850


def test_importar_falla_parcial(servicio_cancer, mocker):
    """Si falla el segundo lote, el primero queda confirmado"""
    almacen = servicio_cancer.almacen
    confirmar_real = almacen._confirmar_lote
    llamadas = {"n": 0}

    def fallar_segundo(operaciones):
        llamadas["n"] += 1
        if llamadas["n"] == 2:
            raise RuntimeError("cuota excedida")
        confirmar_real(operaciones)

    mocker.patch.object(almacen, "_confirmar_lote", side_effect=fallar_segundo)

    with pytest.raises(ErrorLoteParcial) as error:
        servicio_cancer.importar([registro_cancer(str(i)) for i in range(850)])

    assert error.value.procesados == 400
    assert error.value.total == 850
    assert almacen.contar("cancerRecords", Consulta()) == 400


def test_importar_lista_vacia(servicio_cancer, mocker):
    confirmar = mocker.spy(LoteEscritura, "confirmar")

    assert servicio_cancer.importar([]) == 0
    confirmar.assert_not_called()


def test_eliminar_todos_en_lotes(servicio_cancer, mocker):
    _cargar(servicio_cancer, 850)
    almacen = servicio_cancer.almacen
    confirmaciones = mocker.spy(almacen, "_confirmar_lote")
    progreso = []

    eliminados = servicio_cancer.eliminar_todos(al_progresar=progreso.append)

    assert eliminados == 850
    assert [len(llamada.args[0]) for llamada in confirmaciones.call_args_list] == [400, 400, 50]
    assert progreso == [400, 800, 850]
    assert almacen.contar("cancerRecords", Consulta()) == 0



def test_eliminar_todos_falla_parcial(servicio_cancer, mocker):
    """El error informa lo eliminado y el total previo al borrado"""
    _cargar(servicio_cancer, 850)
    almacen = servicio_cancer.almacen
    confirmar_real = almacen._confirmar_lote
    llamadas = {"n": 0}

    def fallar_segundo(operaciones):
        llamadas["n"] += 1
        if llamadas["n"] == 2:
            raise RuntimeError("cuota excedida")
        confirmar_real(operaciones)

    mocker.patch.object(almacen, "_confirmar_lote", side_effect=fallar_segundo)

    with pytest.raises(ErrorLoteParcial) as error:
        servicio_cancer.eliminar_todos()

    assert error.value.procesados == 400
    assert error.value.total == 850
    assert almacen.contar("cancerRecords", Consulta()) == 450

def test_eliminar_todos_coleccion_vacia(servicio_cancer, mocker):
    confirmaciones = mocker.spy(servicio_cancer.almacen, "_confirmar_lote")

    assert servicio_cancer.eliminar_todos() == 0
    confirmaciones.assert_not_called()


def test_eliminar_todos_multiplo_exacto(servicio_cancer):
    """Con 800 registros la tercera lectura llega vacía y el ciclo termina"""
    _cargar(servicio_cancer, 800)

    assert servicio_cancer.eliminar_todos() == 800
    assert servicio_cancer.contar() == 0


def test_eliminar_todos_solo_afecta_su_coleccion(servicio_cancer, servicio_ips):
    _cargar(servicio_cancer, 3)
    servicio_ips.crear({"nomIps": "CLINICA A"})

    servicio_cancer.eliminar_todos()

    assert servicio_ips.contar() == 1


def test_exportar_en_bloques(servicio_cancer, mocker):
    _cargar(servicio_cancer, 1200)
    espia = mocker.spy(servicio_cancer.almacen, "consultar")
    progreso = []

    registros = servicio_cancer.exportar(al_progresar=lambda n, total: progreso.append((n, total)))

    assert len(registros) == 1200
    assert len({r["id"] for r in registros}) == 1200
    assert espia.call_count == 3
    assert progreso == [(500, 1200), (1000, 1200), (1200, 1200)]


def test_exportar_con_filtros(servicio_cancer):
    servicio_cancer.crear(registro_cancer("1", tipoServicio="AMBULATORIO"))
    servicio_cancer.crear(registro_cancer("2", tipoServicio="HOSPITALARIO"))

    registros = servicio_cancer.exportar(filtros={"tipoServicio": "HOSPITALARIO"})

    assert [r["radicado"] for r in registros] == ["2"]


# ============================================================================
# CACHÉ
# ============================================================================


def test_conteo_cacheado_hasta_mutar(servicio_cancer):
    """Un conteo cacheado se reutiliza y cualquier mutación lo invalida"""
    servicio_cancer.crear(registro_cancer("1"))
    assert servicio_cancer.contar() == 1

    # Escritura directa al almacén, sin pasar por el servicio
    servicio_cancer.almacen.insertar("cancerRecords", {"radicado": "2"})
    assert servicio_cancer.contar() == 1

    servicio_cancer.crear(registro_cancer("3"))
    assert servicio_cancer.contar() == 3


def test_todos_los_registros_se_invalidan_tras_mutaciones(servicio_cancer):
    creado = servicio_cancer.crear(registro_cancer("1"))
    assert len(servicio_cancer.obtener_todos()) == 1

    servicio_cancer.actualizar(creado["id"], {"estado": "CERRADO"})
    assert servicio_cancer.obtener_todos()[0]["estado"] == "CERRADO"

    _cargar(servicio_cancer, 2)
    assert len(servicio_cancer.obtener_todos()) == 3

    servicio_cancer.eliminar(creado["id"])
    assert len(servicio_cancer.obtener_todos()) == 2

    servicio_cancer.eliminar_todos()
    assert servicio_cancer.obtener_todos() == []


def test_cache_invalida_aunque_falle_la_importacion(servicio_cancer, mocker):
    servicio_cancer.obtener_todos()
    invalidar = mocker.spy(servicio_cancer.cache, "invalidar")
    mocker.patch.object(
        servicio_cancer.almacen, "_confirmar_lote", side_effect=RuntimeError("sin conexión")
    )

    with pytest.raises(ErrorLoteParcial):
        servicio_cancer.importar([registro_cancer("1")])

    invalidar.assert_called_once()


def test_conteo_expira_con_el_ttl(almacen):
    ahora = {"t": 1000.0}
    cache = CacheRegistros(300, reloj=lambda: ahora["t"])
    servicio = ServicioRegistro(ARTRITIS, almacen, cache)

    servicio.contar()
    almacen.insertar("arthritisRecords", {"numeroDocumento": "1"})
    assert servicio.contar() == 0

    ahora["t"] += 301
    assert servicio.contar() == 1


def test_espejo_en_disco_artritis(almacen, tmp_path, mocker):
    """La caché de artritis sobrevive a un nuevo servicio mediante el espejo"""
    servicio = ServicioRegistro.con_espejo(ARTRITIS, almacen, str(tmp_path))
    servicio.crear({"numeroDocumento": "123", "edad": 40})

    registros = servicio.obtener_todos()

    ruta = tmp_path / "cache_arthritisRecords.json"
    assert ruta.exists()
    contenido = json.loads(ruta.read_text(encoding="utf-8"))
    assert contenido["data"][0]["numeroDocumento"] == "123"
    assert registros[0]["edad"] == 40

    otro = ServicioRegistro.con_espejo(ARTRITIS, almacen, str(tmp_path))
    consultar = mocker.spy(almacen, "consultar")
    desde_espejo = otro.obtener_todos()
    assert desde_espejo[0]["numeroDocumento"] == "123"
    assert desde_espejo[0]["createdAt"] == registros[0]["createdAt"]
    assert isinstance(desde_espejo[0]["updatedAt"], datetime)
    consultar.assert_not_called()

    otro.crear({"numeroDocumento": "456"})
    assert not ruta.exists()
