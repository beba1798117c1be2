"""
Pruebas de la bitácora de actividad
"""

import pytest

from app_types.actividad import AccionActividad, ModuloActividad
from app_types.seguridad import PerfilUsuario
from services.actividad import calcular_cambios, listar_actividad, registrar_actividad

PERFIL = PerfilUsuario(uid="u1", email="ana@salud.gov.co", display_name="Ana", role_name="admin")


def test_registrar_y_listar(almacen):
    registrar_actividad(almacen, PERFIL, AccionActividad.IMPORT, ModuloActividad.CANCER, "Importación de 2 registros")
    id_entrada = registrar_actividad(
        almacen,
        PERFIL,
        AccionActividad.DELETE,
        ModuloActividad.IPS,
        "Registro eliminado: CLINICA A",
        id_objetivo="r1",
        nombre_objetivo="CLINICA A",
    )

    entradas, total, cursor, hay_mas = listar_actividad(almacen)

    assert id_entrada is not None
    assert total == 2
    assert hay_mas is False
    assert {e.action for e in entradas} == {AccionActividad.IMPORT, AccionActividad.DELETE}
    eliminada = next(e for e in entradas if e.action == AccionActividad.DELETE)
    assert eliminada.user_email == "ana@salud.gov.co"
    assert eliminada.user_name == "Ana"
    assert eliminada.target_name == "CLINICA A"


def test_filtrar_por_modulo_y_accion(almacen):
    registrar_actividad(almacen, PERFIL, AccionActividad.IMPORT, ModuloActividad.CANCER, "a")
    registrar_actividad(almacen, PERFIL, AccionActividad.DELETE, ModuloActividad.CANCER, "b")
    registrar_actividad(almacen, PERFIL, AccionActividad.DELETE, ModuloActividad.IPS, "c")

    entradas, total, _, _ = listar_actividad(almacen, filtros={"module": "cancer", "action": "delete"})

    assert total == 1
    assert entradas[0].description == "b"


def test_paginar_bitacora(almacen):
    for i in range(5):
        registrar_actividad(almacen, PERFIL, AccionActividad.EXPORT, ModuloActividad.ARTHRITIS, f"exportación {i}")

    primera, total, cursor, hay_mas = listar_actividad(almacen, tamano_pagina=3)
    segunda, _, _, hay_mas_2 = listar_actividad(almacen, tamano_pagina=3, despues_de=cursor)

    assert total == 5
    assert hay_mas is True and hay_mas_2 is False
    assert len({e.id for e in primera + segunda}) == 5


def test_filtro_no_soportado(almacen):
    with pytest.raises(ValueError):
        listar_actividad(almacen, filtros={"description": "x"})


def test_fallo_de_escritura_no_interrumpe(almacen, mocker):
    mocker.patch.object(almacen, "insertar", side_effect=RuntimeError("sin conexión"))

    resultado = registrar_actividad(almacen, PERFIL, AccionActividad.CREATE, ModuloActividad.CANCER, "x")

    assert resultado is None


def test_calcular_cambios():
    anterior = {"estado": "ACTIVO", "valorTotal": 10, "periodo": "2025-01"}
    actual = {"estado": "CERRADO", "valorTotal": 10, "periodo": "2025-01"}

    cambios = calcular_cambios(anterior, actual, ["estado", "valorTotal", "periodo"])

    assert cambios == {"estado": {"before": "ACTIVO", "after": "CERRADO"}}
