"""
Pruebas del navegador de páginas con historial de cursores
"""

import pytest

from services.paginacion import NavegadorPaginas

from conftest import registro_cancer


def _ids(pagina):
    return [r["id"] for r in pagina.registros]


@pytest.fixture
def diez_registros(servicio_cancer):
    servicio_cancer.importar([registro_cancer(str(i)) for i in range(10)])
    return servicio_cancer


def test_recorrido_completo_sin_repetir(servicio_cancer):
    """Avanzar hasta el final entrega cada registro una vez"""
    servicio_cancer.importar([registro_cancer(str(i)) for i in range(7)])
    navegador = NavegadorPaginas(servicio_cancer, tamano_pagina=3)

    vistos = _ids(navegador.cargar())
    while navegador.pagina.hay_mas:
        vistos.extend(_ids(navegador.siguiente()))

    assert len(vistos) == 7
    assert len(set(vistos)) == 7
    assert navegador.pagina_actual == 2
    assert navegador.total_registros == 7


def test_multiplo_exacto_termina_en_pagina_vacia(diez_registros):
    """Con 10 registros y páginas de 5, la tercera página llega vacía"""
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=5)

    primera = navegador.cargar()
    segunda = navegador.siguiente()
    tercera = navegador.siguiente()

    assert (len(primera.registros), primera.hay_mas) == (5, True)
    assert (len(segunda.registros), segunda.hay_mas) == (5, True)
    assert (len(tercera.registros), tercera.hay_mas) == (0, False)

    # Sin más páginas, siguiente() no avanza
    navegador.siguiente()
    assert navegador.pagina_actual == 2


def test_volver_atras_reproduce_las_paginas(diez_registros):
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=3)

    pagina_1 = _ids(navegador.cargar())
    pagina_2 = _ids(navegador.siguiente())
    pagina_3 = _ids(navegador.siguiente())

    assert _ids(navegador.anterior()) == pagina_2
    assert _ids(navegador.anterior()) == pagina_1
    assert navegador.hay_anterior is False
    assert _ids(navegador.siguiente()) == pagina_2
    assert _ids(navegador.siguiente()) == pagina_3


def test_anterior_en_la_primera_pagina(diez_registros):
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=4)
    primera = _ids(navegador.cargar())

    assert _ids(navegador.anterior()) == primera
    assert navegador.pagina_actual == 0


def test_historial_se_trunca_al_avanzar_de_nuevo(diez_registros):
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=2)
    navegador.cargar()
    navegador.siguiente()
    navegador.siguiente()
    navegador.anterior()

    navegador.siguiente()

    assert navegador.pagina_actual == 2
    assert len(navegador.historial) == 3


def test_total_se_conserva_al_navegar(diez_registros, mocker):
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=4)
    navegador.cargar()
    contar = mocker.spy(diez_registros, "contar")

    pagina = navegador.siguiente()

    assert pagina.total_registros == 10
    contar.assert_not_called()


def test_cambiar_filtros_reinicia(diez_registros):
    diez_registros.crear(registro_cancer("especial", estado="CERRADO"))
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=3)
    navegador.cargar()
    navegador.siguiente()

    pagina = navegador.cambiar_filtros({"estado": "CERRADO"})

    assert navegador.historial == [None]
    assert navegador.pagina_actual == 0
    assert pagina.total_registros == 1
    assert pagina.registros[0]["radicado"] == "especial"


def test_cambiar_tamano_reinicia(diez_registros):
    navegador = NavegadorPaginas(diez_registros, tamano_pagina=3)
    navegador.cargar()
    navegador.siguiente()

    pagina = navegador.cambiar_tamano(20)

    assert navegador.pagina_actual == 0
    assert len(pagina.registros) == 10
    assert pagina.hay_mas is False
    with pytest.raises(ValueError):
        navegador.cambiar_tamano(0)
