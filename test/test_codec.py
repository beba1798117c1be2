"""
Pruebas del codec de registros y del constructor de consultas
"""

from datetime import datetime, timezone

import pytest

from models.esquemas import ARTRITIS, CANCER, IPS
from services.almacen import DocumentoCrudo
from services.codec import a_numero, a_texto, decodificar, preparar_escritura
from services.consultas import CENTINELA_PREFIJO, clave_filtros, construir_consulta


# ============================================================================
# CODEC
# ============================================================================


@pytest.mark.parametrize(
    "valor, esperado",
    [(None, ""), (True, "1"), (False, ""), (12.0, "12"), (12.5, "12.5"), (7, "7"), ("ABC", "ABC")],
)
def test_a_texto(valor, esperado):
    assert a_texto(valor) == esperado


@pytest.mark.parametrize(
    "valor, esperado",
    [(None, 0), ("", 0), (True, 1), (False, 0), ("15", 15), ("1,500.5", 1500.5), ("n/a", 0), (3.5, 3.5)],
)
def test_a_numero(valor, esperado):
    assert a_numero(valor) == esperado


def test_decodificar_completa_campos_faltantes():
    """Un documento casi vacío produce todos los campos declarados"""
    marca = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
    documento = DocumentoCrudo(
        id="abc", datos={"radicado": 1234567, "valorTotal": "2500"}, created_at=marca, updated_at=marca
    )

    registro = decodificar(CANCER, documento)

    assert registro["id"] == "abc"
    assert registro["radicado"] == "1234567"
    assert registro["valorTotal"] == 2500
    assert registro["diasEstancia"] == 0
    assert registro["razonSocial"] == ""
    assert registro["createdAt"] == marca
    assert set(CANCER.campos) <= set(registro)


def test_decodificar_marcas_sin_zona_como_utc():
    documento = DocumentoCrudo(
        id="abc", datos={}, created_at=datetime(2025, 3, 1, 12, 0, 0), updated_at="2025-03-02T08:00:00"
    )

    registro = decodificar(ARTRITIS, documento)

    assert registro["createdAt"] == datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert registro["updatedAt"] == datetime(2025, 3, 2, 8, 0, 0, tzinfo=timezone.utc)


def test_decodificar_booleanos_historicos():
    """Campos que se guardaron como booleano se leen como texto"""
    documento = DocumentoCrudo(id="x", datos={"hipertensionHTA": True, "diabetesMellitusDM": False, "edad": "54"})

    registro = decodificar(ARTRITIS, documento)

    assert registro["hipertensionHTA"] == "1"
    assert registro["diabetesMellitusDM"] == ""
    assert registro["edad"] == 54
    assert isinstance(registro["createdAt"], datetime)


def test_preparar_escritura_descarta_campos_sistema_y_desconocidos():
    datos = {
        "id": "no",
        "createdAt": "2020-01-01",
        "campoInventado": "x",
        "radicado": 99,
        "cantidad": "3",
    }

    limpio = preparar_escritura(CANCER, datos)

    assert limpio == {"radicado": "99", "cantidad": 3}


# ============================================================================
# CONSULTAS
# ============================================================================


def test_clave_filtros_estable_sin_importar_orden():
    """Los mismos filtros en distinto orden producen la misma clave y consulta"""
    a = {"estado": "ACTIVO", "codDiagnostico": "C50"}
    b = {"codDiagnostico": "C50", "estado": "ACTIVO"}

    assert clave_filtros(CANCER, a) == clave_filtros(CANCER, b)
    assert construir_consulta(CANCER, a) == construir_consulta(CANCER, b)


def test_filtros_vacios_se_descartan():
    consulta = construir_consulta(CANCER, {"estado": "", "periodo": None, "codDiagnostico": "C50"})

    assert consulta.igualdades == (("codDiagnostico", "C50"),)
    assert consulta.orden == ("createdAt", "desc")
    assert clave_filtros(CANCER, {"estado": ""}) == clave_filtros(CANCER, None)


def test_filtro_no_soportado():
    with pytest.raises(ValueError, match="Filtro no soportado"):
        construir_consulta(CANCER, {"valorTotal": "10"})


def test_prefijo_ips_normaliza_y_ordena_por_nombre():
    consulta = construir_consulta(IPS, {"nomIps": "  clin ", "departamento": "ATLANTICO"})

    assert consulta.rango == ("nomIps", "CLIN", "CLIN" + CENTINELA_PREFIJO)
    assert consulta.orden == ("nomIps", "asc")
    assert consulta.igualdades == (("departamento", "ATLANTICO"),)
