"""
Red de prestadores y regiones

Resuelve la región de red de una IPS: primero por coincidencia con la red
de prestadores contratada, luego por el departamento. Las normalizaciones y
coincidencias se memorizan porque el tablero las evalúa por cada registro.
"""

import re
import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional


@dataclass(frozen=True)
class PrestadorRed:
    prestador: str
    consulta_externa: bool
    cx: bool
    internacion: bool
    municipio: str
    departamento: str
    region: str


RED_PRESTADORES = (
    PrestadorRed("CEHOCA CENTROS HOSPITALARIOS DEL CARIBE", True, True, True, "SANTA MARTA", "MAGDALENA", "NORTE"),
    PrestadorRed("ODONTJOMAR", True, False, False, "VALLEDUPAR", "CESAR", "NORTE"),
    PrestadorRed("DISAMA MEDIC", True, True, True, "BARRANQUILLA", "ATLANTICO", "NORTE"),
    PrestadorRed("OINSAMED", True, True, True, "BARRANQUILLA", "ATLANTICO", "NORTE"),
    PrestadorRed("NEUROCIENCIA", True, False, False, "MAGANGUE", "BOLIVAR", "NORTE"),
    PrestadorRed("IPS EIYAJAA WANULU", True, False, False, "RIOHACHA", "GUAJIRA", "NORTE"),
    PrestadorRed("MEDIC SAS", True, False, True, "RIOHACHA", "GUAJIRA", "NORTE"),
    PrestadorRed("INSTITUTO DE CANCEROLOGIA DE SUCRE LTDA", True, False, True, "SINCELEJO", "SUCRE", "NORTE"),
    PrestadorRed("UNIDAD MEDICA ONCOLOGICA ONCOLIFE IPS SAS", True, True, True, "BOGOTA", "BOGOTA", "CENTRAL"),
    PrestadorRed("UNIDAD MEDICA ONCOLOGICA ONCOLIFE IPS VILLAVICENCIO", True, False, False, "VILLAVICENCIO", "META", "CENTRAL"),
    PrestadorRed("UNIDAD MEDICA ONCOLOGICA ONCOLIFE ZIPAQUIRA", True, False, True, "ZIPAQUIRA", "CUNDINAMARCA", "CENTRAL"),
    PrestadorRed("CLINICA MEDILASER S.A.", True, True, True, "NEIVA", "HUILA", "CENTRAL"),
    PrestadorRed("CLINICA MEDILASER S.A.S. SUCURSAL TUNJA", True, True, True, "TUNJA", "BOYACA", "VIEJO CALDAS"),
)

REGION_POR_DEPARTAMENTO: Dict[str, str] = {
    # NORTE
    "ATLANTICO": "NORTE",
    "MAGDALENA": "NORTE",
    "CESAR": "NORTE",
    "BOLIVAR": "NORTE",
    "GUAJIRA": "NORTE",
    "LA GUAJIRA": "NORTE",
    "SUCRE": "NORTE",
    "CORDOBA": "NORTE",
    "SAN ANDRES": "NORTE",
    "ARCHIPIELAGO DE SAN ANDRES PROVIDENCIA Y SANTA CATALINA": "NORTE",
    # CENTRAL
    "BOGOTA": "CENTRAL",
    "BOGOTA D.C.": "CENTRAL",
    "BOGOTA DC": "CENTRAL",
    "CUNDINAMARCA": "CENTRAL",
    "META": "CENTRAL",
    "HUILA": "CENTRAL",
    "TOLIMA": "CENTRAL",
    "CASANARE": "CENTRAL",
    "VICHADA": "CENTRAL",
    "ARAUCA": "CENTRAL",
    "NORTE DE SANTANDER": "CENTRAL",
    "SANTANDER": "CENTRAL",
    # VIEJO CALDAS
    "BOYACA": "VIEJO CALDAS",
    "CALDAS": "VIEJO CALDAS",
    "RISARALDA": "VIEJO CALDAS",
    "QUINDIO": "VIEJO CALDAS",
    # OCCIDENTE
    "ANTIOQUIA": "OCCIDENTE",
    "CHOCO": "OCCIDENTE",
    "VALLE DEL CAUCA": "OCCIDENTE",
    "CAUCA": "OCCIDENTE",
    "NARINO": "OCCIDENTE",
    # SUR
    "AMAZONAS": "SUR",
    "PUTUMAYO": "SUR",
    "CAQUETA": "SUR",
    "GUAINA": "SUR",
    "VAUPE": "SUR",
    "GUAVIARE": "SUR",
}

REGION_OTRAS = "OTRAS"


@lru_cache(maxsize=4096)
def normalizar_texto(texto: str) -> str:
    """Mayúsculas, sin tildes y con espacios colapsados"""
    descompuesto = unicodedata.normalize("NFD", (texto or "").upper())
    sin_tildes = "".join(c for c in descompuesto if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", sin_tildes).strip()


@lru_cache(maxsize=4096)
def buscar_en_red(nom_ips: str) -> Optional[PrestadorRed]:
    """Prestador de la red que coincide con el nombre (igual o contenido)"""
    nombre = normalizar_texto(nom_ips)
    if not nombre:
        return None
    for entrada in RED_PRESTADORES:
        prestador = normalizar_texto(entrada.prestador)
        if nombre == prestador or prestador in nombre or nombre in prestador:
            return entrada
    return None


def resolver_region_red(nom_ips: str, departamento: str) -> str:
    """
    Resolver la región de red de una IPS

    Args:
        nom_ips: Nombre de la IPS
        departamento: Departamento de la sede

    Returns:
        NORTE, CENTRAL, VIEJO CALDAS, OCCIDENTE, SUR u OTRAS
    """
    coincidencia = buscar_en_red(nom_ips)
    if coincidencia:
        return coincidencia.region

    departamento_normalizado = normalizar_texto(departamento)
    if not departamento_normalizado:
        return REGION_OTRAS
    if departamento_normalizado in REGION_POR_DEPARTAMENTO:
        return REGION_POR_DEPARTAMENTO[departamento_normalizado]

    for clave, region in REGION_POR_DEPARTAMENTO.items():
        clave_normalizada = normalizar_texto(clave)
        if departamento_normalizado in clave_normalizada or clave_normalizada in departamento_normalizado:
            return region
    return REGION_OTRAS


def limpiar_cache_red() -> None:
    """Limpiar memorizaciones (tras reimportar el directorio de IPS)"""
    normalizar_texto.cache_clear()
    buscar_en_red.cache_clear()
