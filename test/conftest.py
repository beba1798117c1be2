"""
Fixtures compartidas de las pruebas

Cada prueba usa su propio almacén SQLite en memoria. Las variables de entorno
se fijan antes de importar la aplicación para que la configuración global no
intente conectarse a PostgreSQL.
"""

import os
import time

os.environ["DB_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "secreto-de-pruebas"
os.environ.pop("AUTH_JWKS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from models.esquemas import ARTRITIS, CANCER, IPS  # noqa: E402
from routes.dependencias import Contenedor, get_contenedor  # noqa: E402
from services.almacen import AlmacenSQL  # noqa: E402
from services.autenticacion import ProveedorJWT  # noqa: E402
from services.registros import ServicioRegistro  # noqa: E402
from services.usuarios import inicializar_roles  # noqa: E402
from utils.settings import crear_motor  # noqa: E402

SECRETO = "secreto-de-pruebas"


def emitir_token(uid: str, email: str, nombre: str = "") -> str:
    """Token HS256 como el que emitiría el proveedor de autenticación"""
    claims = {
        "sub": uid,
        "email": email,
        "name": nombre,
        "picture": "",
        "exp": int(time.time()) + 3600,
    }
    return jwt.encode(claims, SECRETO, algorithm="HS256")


def cabeceras(uid: str, email: str, nombre: str = "") -> dict:
    return {"Authorization": f"Bearer {emitir_token(uid, email, nombre)}"}


@pytest.fixture
def almacen():
    almacen = AlmacenSQL(crear_motor("sqlite://"))
    almacen.crear_tablas()
    return almacen


@pytest.fixture
def servicio_cancer(almacen):
    return ServicioRegistro(CANCER, almacen)


@pytest.fixture
def servicio_artritis(almacen):
    return ServicioRegistro(ARTRITIS, almacen)


@pytest.fixture
def servicio_ips(almacen):
    return ServicioRegistro(IPS, almacen)


@pytest.fixture
def contenedor(almacen, tmp_path):
    inicializar_roles(almacen)
    return Contenedor(almacen, ProveedorJWT(secreto=SECRETO), cache_dir=str(tmp_path))


@pytest.fixture
def client(contenedor):
    from main import app

    app.dependency_overrides[get_contenedor] = lambda: contenedor
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def superadmin(client):
    """Primera cuenta del sistema: queda como superadmin"""
    encabezados = cabeceras("uid-admin", "admin@salud.gov.co", "Administradora")
    respuesta = client.get("/auth/sesion", headers=encabezados)
    assert respuesta.status_code == 200
    return encabezados


@pytest.fixture
def usuario_basico(client, superadmin):
    """Segunda cuenta: queda con el rol user"""
    encabezados = cabeceras("uid-usuario", "usuario@salud.gov.co", "Usuario Básico")
    respuesta = client.get("/auth/sesion", headers=encabezados)
    assert respuesta.status_code == 200
    return encabezados


def registro_cancer(radicado: str, **campos) -> dict:
    datos = {
        "radicado": radicado,
        "codDiagnostico": "C50",
        "epcDepartamento": "ANTIOQUIA",
        "tipoServicio": "AMBULATORIO",
        "valorTotal": 1000,
    }
    datos.update(campos)
    return datos
