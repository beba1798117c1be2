"""
Verificación de tokens del proveedor de autenticación

El inicio de sesión ocurre en el proveedor externo; esta API sólo verifica
el token bearer y lo convierte en una Identidad. Soporta:
- Secreto compartido (HS256)
- Claves públicas publicadas en una URL JWKS, con caché de 10 minutos y una
  recarga forzada cuando llega un `kid` desconocido
"""

import time
from typing import Any, Dict, Optional

import httpx
from jose import jwt
from jose.exceptions import JWTError

from app_types.seguridad import Identidad
from utils.logging_config import get_logger

logger = get_logger(__name__)

TTL_JWKS = 600.0


class ErrorAutenticacion(Exception):
    """Token ausente, inválido o expirado"""


class ProveedorJWT:
    """
    Verificador de tokens bearer

    Args:
        secreto: Secreto compartido para tokens HS256
        algoritmo: Algoritmo del secreto compartido
        jwks_url: URL de las claves públicas (tiene prioridad sobre el secreto)
        emisor: Emisor esperado (claim iss)
        audiencia: Audiencia esperada (claim aud)
    """

    def __init__(
        self,
        secreto: Optional[str] = None,
        algoritmo: str = "HS256",
        jwks_url: Optional[str] = None,
        emisor: Optional[str] = None,
        audiencia: Optional[str] = None,
    ):
        if not secreto and not jwks_url:
            raise ValueError("Se requiere un secreto o una URL JWKS para verificar tokens")
        self.secreto = secreto
        self.algoritmo = algoritmo
        self.jwks_url = jwks_url
        self.emisor = emisor
        self.audiencia = audiencia
        self._jwks: Dict[str, Any] = {"keys": None, "fetched_at": 0.0}

    def _obtener_jwks(self, forzar: bool = False) -> Dict[str, Any]:
        ahora = time.time()
        if not forzar and self._jwks["keys"] and ahora - self._jwks["fetched_at"] < TTL_JWKS:
            return self._jwks["keys"]
        respuesta = httpx.get(self.jwks_url, timeout=10.0)
        respuesta.raise_for_status()
        self._jwks = {"keys": respuesta.json(), "fetched_at": ahora}
        return self._jwks["keys"]

    def _clave_jwks(self, token: str):
        cabecera = jwt.get_unverified_header(token)
        kid = cabecera.get("kid")

        def buscar(jwks: Dict[str, Any]):
            for jwk in jwks.get("keys", []):
                if jwk.get("kid") == kid:
                    return jwk
            return None

        clave = buscar(self._obtener_jwks())
        if clave is None:
            clave = buscar(self._obtener_jwks(forzar=True))
        if clave is None:
            raise JWTError("kid desconocido")
        return clave, cabecera.get("alg", "RS256")

    def verificar(self, token: str) -> Dict[str, Any]:
        """
        Verificar firma y claims del token

        Returns:
            Claims del token

        Raises:
            ErrorAutenticacion: Si el token no es válido
        """
        if not token:
            raise ErrorAutenticacion("Token ausente")
        opciones = {"verify_aud": self.audiencia is not None}
        try:
            if self.jwks_url:
                clave, algoritmo = self._clave_jwks(token)
                algoritmos = [algoritmo]
            else:
                clave, algoritmos = self.secreto, [self.algoritmo]
            return jwt.decode(
                token,
                clave,
                algorithms=algoritmos,
                issuer=self.emisor,
                audience=self.audiencia,
                options=opciones,
            )
        except (JWTError, httpx.HTTPError) as e:
            logger.warning(f"Token inválido: {e}")
            raise ErrorAutenticacion(f"Token inválido: {str(e)}") from e

    def identidad(self, token: str) -> Identidad:
        """Verificar el token y mapear sus claims a una Identidad"""
        claims = self.verificar(token)
        uid = claims.get("sub") or claims.get("user_id")
        if not uid:
            raise ErrorAutenticacion("El token no identifica al usuario")
        return Identidad(
            uid=str(uid),
            email=claims.get("email") or "",
            display_name=claims.get("name") or "",
            photo_url=claims.get("picture") or "",
        )
