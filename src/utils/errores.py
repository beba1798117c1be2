"""
Excepciones de dominio compartidas por servicios y rutas
"""


class RegistroNoEncontrado(LookupError):
    """El documento solicitado no existe en la colección"""

    def __init__(self, coleccion: str, id_documento: str):
        self.coleccion = coleccion
        self.id_documento = id_documento
        super().__init__(f"No existe el documento {id_documento} en {coleccion}")


class OperacionNoPermitida(Exception):
    """Operación rechazada por una regla de negocio (roles protegidos, superadmin)"""


class ErrorLoteParcial(Exception):
    """
    Fallo de un lote durante una operación masiva

    Los lotes anteriores ya quedaron confirmados; `procesados` indica cuántos
    registros alcanzaron a persistirse antes del fallo.
    """

    def __init__(self, mensaje: str, procesados: int, total: int):
        self.procesados = procesados
        self.total = total
        super().__init__(mensaje)
