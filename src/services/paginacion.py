"""
Navegación de páginas con historial de cursores

El historial lo mantiene el cliente: [None, cursor_fin_pagina_1, ...].
Volver atrás nunca consulta "hacia atrás"; reutiliza el cursor guardado de la
página anterior. Cambiar filtros, cambiar el tamaño de página o mutar datos
reinicia el historial a [None] y la página actual a 0.
"""

from typing import Any, Dict, List, Optional

from services.almacen import Cursor
from services.registros import PaginaRegistros, ServicioRegistro


class NavegadorPaginas:
    """
    Estado de navegación de una sesión sobre un registro

    Cada sesión tiene su propio navegador; no comparte estado mutable con otras.
    """

    def __init__(
        self,
        servicio: ServicioRegistro,
        tamano_pagina: int = 50,
        filtros: Optional[Dict[str, Any]] = None,
    ):
        self.servicio = servicio
        self.tamano_pagina = tamano_pagina
        self.filtros: Dict[str, Any] = dict(filtros or {})
        self.historial: List[Optional[Cursor]] = [None]
        self.pagina_actual = 0
        self.total_registros = 0
        self.pagina: Optional[PaginaRegistros] = None

    def cargar(self, omitir_conteo: bool = False) -> PaginaRegistros:
        """Cargar la página actual a partir del cursor guardado en el historial"""
        pagina = self.servicio.obtener_pagina(
            tamano_pagina=self.tamano_pagina,
            despues_de=self.historial[self.pagina_actual],
            filtros=self.filtros,
            omitir_conteo=omitir_conteo,
        )
        if omitir_conteo:
            pagina.total_registros = self.total_registros
        else:
            self.total_registros = pagina.total_registros
        self.pagina = pagina
        return pagina

    def siguiente(self) -> PaginaRegistros:
        """Avanzar una página si la actual indica que hay más"""
        if self.pagina is None:
            return self.cargar()
        if not self.pagina.hay_mas or self.pagina.cursor is None:
            return self.pagina
        # Descartar historial obsoleto más allá de la página actual
        self.historial = self.historial[: self.pagina_actual + 1]
        self.historial.append(self.pagina.cursor)
        self.pagina_actual += 1
        return self.cargar(omitir_conteo=True)

    def anterior(self) -> PaginaRegistros:
        """Retroceder una página reutilizando el cursor del historial"""
        if self.pagina_actual == 0:
            return self.pagina if self.pagina is not None else self.cargar()
        self.pagina_actual -= 1
        return self.cargar(omitir_conteo=True)

    def cambiar_filtros(self, filtros: Optional[Dict[str, Any]]) -> PaginaRegistros:
        self.filtros = dict(filtros or {})
        self.reiniciar()
        return self.cargar()

    def cambiar_tamano(self, tamano_pagina: int) -> PaginaRegistros:
        if tamano_pagina < 1:
            raise ValueError("El tamaño de página debe ser al menos 1")
        self.tamano_pagina = tamano_pagina
        self.reiniciar()
        return self.cargar()

    def reiniciar(self) -> None:
        """Volver al inicio; se usa también después de una mutación"""
        self.historial = [None]
        self.pagina_actual = 0
        self.pagina = None

    @property
    def hay_anterior(self) -> bool:
        return self.pagina_actual > 0
