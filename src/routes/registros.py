"""
Rutas de los registros de salud pública

Un mismo router atiende los tres registros (cancer, arthritis, ips) con el
nombre del registro como parámetro de ruta:
- Listado paginado por cursor con filtros y conteo total
- CRUD de registros individuales
- Importación desde Excel/CSV, eliminación total y exportación a Excel
- Plantilla de importación, valores para filtros y resumen del tablero
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response

from app_types.actividad import AccionActividad, ModuloActividad
from app_types.registros import (
    RespuestaPagina,
    ResultadoEliminacion,
    ResultadoImportacion,
    ResumenTablero,
)
from models.esquemas import IPS
from routes.dependencias import (
    Contenedor,
    get_contenedor,
    get_sesion,
    verificar_permiso_registro,
)
from services.actividad import calcular_cambios, registrar_actividad
from services.almacen import deserializar_cursor, serializar_cursor
from services.analitica import filtrar_registros, resumen_registro, valores_distintos
from services.autorizacion import Sesion
from services.excel import generar_libro, generar_plantilla, leer_hoja, mapear_fila
from utils.errores import ErrorLoteParcial, RegistroNoEncontrado
from utils.logging_config import get_logger
from utils.red_prestadores import limpiar_cache_red

logger = get_logger(__name__)

router = APIRouter(prefix="/registros", tags=["registros"])

MEDIA_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Parámetros de consulta que no son filtros
PARAMETROS_RESERVADOS = {"tamano_pagina", "cursor", "omitir_conteo", "refrescar"}


def _filtros_de_consulta(request: Request) -> Dict[str, str]:
    return {
        clave: valor
        for clave, valor in request.query_params.items()
        if clave not in PARAMETROS_RESERVADOS
    }


def _descargar(contenido: bytes, nombre_archivo: str) -> Response:
    return Response(
        content=contenido,
        media_type=MEDIA_XLSX,
        headers={"Content-Disposition": f'attachment; filename="{nombre_archivo}"'},
    )


def _error_lote(e: ErrorLoteParcial) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={"mensaje": str(e), "procesados": e.procesados, "total": e.total},
    )


# ============================================================================
# LISTADO Y OPERACIONES MASIVAS
# ============================================================================


@router.get("/{registro}", response_model=RespuestaPagina)
async def listar_registros(
    registro: str,
    request: Request,
    tamano_pagina: int = Query(default=50, ge=1, le=500),
    cursor: Optional[str] = Query(default=None),
    omitir_conteo: bool = Query(default=False),
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> RespuestaPagina:
    """
    Obtener una página de registros

    Cualquier campo filtrable del registro se recibe como parámetro de
    consulta. El total se omite (0) con omitir_conteo=true, para reutilizar el
    total ya conocido al navegar entre páginas.
    """
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "view")
    try:
        despues_de = deserializar_cursor(cursor) if cursor else None
        pagina = servicio.obtener_pagina(
            tamano_pagina=tamano_pagina,
            despues_de=despues_de,
            filtros=_filtros_de_consulta(request),
            omitir_conteo=omitir_conteo,
        )
        return RespuestaPagina(
            registros=pagina.registros,
            total_registros=pagina.total_registros,
            cursor=serializar_cursor(pagina.cursor) if pagina.cursor else None,
            hay_mas=pagina.hay_mas,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error consultando registros: {str(e)}"
        )


@router.post("/{registro}/importar", response_model=ResultadoImportacion)
async def importar_registros(
    registro: str,
    file: UploadFile = File(..., description="Archivo Excel (.xlsx) o CSV con encabezados en la primera fila"),
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> ResultadoImportacion:
    """
    Importar registros desde la primera hoja de un archivo

    Los registros se escriben en lotes atómicos de 400. Si un lote falla, la
    respuesta 500 indica cuántos registros alcanzaron a importarse.
    """
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "import")

    if not file.filename:
        raise HTTPException(status_code=400, detail="No se proporcionó un archivo")

    try:
        contenido = await file.read()
        filas = leer_hoja(contenido, file.filename)
        registros = [mapear_fila(servicio.esquema, fila) for fila in filas]
        importados = servicio.importar(registros)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ErrorLoteParcial as e:
        registrar_actividad(
            contenedor.almacen,
            sesion.perfil,
            AccionActividad.IMPORT,
            ModuloActividad(registro),
            f"Importación parcial de {file.filename}: {e.procesados} de {e.total} registros",
            detalles={"archivo": file.filename, "importados": e.procesados, "total": e.total},
        )
        raise _error_lote(e)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error procesando archivo: {str(e)}"
        )
    finally:
        await file.close()

    if servicio.esquema.nombre == IPS.nombre:
        limpiar_cache_red()

    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.IMPORT,
        ModuloActividad(registro),
        f"Importación de {importados} registros desde {file.filename}",
        detalles={"archivo": file.filename, "importados": importados},
    )
    return ResultadoImportacion(
        mensaje="Registros importados exitosamente",
        importados=importados,
        total=len(registros),
    )


@router.delete("/{registro}", response_model=ResultadoEliminacion)
async def eliminar_todos_los_registros(
    registro: str,
    confirmar: bool = Query(default=False),
    confirmacion_doble: bool = Query(default=False),
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> ResultadoEliminacion:
    """
    Eliminar TODOS los registros de la colección

    Requiere las dos confirmaciones: confirmar=true y confirmacion_doble=true.
    Esta acción no se puede deshacer.
    """
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "delete")

    if not (confirmar and confirmacion_doble):
        raise HTTPException(
            status_code=400,
            detail="La eliminación total requiere confirmar=true y confirmacion_doble=true",
        )

    try:
        eliminados = servicio.eliminar_todos()
    except ErrorLoteParcial as e:
        raise _error_lote(e)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error eliminando registros: {str(e)}"
        )

    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.DELETE,
        ModuloActividad(registro),
        f"Eliminación masiva: {eliminados} registros borrados",
        detalles={"eliminados": eliminados},
    )
    return ResultadoEliminacion(
        mensaje="Registros eliminados exitosamente", eliminados=eliminados
    )


@router.get("/{registro}/exportar")
async def exportar_registros(
    registro: str,
    request: Request,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Response:
    """
    Exportar a Excel todos los registros que cumplen los filtros

    La lectura recorre la colección en bloques de 500.
    """
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "view")
    try:
        registros = servicio.exportar(filtros=_filtros_de_consulta(request))
        contenido = generar_libro(servicio.esquema, registros)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error exportando registros: {str(e)}"
        )

    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.EXPORT,
        ModuloActividad(registro),
        f"Exportación de {len(registros)} registros",
        detalles={"exportados": len(registros)},
    )
    return _descargar(contenido, f"{servicio.esquema.coleccion}.xlsx")


@router.get("/{registro}/plantilla")
async def descargar_plantilla(
    registro: str,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Response:
    """Descargar la plantilla de importación con filas de ejemplo"""
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "import")
    return _descargar(
        generar_plantilla(servicio.esquema), f"plantilla_{servicio.esquema.nombre}.xlsx"
    )


@router.get("/{registro}/valores", response_model=Dict[str, List[str]])
async def obtener_valores_filtros(
    registro: str,
    campos: Optional[List[str]] = Query(default=None),
    refrescar: bool = Query(default=False),
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Dict[str, List[str]]:
    """
    Valores distintos por campo para poblar los filtros

    Por defecto, los campos filtrables del registro.
    """
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "view")
    campos = campos or list(servicio.esquema.filtrables)
    desconocidos = [c for c in campos if c not in servicio.esquema.campos]
    if desconocidos:
        raise HTTPException(
            status_code=400, detail=f"Campos desconocidos: {', '.join(desconocidos)}"
        )
    try:
        return valores_distintos(servicio.obtener_todos(forzar=refrescar), campos)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error obteniendo valores: {str(e)}"
        )


@router.get("/{registro}/dashboard", response_model=ResumenTablero)
async def obtener_tablero(
    registro: str,
    request: Request,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> ResumenTablero:
    """
    Resumen del tablero calculado sobre todos los registros

    Acepta filtros por igualdad sobre cualquier campo del registro y
    refrescar=true para ignorar la caché.
    """
    servicio = contenedor.servicio(registro)
    if not sesion.puede("dashboard.view"):
        raise HTTPException(status_code=403, detail="Permiso requerido: dashboard.view")
    verificar_permiso_registro(sesion, registro, "view")

    filtros = _filtros_de_consulta(request)
    desconocidos = [c for c in filtros if c not in servicio.esquema.campos]
    if desconocidos:
        raise HTTPException(
            status_code=400, detail=f"Campos desconocidos: {', '.join(desconocidos)}"
        )
    refrescar = request.query_params.get("refrescar", "").lower() in ("1", "true")
    try:
        registros = servicio.obtener_todos(forzar=refrescar)
        return resumen_registro(servicio.esquema, filtrar_registros(registros, filtros))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error calculando tablero: {str(e)}"
        )


# ============================================================================
# REGISTROS INDIVIDUALES
# ============================================================================


@router.post("/{registro}", status_code=201)
async def crear_registro(
    registro: str,
    datos: Dict[str, Any] = Body(...),
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Dict[str, Any]:
    """Crear un registro; los campos no declarados se ignoran"""
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "create")
    try:
        creado = servicio.crear(datos)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error creando registro: {str(e)}"
        )

    titulo = creado.get(servicio.esquema.campo_titulo) or "sin identificador"
    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.CREATE,
        ModuloActividad(registro),
        f"Registro creado en {servicio.esquema.titulo}: {titulo}",
        id_objetivo=creado["id"],
        nombre_objetivo=titulo,
    )
    return creado


@router.get("/{registro}/{id_registro}")
async def obtener_registro(
    registro: str,
    id_registro: str,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Dict[str, Any]:
    """Obtener un registro por id"""
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "view")
    try:
        return servicio.obtener_por_id(id_registro)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error obteniendo registro: {str(e)}"
        )


@router.patch("/{registro}/{id_registro}")
async def actualizar_registro(
    registro: str,
    id_registro: str,
    cambios: Dict[str, Any] = Body(...),
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Dict[str, Any]:
    """Actualizar campos de un registro (id y createdAt no cambian)"""
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "edit")
    try:
        anterior, actualizado = servicio.actualizar(id_registro, cambios)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error actualizando registro: {str(e)}"
        )

    titulo = actualizado.get(servicio.esquema.campo_titulo) or id_registro
    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.UPDATE,
        ModuloActividad(registro),
        f"Registro actualizado: {titulo}",
        detalles={"cambios": calcular_cambios(anterior, actualizado, servicio.esquema.campos)},
        id_objetivo=id_registro,
        nombre_objetivo=titulo,
    )
    return actualizado


@router.delete("/{registro}/{id_registro}")
async def eliminar_registro(
    registro: str,
    id_registro: str,
    sesion: Sesion = Depends(get_sesion),
    contenedor: Contenedor = Depends(get_contenedor),
) -> Dict[str, str]:
    """Eliminar un registro"""
    servicio = contenedor.servicio(registro)
    verificar_permiso_registro(sesion, registro, "delete")
    try:
        eliminado = servicio.eliminar(id_registro)
    except RegistroNoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error eliminando registro: {str(e)}"
        )

    titulo = eliminado.get(servicio.esquema.campo_titulo) or id_registro
    registrar_actividad(
        contenedor.almacen,
        sesion.perfil,
        AccionActividad.DELETE,
        ModuloActividad(registro),
        f"Registro eliminado: {titulo}",
        id_objetivo=id_registro,
        nombre_objetivo=titulo,
    )
    return {"mensaje": "Registro eliminado exitosamente", "id": id_registro}
