"""
Rutas de la bitácora de actividad
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app_types.actividad import PaginaActividad
from routes.dependencias import Contenedor, get_contenedor, requiere_permiso
from services.actividad import listar_actividad
from services.almacen import deserializar_cursor, serializar_cursor
from services.autorizacion import Sesion

router = APIRouter(prefix="/actividad", tags=["actividad"])


@router.get("", response_model=PaginaActividad)
async def get_actividad(
    tamano_pagina: int = Query(default=50, ge=1, le=500),
    cursor: Optional[str] = Query(default=None),
    module: Optional[str] = Query(default=None),
    action: Optional[str] = Query(default=None),
    userId: Optional[str] = Query(default=None),
    userEmail: Optional[str] = Query(default=None),
    sesion: Sesion = Depends(requiere_permiso("activity.view")),
    contenedor: Contenedor = Depends(get_contenedor),
) -> PaginaActividad:
    """
    Listar la bitácora, más reciente primero

    Filtros opcionales por módulo, acción, id o email del usuario.
    """
    try:
        entradas, total, siguiente, hay_mas = listar_actividad(
            contenedor.almacen,
            tamano_pagina=tamano_pagina,
            despues_de=deserializar_cursor(cursor) if cursor else None,
            filtros={
                "module": module,
                "action": action,
                "userId": userId,
                "userEmail": userEmail,
            },
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error consultando actividad: {str(e)}"
        )

    return PaginaActividad(
        registros=entradas,
        total_registros=total,
        cursor=serializar_cursor(siguiente) if siguiente else None,
        hay_mas=hay_mas,
    )
