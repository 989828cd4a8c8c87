"""
Rutas para gestión de familias
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from models.familia_models import Familia, FamiliaIn
from routes.config import DEFAULT_RESPONSES, ROUTE_PREFIXES, ROUTE_TAGS
from routes.dependencies import get_familia_service
from services.errores import DuplicateFamilyPhone, DuplicateMemberPhone, FamilyNotFound, MemberNotFound
from services.familia_service import FamiliaService

logger = logging.getLogger(__name__)

# Crear router
router = APIRouter(prefix=ROUTE_PREFIXES["families"], tags=ROUTE_TAGS["families"])


def _local_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@router.get(
    "/families",
    response_model=List[Familia],
    summary="Obtiene todas las familias",
    responses={500: DEFAULT_RESPONSES[500]},
)
async def list_families(service: FamiliaService = Depends(get_familia_service)) -> List[Familia]:
    return await service.listar_familias()


@router.post(
    "/families",
    response_model=Familia,
    status_code=status.HTTP_201_CREATED,
    summary="Crea una nueva familia",
    responses={400: DEFAULT_RESPONSES[400], 409: DEFAULT_RESPONSES[409], 500: DEFAULT_RESPONSES[500]},
)
async def create_family(datos: FamiliaIn, service: FamiliaService = Depends(get_familia_service)):
    """Crea una familia con sus integrantes; los teléfonos deben ser únicos"""
    try:
        return await service.crear_familia(datos)
    except (DuplicateFamilyPhone, DuplicateMemberPhone) as e:
        return _local_error(status.HTTP_400_BAD_REQUEST, e.message)


@router.get(
    "/families/{familia_id}",
    response_model=Familia,
    summary="Obtiene una familia por ID",
    responses={400: DEFAULT_RESPONSES[400], 404: DEFAULT_RESPONSES[404]},
)
async def get_family(familia_id: str, service: FamiliaService = Depends(get_familia_service)) -> Familia:
    # FamilyNotFound se clasifica en el middleware (404)
    return await service.obtener_familia(familia_id)


@router.put(
    "/families/{familia_id}",
    response_model=Familia,
    summary="Actualiza una familia existente",
    responses={
        400: DEFAULT_RESPONSES[400],
        404: DEFAULT_RESPONSES[404],
        409: DEFAULT_RESPONSES[409],
        500: DEFAULT_RESPONSES[500],
    },
)
async def update_family(
    familia_id: str,
    datos: FamiliaIn,
    service: FamiliaService = Depends(get_familia_service),
):
    """Reemplaza la familia completa, incluida la lista de integrantes"""
    try:
        return await service.actualizar_familia(familia_id, datos)
    except (DuplicateFamilyPhone, DuplicateMemberPhone) as e:
        return _local_error(status.HTTP_400_BAD_REQUEST, e.message)
    except FamilyNotFound as e:
        return _local_error(status.HTTP_404_NOT_FOUND, e.message)


@router.delete(
    "/families/{familia_id}",
    response_model=Familia,
    summary="Elimina una familia por ID",
    responses={400: DEFAULT_RESPONSES[400], 404: DEFAULT_RESPONSES[404]},
)
async def delete_family(familia_id: str, service: FamiliaService = Depends(get_familia_service)) -> Familia:
    return await service.eliminar_familia(familia_id)


@router.delete(
    "/families/{familia_id}/members/{integrante_id}",
    response_model=Familia,
    summary="Elimina un integrante de una familia",
    responses={400: DEFAULT_RESPONSES[400], 404: DEFAULT_RESPONSES[404], 500: DEFAULT_RESPONSES[500]},
)
async def remove_member(
    familia_id: str,
    integrante_id: str,
    service: FamiliaService = Depends(get_familia_service),
):
    try:
        return await service.eliminar_integrante(familia_id, integrante_id)
    except (FamilyNotFound, MemberNotFound) as e:
        return _local_error(status.HTTP_404_NOT_FOUND, e.message)
