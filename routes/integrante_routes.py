"""
Rutas de consulta de integrantes por enfermedad crónica u ocupación
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from models.familia_models import Integrante
from routes.config import DEFAULT_RESPONSES, ROUTE_PREFIXES, ROUTE_TAGS
from routes.dependencies import get_familia_service
from services import condiciones_integrante
from services.errores import MissingParameter
from services.familia_service import FamiliaService

logger = logging.getLogger(__name__)

# Crear router
router = APIRouter(prefix=ROUTE_PREFIXES["members"], tags=ROUTE_TAGS["members"])


@router.get(
    "/members/chronic-conditions",
    response_model=List[Integrante],
    summary="Integrantes con diabetes, obesidad o alcoholismo",
    responses={500: DEFAULT_RESPONSES[500]},
)
async def members_with_chronic_conditions(
    service: FamiliaService = Depends(get_familia_service),
) -> List[Integrante]:
    return await service.listar_integrantes(condiciones_integrante.enfermedades_cronicas())


@router.get(
    "/members/diabetes",
    response_model=List[Integrante],
    summary="Integrantes con diabetes",
    responses={500: DEFAULT_RESPONSES[500]},
)
async def members_with_diabetes(service: FamiliaService = Depends(get_familia_service)) -> List[Integrante]:
    return await service.listar_integrantes(condiciones_integrante.con_diabetes())


@router.get(
    "/members/obesity",
    response_model=List[Integrante],
    summary="Integrantes con obesidad",
    responses={500: DEFAULT_RESPONSES[500]},
)
async def members_with_obesity(service: FamiliaService = Depends(get_familia_service)) -> List[Integrante]:
    return await service.listar_integrantes(condiciones_integrante.con_obesidad())


@router.get(
    "/members",
    response_model=List[Integrante],
    summary="Integrantes filtrados por ocupación",
    responses={400: {"description": "Parámetro de ocupación requerido"}, 500: DEFAULT_RESPONSES[500]},
)
async def members_by_occupation(
    occupation: Optional[str] = Query(default=None, description="Ocupación exacta a buscar"),
    service: FamiliaService = Depends(get_familia_service),
):
    try:
        condicion = condiciones_integrante.por_ocupacion(occupation)
    except MissingParameter as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": e.message})
    return await service.listar_integrantes(condicion)
