"""
Rutas de salud y monitoreo
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any
from fastapi import APIRouter, Depends

from routes.config import ROUTE_TAGS
from routes.dependencies import get_familia_service
from services.familia_service import FamiliaService

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Crear router
router = APIRouter(tags=ROUTE_TAGS["health"])


@router.get("/health")
async def health_check(service: FamiliaService = Depends(get_familia_service)) -> Dict[str, Any]:
    """Endpoint de salud de la API"""

    # Verificar conexión a la base de datos (no bloquear si falla)
    db_status = "unknown"
    db_error = None
    try:
        await service.repositorio.ping()
        db_status = "healthy"
    except Exception as e:
        db_status = "unhealthy"
        db_error = str(e)
        logger.warning(f"Error de conexión a MongoDB (no crítico): {e}")

    # La API siempre devuelve healthy, incluso si la base de datos está caída
    response = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": API_VERSION,
        "database": db_status,
    }

    if db_error:
        response["database_error"] = db_error

    return response


@router.get("/")
async def root() -> Dict[str, Any]:
    """Endpoint raíz"""

    return {
        "message": "Casa de Salud API",
        "version": API_VERSION,
        "description": "API para la recolección de datos de una Casa de Salud",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health"
    }
