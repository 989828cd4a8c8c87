"""
Dependencias compartidas por las rutas
"""

from fastapi import Request

from services.familia_service import FamiliaService


def get_familia_service(request: Request) -> FamiliaService:
    """Servicio de familias creado por la aplicación al iniciar"""
    return request.app.state.familia_service
