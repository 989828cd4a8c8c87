"""
Casa de Salud API - FastAPI
API para la recolección de datos de familias e integrantes de una Casa de Salud
"""

import os
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from pymongo.errors import PyMongoError

from utils.logging_utils import configure_logging

# Configurar logging PRIMERO para poder usarlo en las importaciones
configure_logging()

logger = logging.getLogger(__name__)

# Cargar variables de entorno desde .env solo si existe (desarrollo local)
if os.path.exists(".env"):
    load_dotenv()
    logger.info("📄 Archivo .env encontrado, cargando variables locales")

from database.familia_repository import FamiliaRepository, MongoFamiliaRepository  # noqa: E402
from database.mongodb_connection import MongoDBConnection  # noqa: E402
from routes.familia_routes import router as familia_router  # noqa: E402
from routes.health_routes import API_VERSION, router as health_router  # noqa: E402
from routes.integrante_routes import router as integrante_router  # noqa: E402
from services.familia_service import FamiliaService  # noqa: E402
from utils.error_handler import ErrorClassificationMiddleware, request_validation_handler  # noqa: E402


def create_app(repositorio: Optional[FamiliaRepository] = None) -> FastAPI:
    """
    Crea la aplicación FastAPI

    Args:
        repositorio: almacenamiento de familias. Si no se proporciona, se conecta
            a MongoDB al iniciar usando MONGODB_URL / MONGODB_DATABASE.
    """
    app = FastAPI(
        title="Casa de Salud API",
        description="API para la recolección de datos de una Casa de Salud",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # El middleware de errores queda dentro de CORS para que sus respuestas
    # también lleven los encabezados CORS
    app.add_middleware(ErrorClassificationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # En producción, especificar dominios permitidos
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(health_router)
    app.include_router(familia_router)
    app.include_router(integrante_router)

    if repositorio is not None:
        app.state.familia_service = FamiliaService(repositorio)
        return app

    connection = MongoDBConnection()

    @app.on_event("startup")
    async def startup_event():
        """Conecta a MongoDB y asegura los índices únicos"""
        logger.info("🚀 Iniciando Casa de Salud API...")
        mongo_repositorio = MongoFamiliaRepository(connection.get_async_collection())
        app.state.familia_service = FamiliaService(mongo_repositorio)
        try:
            await mongo_repositorio.asegurar_indices()
        except PyMongoError as e:
            logger.error(f"⚠️  No se pudieron asegurar los índices únicos: {e}")
            logger.warning("⚠️  La API funcionará pero /health reportará la base de datos como no disponible")
        logger.info("✅ Casa de Salud API iniciada correctamente")

    @app.on_event("shutdown")
    async def shutdown_event():
        connection.close()
        logger.info("Conexiones a MongoDB cerradas")

    return app


app = create_app()


if __name__ == "__main__":
    port = os.getenv("PORT", "3000")
    logger.info(f"Iniciando servidor local en puerto {port}")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(port),
        reload=False,
        log_level="info"
    )
