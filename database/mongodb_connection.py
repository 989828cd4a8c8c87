"""
Configuración de conexión a MongoDB para la API de Casa de Salud
"""

import os
from typing import Optional
from pymongo import MongoClient
from pymongo.database import Database
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
import logging

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "casaSalud"
DEFAULT_COLLECTION = "familias"


def get_database_name() -> str:
    return os.getenv("MONGODB_DATABASE", DEFAULT_DATABASE).strip() or DEFAULT_DATABASE


def get_collection_name() -> str:
    return os.getenv("MONGODB_COLLECTION", DEFAULT_COLLECTION).strip() or DEFAULT_COLLECTION


class MongoDBConnection:
    """
    Maneja los clientes de MongoDB de una aplicación.

    Cada aplicación crea su propia instancia y la entrega a los repositorios,
    no existe una conexión global.
    """

    def __init__(self, mongodb_url: Optional[str] = None, database_name: Optional[str] = None):
        self._mongodb_url = mongodb_url
        self._database_name = database_name or get_database_name()
        self._client: Optional[MongoClient] = None
        self._async_client: Optional[AsyncIOMotorClient] = None
        self._async_database: Optional[AsyncIOMotorDatabase] = None

    @property
    def database_name(self) -> str:
        return self._database_name

    def get_connection_string(self) -> str:
        """Obtiene la cadena de conexión a MongoDB desde la configuración"""
        mongodb_url = (self._mongodb_url or os.getenv("MONGODB_URL", "")).strip()

        if not mongodb_url:
            error_msg = "❌ MONGODB_URL no configurada. Debe establecerse como variable de entorno."
            logger.error(error_msg)
            raise ValueError(error_msg)

        if not mongodb_url.startswith(("mongodb://", "mongodb+srv://")):
            logger.error(f"❌ URL de MongoDB inválida: {mongodb_url}")
            raise ValueError(f"URL de MongoDB debe comenzar con 'mongodb://' o 'mongodb+srv://': {mongodb_url}")

        # Ocultar credenciales en el log
        logger.info(f"🔗 URL de conexión MongoDB: {mongodb_url.split('@')[-1]} (base: {self._database_name})")
        return mongodb_url

    def connect(self) -> Database:
        """Establece conexión síncrona a MongoDB (scripts de administración)"""
        if self._client is None:
            self._client = MongoClient(
                self.get_connection_string(),
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                socketTimeoutMS=30000
            )
            logger.info(f"Cliente MongoDB inicializado para: {self._database_name}")
        return self._client[self._database_name]

    def connect_async(self) -> AsyncIOMotorDatabase:
        """Crea el cliente asíncrono; la conexión real se abre en la primera operación"""
        if self._async_database is None:
            self._async_client = AsyncIOMotorClient(
                self.get_connection_string(),
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                socketTimeoutMS=30000
            )
            self._async_database = self._async_client[self._database_name]
            logger.info(f"Cliente MongoDB (async) inicializado para: {self._database_name}")
        return self._async_database

    def get_async_collection(self, collection_name: Optional[str] = None) -> AsyncIOMotorCollection:
        """Obtiene una colección de forma asíncrona"""
        return self.connect_async()[collection_name or get_collection_name()]

    def close(self):
        """Cierra los clientes abiertos"""
        if self._client:
            self._client.close()
            self._client = None
        if self._async_client:
            self._async_client.close()
            self._async_client = None
            self._async_database = None
