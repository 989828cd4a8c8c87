"""
Script para inicializar la base de datos MongoDB de Casa de Salud

Crea los índices únicos de teléfonos sobre la colección de familias. Antes
completa el campo telefonosIntegrantes en documentos guardados sin él y
elimina el índice anterior sobre integrantes.telefono si existe.

Uso:
    python -m database.init_database
"""

import logging
from typing import List, Optional

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database.familia_repository import FAMILIA_INDEXES, LEGACY_INDEXES
from database.mongodb_connection import MongoDBConnection, get_collection_name
from models.familia_models import TELEFONOS_INTEGRANTES, sincronizar_telefonos_integrantes

logger = logging.getLogger(__name__)


def sync_member_phones(collection: Collection) -> int:
    """Completa TELEFONOS_INTEGRANTES en familias que no lo tienen; devuelve cuántas"""
    pendientes = collection.find(
        {"integrantes.telefono": {"$type": "string"}, TELEFONOS_INTEGRANTES: {"$exists": False}},
        {"integrantes": 1},
    )
    actualizadas = 0
    for documento in pendientes:
        sincronizar_telefonos_integrantes(documento)
        collection.update_one(
            {"_id": documento["_id"]},
            {"$set": {TELEFONOS_INTEGRANTES: documento[TELEFONOS_INTEGRANTES]}},
        )
        actualizadas += 1
    if actualizadas:
        logger.info(f"{actualizadas} familias con {TELEFONOS_INTEGRANTES} completado")
    return actualizadas


def create_indexes(db: Database, collection_name: Optional[str] = None) -> List[str]:
    """Crea (o confirma) los índices únicos y devuelve sus nombres"""
    collection = db[collection_name or get_collection_name()]
    existentes = collection.index_information()
    for nombre in LEGACY_INDEXES:
        if nombre in existentes:
            collection.drop_index(nombre)
            logger.info(f"Índice obsoleto '{nombre}' eliminado")

    sync_member_phones(collection)

    created = []
    for index in FAMILIA_INDEXES:
        options = {k: v for k, v in index.items() if k != "keys"}
        created.append(collection.create_index(index["keys"], **options))
    logger.info(f"Índices en '{collection.name}': {created}")
    return created


def verify_database_connection(connection: Optional[MongoDBConnection] = None) -> None:
    """Verifica la conexión a la base de datos y asegura los índices"""
    connection = connection or MongoDBConnection()
    try:
        db = connection.connect()
        db.command("ping")
        create_indexes(db)
        logger.info(f"Conexión a base de datos '{connection.database_name}' verificada correctamente")
    except PyMongoError as e:
        logger.error(f"Error al verificar la base de datos: {e}")
        raise
    finally:
        connection.close()


if __name__ == "__main__":
    from dotenv import load_dotenv

    from utils.logging_utils import configure_logging

    load_dotenv()
    configure_logging()

    print("Verificando conexión a base de datos MongoDB...")
    verify_database_connection()
    print("✅ Base de datos verificada correctamente!")
