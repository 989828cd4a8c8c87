"""
Repositorio de familias sobre MongoDB (motor)

Traduce los errores del driver a errores tipados:
- DuplicateKeyError -> UniquenessConstraintViolation
- InvalidId -> ConversionFailure
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from models.familia_models import TELEFONOS_INTEGRANTES
from services.condiciones_integrante import CondicionIntegrante
from services.errores import ConversionFailure, UniquenessConstraintViolation

logger = logging.getLogger(__name__)

# Índices únicos que hacen cumplir la unicidad de teléfonos en la base de datos.
# Los teléfonos de integrantes se indexan desde TELEFONOS_INTEGRANTES, que solo
# contiene strings y se omite cuando la familia no tiene teléfonos de integrantes.
FAMILIA_INDEXES: List[Dict[str, Any]] = [
    {
        "keys": [("telefono", ASCENDING)],
        "name": "telefono_unico",
        "unique": True,
    },
    {
        "keys": [(TELEFONOS_INTEGRANTES, ASCENDING)],
        "name": "telefonos_integrantes_unico",
        "unique": True,
        "partialFilterExpression": {TELEFONOS_INTEGRANTES: {"$type": "string"}},
    },
]

# Índice anterior sobre integrantes.telefono; generaba claves null por cada
# integrante sin teléfono y se elimina al asegurar los índices.
LEGACY_INDEXES: List[str] = ["integrantes_telefono_unico"]


def to_object_id(value: Any, field: str = "_id") -> ObjectId:
    """Convierte un identificador externo a ObjectId"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ConversionFailure(value, field)


@contextmanager
def translate_driver_errors() -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as e:
        logger.warning(f"Violación de índice único: {e.details or e}")
        raise UniquenessConstraintViolation(
            "Duplicate key",
            {"key_value": (e.details or {}).get("keyValue")},
        ) from e


class FamiliaRepository(Protocol):
    """Contrato de almacenamiento de familias (un documento por familia)"""

    async def listar(self) -> List[Dict[str, Any]]: ...

    async def obtener(self, familia_id: Any) -> Optional[Dict[str, Any]]: ...

    async def buscar_por_telefono(self, telefono: str, excluir_id: Any = None) -> Optional[Dict[str, Any]]: ...

    async def buscar_por_telefono_integrante(
        self, telefono: str, excluir_id: Any = None
    ) -> Optional[Dict[str, Any]]: ...

    async def insertar(self, documento: Dict[str, Any]) -> Dict[str, Any]: ...

    async def reemplazar(self, familia_id: Any, documento: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    async def eliminar(self, familia_id: Any) -> Optional[Dict[str, Any]]: ...

    async def buscar_por_integrantes(self, condicion: CondicionIntegrante) -> List[Dict[str, Any]]: ...

    async def asegurar_indices(self) -> None: ...

    async def ping(self) -> bool: ...


def _con_exclusion(filtro: Dict[str, Any], excluir_id: Any) -> Dict[str, Any]:
    if excluir_id is not None:
        filtro["_id"] = {"$ne": to_object_id(excluir_id)}
    return filtro


class MongoFamiliaRepository:
    """Repositorio de familias respaldado por una colección MongoDB"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def listar(self) -> List[Dict[str, Any]]:
        return await self.collection.find().to_list(length=None)

    async def obtener(self, familia_id: Any) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"_id": to_object_id(familia_id)})

    async def buscar_por_telefono(self, telefono: str, excluir_id: Any = None) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one(_con_exclusion({"telefono": telefono}, excluir_id))

    async def buscar_por_telefono_integrante(
        self, telefono: str, excluir_id: Any = None
    ) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one(
            _con_exclusion({TELEFONOS_INTEGRANTES: telefono}, excluir_id)
        )

    async def insertar(self, documento: Dict[str, Any]) -> Dict[str, Any]:
        with translate_driver_errors():
            result = await self.collection.insert_one(documento)
        documento["_id"] = result.inserted_id
        return documento

    async def reemplazar(self, familia_id: Any, documento: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(familia_id)
        documento = {k: v for k, v in documento.items() if k != "_id"}
        with translate_driver_errors():
            return await self.collection.find_one_and_replace(
                {"_id": object_id},
                documento,
                return_document=ReturnDocument.AFTER,
            )

    async def eliminar(self, familia_id: Any) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one_and_delete({"_id": to_object_id(familia_id)})

    async def buscar_por_integrantes(self, condicion: CondicionIntegrante) -> List[Dict[str, Any]]:
        return await self.collection.find(condicion.a_filtro_mongo()).to_list(length=None)

    async def asegurar_indices(self) -> None:
        existentes = await self.collection.index_information()
        for nombre in LEGACY_INDEXES:
            if nombre in existentes:
                await self.collection.drop_index(nombre)
                logger.info(f"Índice obsoleto '{nombre}' eliminado")
        for index in FAMILIA_INDEXES:
            options = {k: v for k, v in index.items() if k != "keys"}
            await self.collection.create_index(index["keys"], **options)
        logger.info(f"Índices únicos asegurados en '{self.collection.name}'")

    async def ping(self) -> bool:
        await self.collection.database.command("ping")
        return True
