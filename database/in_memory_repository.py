"""
Repositorio de familias en memoria

Mismo contrato que MongoFamiliaRepository. Emula los índices únicos de
FAMILIA_INDEXES para que las carreras entre validación y escritura también
terminen en UniquenessConstraintViolation. Se usa en tests y en ejecuciones
locales sin MongoDB. Igual que en MongoDB, el índice de teléfonos de
integrantes se evalúa sobre TELEFONOS_INTEGRANTES tal como llega en el documento.
"""

import copy
from threading import Lock
from typing import Any, Dict, List, Optional

from bson import ObjectId

from database.familia_repository import to_object_id
from models.familia_models import TELEFONOS_INTEGRANTES
from services.condiciones_integrante import CondicionIntegrante
from services.errores import UniquenessConstraintViolation


def _telefonos_integrantes(documento: Dict[str, Any]) -> List[str]:
    return [tel for tel in documento.get(TELEFONOS_INTEGRANTES, []) if isinstance(tel, str)]


class InMemoryFamiliaRepository:
    """Repositorio en memoria; conserva el orden de inserción"""

    def __init__(self) -> None:
        self._lock = Lock()
        self._familias: Dict[ObjectId, Dict[str, Any]] = {}

    def _verificar_indices(self, documento: Dict[str, Any], familia_id: ObjectId) -> None:
        otros = [doc for oid, doc in self._familias.items() if oid != familia_id]

        telefono = documento.get("telefono")
        if any(doc.get("telefono") == telefono for doc in otros):
            raise UniquenessConstraintViolation("Duplicate key", {"key_value": {"telefono": telefono}})

        existentes = {tel for doc in otros for tel in _telefonos_integrantes(doc)}
        for tel in _telefonos_integrantes(documento):
            if tel in existentes:
                raise UniquenessConstraintViolation(
                    "Duplicate key", {"key_value": {TELEFONOS_INTEGRANTES: tel}}
                )

    def _primero(self, predicado) -> Optional[Dict[str, Any]]:
        with self._lock:
            for documento in self._familias.values():
                if predicado(documento):
                    return copy.deepcopy(documento)
        return None

    async def listar(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._familias.values()]

    async def obtener(self, familia_id: Any) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(familia_id)
        with self._lock:
            documento = self._familias.get(object_id)
            return copy.deepcopy(documento) if documento is not None else None

    async def buscar_por_telefono(self, telefono: str, excluir_id: Any = None) -> Optional[Dict[str, Any]]:
        excluido = to_object_id(excluir_id) if excluir_id is not None else None
        return self._primero(
            lambda doc: doc["_id"] != excluido and doc.get("telefono") == telefono
        )

    async def buscar_por_telefono_integrante(
        self, telefono: str, excluir_id: Any = None
    ) -> Optional[Dict[str, Any]]:
        excluido = to_object_id(excluir_id) if excluir_id is not None else None
        return self._primero(
            lambda doc: doc["_id"] != excluido and telefono in _telefonos_integrantes(doc)
        )

    async def insertar(self, documento: Dict[str, Any]) -> Dict[str, Any]:
        documento = copy.deepcopy(documento)
        documento.setdefault("_id", ObjectId())
        with self._lock:
            self._verificar_indices(documento, documento["_id"])
            self._familias[documento["_id"]] = documento
        return copy.deepcopy(documento)

    async def reemplazar(self, familia_id: Any, documento: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(familia_id)
        documento = copy.deepcopy(documento)
        documento["_id"] = object_id
        with self._lock:
            if object_id not in self._familias:
                return None
            self._verificar_indices(documento, object_id)
            self._familias[object_id] = documento
        return copy.deepcopy(documento)

    async def eliminar(self, familia_id: Any) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(familia_id)
        with self._lock:
            documento = self._familias.pop(object_id, None)
        return copy.deepcopy(documento) if documento is not None else None

    async def buscar_por_integrantes(self, condicion: CondicionIntegrante) -> List[Dict[str, Any]]:
        def coincide(integrante: Dict[str, Any]) -> bool:
            return any(
                all(integrante.get(campo) == valor for campo, valor in alternativa.items())
                for alternativa in condicion.alternativas
            )

        with self._lock:
            return [
                copy.deepcopy(doc)
                for doc in self._familias.values()
                if any(coincide(integrante) for integrante in doc.get("integrantes", []))
            ]

    async def asegurar_indices(self) -> None:
        """Los índices se verifican en cada escritura"""

    async def ping(self) -> bool:
        return True
