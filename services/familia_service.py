"""
Servicio de familias
Valida la unicidad de teléfonos antes de escribir y ejecuta las mutaciones

La validación previa es una consulta separada de la escritura: dos solicitudes
concurrentes con el mismo teléfono pueden pasar ambas la validación. En ese caso
el índice único de la base de datos rechaza la segunda escritura con
UniquenessConstraintViolation (409 en el middleware).
"""

import logging
from typing import Any, Dict, List, Optional, Set

from database.familia_repository import FamiliaRepository
from models.familia_models import Familia, FamiliaIn, Integrante, sincronizar_telefonos_integrantes
from services.condiciones_integrante import CondicionIntegrante
from services.errores import (
    DuplicateFamilyPhone,
    DuplicateMemberPhone,
    FamilyNotFound,
    MemberNotFound,
)
from utils.logging_utils import familia_logging_context

logger = logging.getLogger(__name__)


class FamiliaService:
    """Capa de validación y persistencia de familias"""

    def __init__(self, repositorio: FamiliaRepository):
        self.repositorio = repositorio

    async def listar_familias(self) -> List[Familia]:
        documentos = await self.repositorio.listar()
        return [Familia(**doc) for doc in documentos]

    async def obtener_familia(self, familia_id: str) -> Familia:
        with familia_logging_context(familia_id=familia_id, operacion="obtener"):
            documento = await self.repositorio.obtener(familia_id)
            if not documento:
                raise FamilyNotFound(familia_id)
            return Familia(**documento)

    async def crear_familia(self, datos: FamiliaIn) -> Familia:
        """
        Crea una familia con sus integrantes

        Raises:
            DuplicateFamilyPhone: otra familia ya usa el teléfono
            DuplicateMemberPhone: otro integrante ya usa el teléfono de un integrante
            UniquenessConstraintViolation: el índice único rechazó la escritura
        """
        with familia_logging_context(operacion="crear"):
            await self._validar_telefonos(datos)
            documento = await self.repositorio.insertar(datos.to_document())
            logger.info(f"Familia {documento['_id']} creada con {len(documento['integrantes'])} integrantes")
            return Familia(**documento)

    async def actualizar_familia(self, familia_id: str, datos: FamiliaIn) -> Familia:
        """
        Reemplaza la familia completa, incluida la lista de integrantes

        La familia se excluye de sus propias validaciones de unicidad, por lo que
        conservar el mismo teléfono no es un conflicto.
        """
        with familia_logging_context(familia_id=familia_id, operacion="actualizar"):
            await self._validar_telefonos(datos, excluir_id=familia_id)
            documento = await self.repositorio.reemplazar(familia_id, datos.to_document())
            if not documento:
                raise FamilyNotFound(familia_id)
            logger.info("Familia actualizada")
            return Familia(**documento)

    async def eliminar_familia(self, familia_id: str) -> Familia:
        with familia_logging_context(familia_id=familia_id, operacion="eliminar"):
            documento = await self.repositorio.eliminar(familia_id)
            if not documento:
                raise FamilyNotFound(familia_id)
            logger.info(f"Familia eliminada junto con {len(documento.get('integrantes', []))} integrantes")
            return Familia(**documento)

    async def eliminar_integrante(self, familia_id: str, integrante_id: str) -> Familia:
        """Quita un integrante conservando el orden del resto; no revalida teléfonos"""
        with familia_logging_context(familia_id=familia_id, operacion="eliminar_integrante"):
            documento = await self.repositorio.obtener(familia_id)
            if not documento:
                raise FamilyNotFound(familia_id)

            integrantes: List[Dict[str, Any]] = documento.get("integrantes", [])
            indice = next(
                (i for i, integrante in enumerate(integrantes) if str(integrante.get("_id")) == integrante_id),
                None,
            )
            if indice is None:
                raise MemberNotFound(familia_id, integrante_id)

            integrantes.pop(indice)
            sincronizar_telefonos_integrantes(documento)
            actualizado = await self.repositorio.reemplazar(familia_id, documento)
            if not actualizado:
                raise FamilyNotFound(familia_id)
            logger.info(f"Integrante {integrante_id} eliminado")
            return Familia(**actualizado)

    async def listar_integrantes(self, condicion: CondicionIntegrante) -> List[Integrante]:
        """Integrantes de todas las familias que cumplen la condición, en orden de familia"""
        with familia_logging_context(operacion=f"listar_integrantes:{condicion.nombre}"):
            documentos = await self.repositorio.buscar_por_integrantes(condicion)
            integrantes = [
                integrante
                for familia in (Familia(**doc) for doc in documentos)
                for integrante in familia.integrantes
                if condicion.cumple(integrante)
            ]
            logger.debug(f"{len(integrantes)} integrantes encontrados")
            return integrantes

    async def _validar_telefonos(self, datos: FamiliaIn, excluir_id: Optional[str] = None) -> None:
        existente = await self.repositorio.buscar_por_telefono(datos.telefono, excluir_id=excluir_id)
        if existente:
            logger.warning(f"Teléfono de familia duplicado: {datos.telefono}")
            raise DuplicateFamilyPhone(datos.telefono)

        vistos: Set[str] = set()
        for integrante in datos.telefonos_integrantes():
            # El índice único no detecta duplicados dentro del mismo documento
            if integrante.telefono in vistos:
                logger.warning(f"Teléfono repetido dentro de la familia: {integrante.telefono}")
                raise DuplicateMemberPhone(integrante.nombre, integrante.telefono)
            vistos.add(integrante.telefono)

            existente = await self.repositorio.buscar_por_telefono_integrante(
                integrante.telefono, excluir_id=excluir_id
            )
            if existente:
                logger.warning(f"Teléfono de integrante duplicado: {integrante.telefono}")
                raise DuplicateMemberPhone(integrante.nombre, integrante.telefono)
