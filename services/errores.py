"""
Errores tipados de la API de Familias

Cada error lleva una etiqueta (ErrorKind) que el middleware de clasificación
traduce a un código HTTP sin inspeccionar atributos sueltos.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Etiquetas de error reconocidas por el middleware"""
    VALIDATION = "VALIDATION"
    CONVERSION = "CONVERSION"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_PHONE = "DUPLICATE_PHONE"
    UNIQUENESS_VIOLATION = "UNIQUENESS_VIOLATION"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    UNCLASSIFIED = "UNCLASSIFIED"


class FamiliaError(Exception):
    """Error base con etiqueta y contexto"""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationFailure(FamiliaError):
    """Datos con forma inválida o campos requeridos ausentes"""
    kind = ErrorKind.VALIDATION


class ConversionFailure(FamiliaError):
    """Identificador con formato inválido"""
    kind = ErrorKind.CONVERSION

    def __init__(self, value: Any, field: str = "_id"):
        super().__init__(
            f"Cast to ObjectId failed for value \"{value}\" at path \"{field}\"",
            {"value": str(value), "field": field},
        )


class FamilyNotFound(FamiliaError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, familia_id: str):
        super().__init__("Family not found", {"familia_id": str(familia_id)})


class MemberNotFound(FamiliaError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, familia_id: str, integrante_id: str):
        super().__init__(
            "Member not found",
            {"familia_id": str(familia_id), "integrante_id": str(integrante_id)},
        )


class DuplicateFamilyPhone(FamiliaError):
    """El teléfono de la familia ya pertenece a otra familia"""
    kind = ErrorKind.DUPLICATE_PHONE

    def __init__(self, telefono: str):
        super().__init__(
            "Family phone number already in use",
            {"telefono": telefono},
        )
        self.telefono = telefono


class DuplicateMemberPhone(FamiliaError):
    """El teléfono de un integrante ya pertenece a otro integrante"""
    kind = ErrorKind.DUPLICATE_PHONE

    def __init__(self, nombre: Optional[str], telefono: str):
        super().__init__(
            f"Phone number of member {nombre} already in use",
            {"nombre": nombre, "telefono": telefono},
        )
        self.nombre = nombre
        self.telefono = telefono


class UniquenessConstraintViolation(FamiliaError):
    """Rechazo del índice único de la base de datos (carrera entre escrituras)"""
    kind = ErrorKind.UNIQUENESS_VIOLATION


class MissingParameter(FamiliaError):
    kind = ErrorKind.MISSING_PARAMETER

    def __init__(self, parameter: str):
        super().__init__(
            f"The {parameter} parameter is required",
            {"parameter": parameter},
        )
        self.parameter = parameter
