"""
Modelos de Familias e Integrantes para la API de Casa de Salud
"""

from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from bson import ObjectId


# Campo de primer nivel con los teléfonos de los integrantes (solo strings).
# El índice único de teléfonos de integrantes se define sobre este campo y no
# sobre integrantes.telefono: un índice multikey sobre el arreglo de integrantes
# generaría una clave null por cada integrante sin teléfono.
TELEFONOS_INTEGRANTES = "telefonosIntegrantes"


def _id_a_str(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


def sincronizar_telefonos_integrantes(documento: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recalcula TELEFONOS_INTEGRANTES a partir de documento["integrantes"]

    Sin teléfonos el campo se omite, así el documento queda fuera del índice parcial.
    """
    telefonos = [
        integrante["telefono"]
        for integrante in documento.get("integrantes", [])
        if isinstance(integrante.get("telefono"), str)
    ]
    if telefonos:
        documento[TELEFONOS_INTEGRANTES] = telefonos
    else:
        documento.pop(TELEFONOS_INTEGRANTES, None)
    return documento


class IntegranteBase(BaseModel):
    """Campos comunes de un integrante"""
    model_config = ConfigDict(populate_by_name=True)

    nombre: Optional[str] = Field(default=None, description="Nombre del integrante")
    apellido: Optional[str] = Field(default=None, description="Apellido del integrante")
    edad: Optional[int] = Field(default=None, ge=0, description="Edad del integrante")
    ocupacion: Optional[str] = Field(default=None, description="Ocupación del integrante")
    recibeBeca: bool = Field(default=False, description="Si el integrante recibe beca")
    diabetes: bool = Field(default=False, description="Si el integrante tiene diabetes")
    obesidad: bool = Field(default=False, description="Si el integrante tiene obesidad")
    alcoholismo: bool = Field(default=False, description="Si el integrante tiene alcoholismo")
    vacunado: bool = Field(default=False, description="Si el integrante está vacunado")
    telefono: Optional[str] = Field(default=None, description="Teléfono del integrante (único entre integrantes)")

    @field_validator("telefono")
    @classmethod
    def vacio_es_ausente(cls, value: Optional[str]) -> Optional[str]:
        """Un teléfono vacío equivale a no declarar teléfono"""
        if value is None:
            return None
        value = value.strip()
        return value or None


class IntegranteIn(IntegranteBase):
    """Integrante recibido en una solicitud; el id solo se respeta al reemplazar"""
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))

    @field_validator("id", mode="before")
    @classmethod
    def normalizar_id(cls, value: Any) -> Any:
        return _id_a_str(value)


class Integrante(IntegranteBase):
    """Integrante almacenado, con identificador asignado"""
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))

    @field_validator("id", mode="before")
    @classmethod
    def normalizar_id(cls, value: Any) -> Any:
        return _id_a_str(value)


class FamiliaBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nombre: Optional[str] = Field(default=None, description="Nombre del jefe de familia")
    apellidoMaterno: Optional[str] = Field(default=None, description="Apellido materno del jefe de familia")
    apellidoPaterno: Optional[str] = Field(default=None, description="Apellido paterno del jefe de familia")
    telefono: str = Field(..., min_length=1, description="Teléfono de contacto (único entre familias)")

    @field_validator("telefono")
    @classmethod
    def telefono_no_vacio(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("telefono no puede estar vacío")
        return value


class FamiliaIn(FamiliaBase):
    """Payload para crear o reemplazar una familia"""
    integrantes: List[IntegranteIn] = Field(default_factory=list)

    def telefonos_integrantes(self) -> List[IntegranteIn]:
        """Integrantes que declaran teléfono, en orden"""
        return [integrante for integrante in self.integrantes if integrante.telefono]

    def to_document(self, familia_id: Optional[ObjectId] = None) -> Dict[str, Any]:
        """
        Convierte el payload a documento MongoDB

        Cada integrante conserva su id si es un ObjectId válido; si no, recibe uno nuevo.
        Los integrantes sin teléfono se guardan sin el campo telefono.
        """
        integrantes = []
        for integrante in self.integrantes:
            datos = integrante.model_dump(exclude={"id"})
            if datos.get("telefono") is None:
                datos.pop("telefono", None)
            if integrante.id and ObjectId.is_valid(integrante.id):
                datos["_id"] = ObjectId(integrante.id)
            else:
                datos["_id"] = ObjectId()
            integrantes.append(datos)

        documento = self.model_dump(exclude={"integrantes"})
        documento["integrantes"] = integrantes
        if familia_id is not None:
            documento["_id"] = familia_id
        return sincronizar_telefonos_integrantes(documento)


class Familia(FamiliaBase):
    """Familia almacenada"""
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    integrantes: List[Integrante] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def normalizar_id(cls, value: Any) -> Any:
        return _id_a_str(value)
