"""
Condiciones de búsqueda de integrantes (enfermedades crónicas y ocupación)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from models.familia_models import Integrante
from services.errores import MissingParameter


@dataclass(frozen=True)
class CondicionIntegrante:
    """
    Disyunción de igualdades sobre campos del integrante.

    Un integrante cumple la condición si coincide con todas las igualdades
    de al menos una de las alternativas.
    """
    nombre: str
    alternativas: Tuple[Dict[str, Any], ...]

    def cumple(self, integrante: Integrante) -> bool:
        return any(
            all(getattr(integrante, campo, None) == valor for campo, valor in alternativa.items())
            for alternativa in self.alternativas
        )

    def a_filtro_mongo(self) -> Dict[str, Any]:
        """Filtro de familias con al menos un integrante que cumpla alguna alternativa"""
        filtros = [
            {"integrantes": {"$elemMatch": dict(alternativa)}}
            for alternativa in self.alternativas
        ]
        if len(filtros) == 1:
            return filtros[0]
        return {"$or": filtros}


def enfermedades_cronicas() -> CondicionIntegrante:
    return CondicionIntegrante(
        nombre="enfermedades_cronicas",
        alternativas=({"diabetes": True}, {"obesidad": True}, {"alcoholismo": True}),
    )


def con_diabetes() -> CondicionIntegrante:
    return CondicionIntegrante(nombre="diabetes", alternativas=({"diabetes": True},))


def con_obesidad() -> CondicionIntegrante:
    return CondicionIntegrante(nombre="obesidad", alternativas=({"obesidad": True},))


def por_ocupacion(ocupacion: Optional[str]) -> CondicionIntegrante:
    """Condición por ocupación exacta; se compara el valor tal como llega"""
    if ocupacion is None or not ocupacion.strip():
        raise MissingParameter("occupation")
    return CondicionIntegrante(nombre="ocupacion", alternativas=({"ocupacion": ocupacion},))
