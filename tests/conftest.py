import os

# Sin archivo de log durante los tests
os.environ["LOG_DIR"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database.in_memory_repository import InMemoryFamiliaRepository  # noqa: E402
from main import create_app  # noqa: E402
from services.familia_service import FamiliaService  # noqa: E402


@pytest.fixture
def repositorio():
    return InMemoryFamiliaRepository()


@pytest.fixture
def service(repositorio):
    return FamiliaService(repositorio)


@pytest.fixture
def client(repositorio):
    with TestClient(create_app(repositorio=repositorio)) as test_client:
        yield test_client


@pytest.fixture
def familia_payload():
    return {
        "nombre": "Carlos",
        "apellidoMaterno": "Martínez",
        "apellidoPaterno": "Gómez",
        "telefono": "555-1234",
        "integrantes": [
            {
                "nombre": "Ana",
                "apellido": "Martínez Gómez",
                "edad": 35,
                "ocupacion": "Ingeniera",
                "recibeBeca": False,
                "diabetes": True,
                "obesidad": False,
                "alcoholismo": False,
                "vacunado": True,
                "telefono": "555-0001",
            },
            {
                "nombre": "Luis",
                "apellido": "Martínez Gómez",
                "edad": 12,
                "ocupacion": "Estudiante",
                "obesidad": True,
            },
        ],
    }
