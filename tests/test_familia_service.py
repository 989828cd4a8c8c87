import asyncio

import pytest

from database.in_memory_repository import InMemoryFamiliaRepository
from models.familia_models import TELEFONOS_INTEGRANTES, FamiliaIn
from services import condiciones_integrante
from services.errores import (
    DuplicateFamilyPhone,
    DuplicateMemberPhone,
    FamilyNotFound,
    MemberNotFound,
    MissingParameter,
    UniquenessConstraintViolation,
)
from services.familia_service import FamiliaService


def run(coro):
    return asyncio.run(coro)


def nueva_familia(telefono, *integrantes, **campos):
    return FamiliaIn(telefono=telefono, integrantes=list(integrantes), **campos)


def test_create_assigns_ids_to_family_and_members(service, familia_payload):
    familia = run(service.crear_familia(FamiliaIn(**familia_payload)))

    assert familia.id
    assert [i.nombre for i in familia.integrantes] == ["Ana", "Luis"]
    assert all(i.id for i in familia.integrantes)
    assert familia.integrantes[1].telefono is None


def test_create_with_empty_members_is_valid(service):
    familia = run(service.crear_familia(nueva_familia("555-1111")))
    assert familia.integrantes == []


def test_duplicate_family_phone_is_rejected_without_write(service, repositorio):
    run(service.crear_familia(nueva_familia("555-1111")))

    with pytest.raises(DuplicateFamilyPhone) as excinfo:
        run(service.crear_familia(nueva_familia("555-1111", nombre="Otra")))

    assert excinfo.value.telefono == "555-1111"
    assert len(run(repositorio.listar())) == 1


def test_duplicate_member_phone_across_families_names_the_member(service, repositorio):
    run(service.crear_familia(nueva_familia("555-1111", {"nombre": "Ana", "telefono": "555-3333"})))

    with pytest.raises(DuplicateMemberPhone) as excinfo:
        run(service.crear_familia(nueva_familia("555-2222", {"nombre": "Rosa", "telefono": "555-3333"})))

    assert excinfo.value.nombre == "Rosa"
    assert "Rosa" in excinfo.value.message
    assert len(run(repositorio.listar())) == 1


def test_members_without_phone_never_conflict(service):
    run(service.crear_familia(nueva_familia("555-1111", {"nombre": "Ana"}, {"nombre": "Beto", "telefono": ""})))
    familia = run(service.crear_familia(nueva_familia("555-2222", {"nombre": "Rosa"})))

    assert familia.integrantes[0].telefono is None


def test_families_mixing_members_with_and_without_phone(service, repositorio):
    run(service.crear_familia(nueva_familia(
        "555-1111", {"nombre": "Ana", "telefono": "555-3333"}, {"nombre": "Beto"},
    )))
    run(service.crear_familia(nueva_familia(
        "555-2222", {"nombre": "Rosa"}, {"nombre": "Tomás", "telefono": "555-4444"},
    )))

    guardadas = run(repositorio.listar())
    assert [doc.get(TELEFONOS_INTEGRANTES) for doc in guardadas] == [["555-3333"], ["555-4444"]]
    assert "telefono" not in guardadas[0]["integrantes"][1]


def test_to_document_stores_only_declared_member_phones():
    documento = nueva_familia("555-1111", {"nombre": "Ana", "telefono": " "}, {"nombre": "Beto"}).to_document()

    assert TELEFONOS_INTEGRANTES not in documento
    assert all("telefono" not in integrante for integrante in documento["integrantes"])


def test_repeated_member_phone_in_same_payload_is_rejected(service, repositorio):
    with pytest.raises(DuplicateMemberPhone):
        run(service.crear_familia(nueva_familia(
            "555-1111",
            {"nombre": "Ana", "telefono": "555-3333"},
            {"nombre": "Rosa", "telefono": "555-3333"},
        )))
    assert run(repositorio.listar()) == []


def test_update_keeping_own_phones_succeeds(service):
    creada = run(service.crear_familia(nueva_familia("555-1111", {"nombre": "Ana", "telefono": "555-3333"})))

    actualizada = run(service.actualizar_familia(
        creada.id,
        nueva_familia(
            "555-1111",
            {"id": creada.integrantes[0].id, "nombre": "Ana María", "telefono": "555-3333"},
            nombre="Carlos",
        ),
    ))

    assert actualizada.id == creada.id
    assert actualizada.nombre == "Carlos"
    assert actualizada.integrantes[0].id == creada.integrantes[0].id
    assert actualizada.integrantes[0].nombre == "Ana María"


def test_update_to_phone_of_another_family_is_rejected(service):
    run(service.crear_familia(nueva_familia("555-1111")))
    segunda = run(service.crear_familia(nueva_familia("555-2222")))

    with pytest.raises(DuplicateFamilyPhone):
        run(service.actualizar_familia(segunda.id, nueva_familia("555-1111")))

    assert run(service.obtener_familia(segunda.id)).telefono == "555-2222"


def test_update_to_member_phone_of_another_family_is_rejected(service):
    run(service.crear_familia(nueva_familia("555-1111", {"nombre": "Ana", "telefono": "555-3333"})))
    segunda = run(service.crear_familia(nueva_familia("555-2222")))

    with pytest.raises(DuplicateMemberPhone):
        run(service.actualizar_familia(segunda.id, nueva_familia("555-2222", {"nombre": "Rosa", "telefono": "555-3333"})))


def test_update_replaces_member_sequence(service, familia_payload):
    creada = run(service.crear_familia(FamiliaIn(**familia_payload)))

    actualizada = run(service.actualizar_familia(creada.id, nueva_familia("555-1234", {"nombre": "Pedro"})))

    assert [i.nombre for i in actualizada.integrantes] == ["Pedro"]
    assert actualizada.nombre is None


def test_update_missing_family_raises_not_found(service):
    with pytest.raises(FamilyNotFound):
        run(service.actualizar_familia("64b7f0c2a1b2c3d4e5f60718", nueva_familia("555-9999")))


def test_delete_returns_deleted_family(service, repositorio, familia_payload):
    creada = run(service.crear_familia(FamiliaIn(**familia_payload)))

    eliminada = run(service.eliminar_familia(creada.id))

    assert eliminada.id == creada.id
    assert run(repositorio.listar()) == []


def test_delete_missing_family_leaves_storage_unchanged(service, repositorio):
    run(service.crear_familia(nueva_familia("555-1111")))

    with pytest.raises(FamilyNotFound):
        run(service.eliminar_familia("64b7f0c2a1b2c3d4e5f60718"))

    assert len(run(repositorio.listar())) == 1


def test_remove_member_preserves_order_of_the_rest(service):
    creada = run(service.crear_familia(nueva_familia(
        "555-1111", {"nombre": "Ana"}, {"nombre": "Beto"}, {"nombre": "Carla"}, {"nombre": "Dani"},
    )))
    removido = creada.integrantes[1]

    actualizada = run(service.eliminar_integrante(creada.id, removido.id))

    assert len(actualizada.integrantes) == len(creada.integrantes) - 1
    assert [i.nombre for i in actualizada.integrantes] == ["Ana", "Carla", "Dani"]
    assert removido.id not in [i.id for i in actualizada.integrantes]
    assert run(service.obtener_familia(creada.id)).integrantes == actualizada.integrantes


def test_removed_member_phone_can_be_reused(service, repositorio):
    creada = run(service.crear_familia(nueva_familia(
        "555-1111", {"nombre": "Ana", "telefono": "555-3333"}, {"nombre": "Beto", "telefono": "555-4444"},
    )))

    run(service.eliminar_integrante(creada.id, creada.integrantes[0].id))

    assert run(repositorio.obtener(creada.id))[TELEFONOS_INTEGRANTES] == ["555-4444"]
    otra = run(service.crear_familia(nueva_familia("555-2222", {"nombre": "Rosa", "telefono": "555-3333"})))
    assert otra.integrantes[0].telefono == "555-3333"


def test_removing_last_member_phone_drops_phone_list(service, repositorio):
    creada = run(service.crear_familia(nueva_familia(
        "555-1111", {"nombre": "Ana", "telefono": "555-3333"}, {"nombre": "Beto"},
    )))

    run(service.eliminar_integrante(creada.id, creada.integrantes[0].id))

    assert TELEFONOS_INTEGRANTES not in run(repositorio.obtener(creada.id))


def test_remove_unknown_member_raises_member_not_found(service):
    creada = run(service.crear_familia(nueva_familia("555-1111", {"nombre": "Ana"})))

    with pytest.raises(MemberNotFound):
        run(service.eliminar_integrante(creada.id, "64b7f0c2a1b2c3d4e5f60718"))


def test_remove_member_from_missing_family_raises_family_not_found(service):
    with pytest.raises(FamilyNotFound):
        run(service.eliminar_integrante("64b7f0c2a1b2c3d4e5f60718", "64b7f0c2a1b2c3d4e5f60719"))


def test_list_members_by_condition_flattens_families(service):
    run(service.crear_familia(nueva_familia(
        "555-1111",
        {"nombre": "Ana", "diabetes": True},
        {"nombre": "Beto"},
        {"nombre": "Carla", "alcoholismo": True, "ocupacion": "Docente"},
    )))
    run(service.crear_familia(nueva_familia(
        "555-2222",
        {"nombre": "Dani", "obesidad": True, "ocupacion": "Docente"},
    )))

    cronicos = run(service.listar_integrantes(condiciones_integrante.enfermedades_cronicas()))
    diabetes = run(service.listar_integrantes(condiciones_integrante.con_diabetes()))
    obesidad = run(service.listar_integrantes(condiciones_integrante.con_obesidad()))
    docentes = run(service.listar_integrantes(condiciones_integrante.por_ocupacion("Docente")))

    assert [i.nombre for i in cronicos] == ["Ana", "Carla", "Dani"]
    assert [i.nombre for i in diabetes] == ["Ana"]
    assert [i.nombre for i in obesidad] == ["Dani"]
    assert [i.nombre for i in docentes] == ["Carla", "Dani"]


def test_occupation_is_matched_exactly(service):
    run(service.crear_familia(nueva_familia(
        "555-1111", {"nombre": "Ana", "ocupacion": " Docente"}, {"nombre": "Beto", "ocupacion": "Docente"},
    )))

    exacta = run(service.listar_integrantes(condiciones_integrante.por_ocupacion(" Docente")))
    sin_espacio = run(service.listar_integrantes(condiciones_integrante.por_ocupacion("Docente")))

    assert [i.nombre for i in exacta] == ["Ana"]
    assert [i.nombre for i in sin_espacio] == ["Beto"]


@pytest.mark.parametrize("ocupacion", [None, "", "   "])
def test_occupation_condition_requires_value(ocupacion):
    with pytest.raises(MissingParameter):
        condiciones_integrante.por_ocupacion(ocupacion)


class SinValidacionPrevia(InMemoryFamiliaRepository):
    """Simula una carrera: la validación previa no ve la escritura concurrente"""

    async def buscar_por_telefono(self, telefono, excluir_id=None):
        return None

    async def buscar_por_telefono_integrante(self, telefono, excluir_id=None):
        return None


def test_storage_constraint_catches_race_past_the_precheck():
    service = FamiliaService(SinValidacionPrevia())
    run(service.crear_familia(nueva_familia("555-1111", {"nombre": "Ana", "telefono": "555-3333"})))

    with pytest.raises(UniquenessConstraintViolation):
        run(service.crear_familia(nueva_familia("555-1111")))
    with pytest.raises(UniquenessConstraintViolation):
        run(service.crear_familia(nueva_familia("555-2222", {"nombre": "Rosa", "telefono": "555-3333"})))
