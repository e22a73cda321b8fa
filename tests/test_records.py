from datetime import date

import pytest
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import create_async_engine

from crudgen.core.exceptions import MissingPrimaryKeyError
from crudgen.database import create_session_factory
from crudgen.schemas.definition import Schema
from crudgen.services.migration import auto_migrate, build_table
from crudgen.services.records import RecordService

from conftest import VALID_CPF

pytestmark = pytest.mark.anyio


@pytest.fixture
async def make_service(tmp_path, anyio_backend):
    engines = []
    sessions = []

    async def _make(schema):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'records.db'}")
        engines.append(engine)
        table = build_table(schema, MetaData())
        await auto_migrate(engine, table)
        session = create_session_factory(engine)()
        sessions.append(session)
        return RecordService(session, schema, table)

    yield _make
    for session in sessions:
        await session.close()
    for engine in engines:
        await engine.dispose()


async def _seed(svc):
    ids = []
    for nome, cpf in [("Ana", VALID_CPF), ("Bruno", None), ("Carla", None)]:
        ids.append(await svc.create({"nome": nome, "cpf": cpf or "00000000000"}))
    return ids


async def test_build_table_columns(schema):
    table = build_table(schema)
    assert [c.name for c in table.columns] == [f.name for f in schema.fields]
    assert table.c.id.primary_key
    assert not table.c.nome.nullable
    assert table.c.email.nullable


async def test_create_and_find(make_service, schema):
    svc = await make_service(schema)
    new_id = await svc.create({
        "id": None,
        "nome": "Ana",
        "cpf": VALID_CPF,
        "email": None,
        "nascimento": date(1990, 5, 17),
        "saldo": 10.5,
    })
    assert new_id == 1

    record = await svc.find_by_id(new_id)
    assert record["id"] == "1"
    assert record["nome"] == "Ana"
    assert record["cpf"] == VALID_CPF
    assert record["email"] is None
    assert record["nascimento"] == "1990-05-17"
    assert record["saldo"] == "10.5"


async def test_find_missing(make_service, schema):
    svc = await make_service(schema)
    assert await svc.find_by_id(99) is None


async def test_update(make_service, schema):
    svc = await make_service(schema)
    new_id = await svc.create({"nome": "Ana", "cpf": VALID_CPF})
    assert await svc.update(new_id, {"id": new_id, "nome": "Ana Maria", "email": "a@b.com"})
    record = await svc.find_by_id(new_id)
    assert record["nome"] == "Ana Maria"
    assert record["email"] == "a@b.com"
    assert await svc.update(999, {"nome": "X"}) is False


async def test_delete(make_service, schema):
    svc = await make_service(schema)
    new_id = await svc.create({"nome": "Ana", "cpf": VALID_CPF})
    assert await svc.delete(new_id) is True
    assert await svc.find_by_id(new_id) is None
    assert await svc.delete(new_id) is False


async def test_find_all_paginates(make_service, schema):
    svc = await make_service(schema)
    await _seed(svc)
    page1, total = await svc.find_all(page=1, page_size=2)
    page2, _ = await svc.find_all(page=2, page_size=2)
    assert total == 3
    assert [r["nome"] for r in page1] == ["Ana", "Bruno"]
    assert [r["nome"] for r in page2] == ["Carla"]


async def test_find_all_search(make_service, schema):
    svc = await make_service(schema)
    await _seed(svc)
    records, total = await svc.find_all(search="car")
    assert total == 1
    assert records[0]["nome"] == "Carla"

    # Matches any text column, OR-combined.
    _, total = await svc.find_all(search=VALID_CPF[:5])
    assert total == 1


async def test_search_escapes_wildcards(make_service, schema):
    svc = await make_service(schema)
    await _seed(svc)
    await svc.create({"nome": "100% Ana", "cpf": VALID_CPF})
    records, total = await svc.find_all(search="%")
    assert total == 1
    assert records[0]["nome"] == "100% Ana"


async def test_datetime_strings_are_parsed(make_service):
    schema = Schema.model_validate({
        "table_name": "eventos",
        "fields": [
            {"name": "id", "type": "int", "primary_key": True},
            {"name": "inicio", "type": "datetime", "required": True},
        ],
    })
    svc = await make_service(schema)
    new_id = await svc.create({"inicio": "2024-01-31T10:30"})
    assert (await svc.find_by_id(new_id))["inicio"] == "2024-01-31 10:30:00"
    with pytest.raises(ValueError):
        await svc.create({"inicio": "amanhã"})


async def test_string_primary_key_is_written(make_service):
    schema = Schema.model_validate({
        "table_name": "estados",
        "fields": [
            {"name": "sigla", "type": "string", "primary_key": True, "required": True},
            {"name": "nome", "type": "string"},
        ],
    })
    svc = await make_service(schema)
    assert await svc.create({"sigla": "SP", "nome": "São Paulo"}) == "SP"
    assert (await svc.find_by_id("SP"))["nome"] == "São Paulo"


async def test_operations_need_primary_key(make_service):
    schema = Schema.model_validate({
        "table_name": "notas",
        "fields": [{"name": "texto", "type": "text"}],
    })
    svc = await make_service(schema)
    await svc.create({"texto": "olá"})
    _, total = await svc.find_all()
    assert total == 1
    with pytest.raises(MissingPrimaryKeyError):
        await svc.find_by_id(1)
    with pytest.raises(MissingPrimaryKeyError):
        await svc.update(1, {"texto": "x"})
    with pytest.raises(MissingPrimaryKeyError):
        await svc.delete(1)
