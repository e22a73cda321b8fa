import json

import pytest
from fastapi.testclient import TestClient

from crudgen.config import Settings
from crudgen.main import create_app
from crudgen.schemas.definition import Schema

CLIENTES = {
    "table_name": "clientes",
    "fields": [
        {"name": "id", "type": "int", "primary_key": True},
        {"name": "nome", "type": "string", "required": True},
        {
            "name": "cpf",
            "type": "string",
            "required": True,
            "validation": {"type": "cpf"},
            "mask": "999.999.999-99",
        },
        {"name": "email", "type": "string", "validation": {"type": "email"}},
        {"name": "telefone", "type": "string", "mask": "(99) 99999-9999"},
        {"name": "nascimento", "type": "date"},
        {"name": "saldo", "type": "float"},
        {"name": "observacoes", "type": "text"},
    ],
}

# Valid documents used across the suite.
VALID_CPF = "52998224725"
VALID_CNPJ = "11222333000181"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def schema_dict():
    return json.loads(json.dumps(CLIENTES))


@pytest.fixture
def schema(schema_dict):
    return Schema.model_validate(schema_dict)


@pytest.fixture
def write_schema(tmp_path):
    """Write a definition to disk and return its path."""
    def _write(definition, name="schema.json"):
        path = tmp_path / name
        path.write_text(json.dumps(definition), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def settings(tmp_path, write_schema, schema_dict):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'crud.db'}",
        JSON_SCHEMA=str(write_schema(schema_dict)),
        PAGE_SIZE=2,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
