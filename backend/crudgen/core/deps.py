"""FastAPI dependencies for the table definition, settings and repository."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from crudgen.config import Settings
from crudgen.database import get_db
from crudgen.schemas.definition import Schema
from crudgen.services.records import RecordService


def get_schema(request: Request) -> Schema:
    return request.app.state.schema


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_record_service(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    schema: Annotated[Schema, Depends(get_schema)],
) -> RecordService:
    return RecordService(db, schema, request.app.state.table)
