"""Build the SQLAlchemy table for a definition and create it if missing."""

import logging

from sqlalchemy import Column, Date, DateTime, Integer, MetaData, Numeric, String, Table, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from crudgen.models.enums import FieldType
from crudgen.schemas.definition import Schema, SchemaField

logger = logging.getLogger(__name__)

_COLUMN_TYPES = {
    FieldType.INT: Integer,
    FieldType.STRING: lambda: String(255),
    FieldType.TEXT: Text,
    FieldType.DATE: Date,
    FieldType.DATETIME: DateTime,
    FieldType.FLOAT: lambda: Numeric(10, 2, asdecimal=False),
}


def _column(field: SchemaField) -> Column:
    col_type = _COLUMN_TYPES[field.type]()
    if field.primary_key:
        return Column(
            field.name,
            col_type,
            primary_key=True,
            autoincrement=field.type == FieldType.INT,
        )
    return Column(field.name, col_type, nullable=not field.required)


def build_table(schema: Schema, metadata: MetaData | None = None) -> Table:
    """Map every field to a column, in definition order."""
    if metadata is None:
        metadata = MetaData()
    return Table(schema.table_name, metadata, *(_column(f) for f in schema.fields))


async def auto_migrate(engine: AsyncEngine, table: Table) -> None:
    """Create the table unless it already exists. Existing tables are not altered."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(table.metadata.create_all, tables=[table], checkfirst=True)
    except SQLAlchemyError:
        logger.error("Failed to create table '%s'", table.name, exc_info=True)
        raise
    logger.info("Table '%s' ensured.", table.name)
