"""Record repository: parameterized CRUD against the defined table."""

import logging
from collections.abc import Mapping
from datetime import datetime

from sqlalchemy import Table, delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crudgen.models.enums import FieldType
from crudgen.schemas.definition import Schema, SchemaField

logger = logging.getLogger(__name__)

# Records as read back from storage: column name -> text or NULL.
Record = dict[str, str | None]


def _escape_like(value: str) -> str:
    """Escape LIKE metacharacters so the search term matches literally."""
    return (
        value
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def _bind_value(field: SchemaField, value):
    if field.type == FieldType.DATETIME and isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def _to_record(row: Mapping) -> Record:
    return {key: None if value is None else str(value) for key, value in row.items()}


class RecordService:
    def __init__(self, db: AsyncSession, schema: Schema, table: Table):
        self.db = db
        self.schema = schema
        self.table = table

    def _key_column(self):
        pk = self.schema.require_primary_key()
        return self.table.c[pk.name]

    def _values(self, data: Mapping, include_key: bool) -> dict:
        values = {}
        for field in self.schema.fields:
            if field.name not in data:
                continue
            if field.primary_key and not include_key:
                continue
            values[field.name] = _bind_value(field, data[field.name])
        return values

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    # --- Writes ---

    async def create(self, data: Mapping):
        """Insert a record and return its primary key value.

        Integer keys are left to the database to generate; any other key is
        written as submitted.
        """
        pk = self.schema.primary_key
        include_key = (
            pk is not None
            and pk.type != FieldType.INT
            and data.get(pk.name) is not None
        )
        values = self._values(data, include_key=include_key)
        stmt = insert(self.table)
        if values:
            stmt = stmt.values(values)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self._commit()

        inserted = result.inserted_primary_key
        new_id = inserted[0] if inserted else None
        logger.info("Created %s record %s", self.table.name, new_id)
        return new_id

    async def update(self, key, data: Mapping) -> bool:
        """Overwrite the non-key columns present in ``data``.

        Returns False if no record has the given key.
        """
        key_col = self._key_column()
        values = self._values(data, include_key=False)
        if not values:
            return await self.find_by_id(key) is not None

        try:
            result = await self.db.execute(
                update(self.table).where(key_col == key).values(values)
            )
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self._commit()

        found = result.rowcount > 0
        if found:
            logger.info("Updated %s record %s", self.table.name, key)
        return found

    async def delete(self, key) -> bool:
        key_col = self._key_column()
        try:
            result = await self.db.execute(delete(self.table).where(key_col == key))
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self._commit()

        found = result.rowcount > 0
        if found:
            logger.info("Deleted %s record %s", self.table.name, key)
        return found

    # --- Reads ---

    async def find_by_id(self, key) -> Record | None:
        key_col = self._key_column()
        result = await self.db.execute(select(self.table).where(key_col == key))
        row = result.mappings().first()
        return None if row is None else _to_record(row)

    async def find_all(
        self,
        page: int = 1,
        page_size: int = 10,
        search: str | None = None,
    ) -> tuple[list[Record], int]:
        """Return one page of records and the total number of matches.

        ``search`` is a case-insensitive substring match against any
        string or text column.
        """
        query = select(self.table)

        if search:
            pattern = f"%{_escape_like(search)}%"
            conditions = [
                self.table.c[f.name].ilike(pattern, escape="\\")
                for f in self.schema.searchable_fields
            ]
            if conditions:
                query = query.where(or_(*conditions))

        count_q = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_q)).scalar_one()

        pk = self.schema.primary_key
        if pk is not None:
            query = query.order_by(self.table.c[pk.name])
        query = query.offset((page - 1) * page_size).limit(page_size)

        result = await self.db.execute(query)
        return [_to_record(row) for row in result.mappings().all()], total
