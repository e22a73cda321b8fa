"""Structural errors raised when a table definition cannot be used."""


class SchemaError(Exception):
    """The table definition is missing, malformed, or inconsistent."""


class MissingPrimaryKeyError(SchemaError):
    """An operation needs a primary key but the table definition has none."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f"No primary key defined for table '{table_name}'.")
        self.table_name = table_name
