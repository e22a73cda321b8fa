"""Enum types for table definitions."""

import enum


class FieldType(str, enum.Enum):
    INT = "int"
    STRING = "string"
    TEXT = "text"
    DATE = "date"
    DATETIME = "datetime"
    FLOAT = "float"


class ValidatorKind(str, enum.Enum):
    NONE = ""
    CPF = "cpf"
    CNPJ = "cnpj"
    EMAIL = "email"
    CEP = "cep"
    TELEFONE = "telefone"
