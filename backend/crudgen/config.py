from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "CRUD Generator"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database (DATABASE_URL wins over the individual pieces)
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = ""
    DB_PSW: str = ""
    DB_NAME: str = ""
    DB_POOL_SIZE: int = 25

    # Table definition
    JSON_SCHEMA: str = ""

    # Listing
    PAGE_SIZE: int = 10

    # Run built-in format validators on filled-in optional fields too
    VALIDATE_OPTIONAL_FORMATS: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    @model_validator(mode="after")
    def check_required(self) -> "Settings":
        if not self.DATABASE_URL:
            if not self.DB_NAME:
                raise ValueError(
                    "DB_NAME is required (use --db-name or the DB_NAME environment variable)"
                )
            if not self.DB_USER:
                raise ValueError(
                    "DB_USER is required (use --db-user or the DB_USER environment variable)"
                )
        if not self.JSON_SCHEMA:
            raise ValueError(
                "JSON_SCHEMA is required (use --json-schema or the JSON_SCHEMA environment variable)"
            )
        return self

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{quote_plus(self.DB_USER)}:{quote_plus(self.DB_PSW)}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )


def mask_password(password: str) -> str:
    """Obscure a password for log output."""
    if not password:
        return "(vazia)"
    if len(password) <= 3:
        return "***"
    return password[:2] + "***" + password[-1:]
