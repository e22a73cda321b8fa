"""Command-line entry point.

Usage:
  python -m crudgen --db-user root --db-psw secret --db-name mydb \
      --port 8080 --json-schema schema.json

Each flag falls back to the environment variable of the same name
(DB_HOST, DB_PORT, DB_USER, DB_PSW, DB_NAME, DATABASE_URL, HOST, PORT,
JSON_SCHEMA, PAGE_SIZE), then to the built-in default.
"""

import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError

from crudgen.config import Settings, mask_password
from crudgen.main import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("crudgen")

# argparse dest -> Settings field
_FLAG_FIELDS = {
    "db_host": "DB_HOST",
    "db_port": "DB_PORT",
    "db_user": "DB_USER",
    "db_psw": "DB_PSW",
    "db_name": "DB_NAME",
    "database_url": "DATABASE_URL",
    "host": "HOST",
    "port": "PORT",
    "json_schema": "JSON_SCHEMA",
    "page_size": "PAGE_SIZE",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crudgen",
        description="Serve a CRUD web application for a table described in JSON.",
    )
    parser.add_argument("--db-host", help="Database host (default: localhost)")
    parser.add_argument("--db-port", type=int, help="Database port (default: 3306)")
    parser.add_argument("--db-user", help="Database user (required)")
    parser.add_argument("--db-psw", help="Database password")
    parser.add_argument("--db-name", help="Database name (required)")
    parser.add_argument("--database-url", help="Full SQLAlchemy URL, overrides the --db-* flags")
    parser.add_argument("--host", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Application port (default: 8080)")
    parser.add_argument("--json-schema", help="Path to the JSON table definition (required)")
    parser.add_argument("--page-size", type=int, help="Records per page (default: 10)")
    parser.add_argument("--debug", action="store_true", default=None, help="Verbose errors and SQL echo")
    return parser


def load_settings(argv: list[str] | None = None) -> Settings:
    """CLI flags override environment variables, which override defaults."""
    args = build_parser().parse_args(argv)
    overrides = {
        field: getattr(args, dest)
        for dest, field in _FLAG_FIELDS.items()
        if getattr(args, dest) is not None
    }
    if args.debug:
        overrides["DEBUG"] = True
    return Settings(**overrides)


def log_settings(settings: Settings) -> None:
    logger.info("=== Configuration ===")
    if settings.DATABASE_URL:
        logger.info("Database URL: %s", settings.DATABASE_URL.split("@")[-1])
    else:
        logger.info("DB Host:     %s", settings.DB_HOST)
        logger.info("DB Port:     %s", settings.DB_PORT)
        logger.info("DB User:     %s", settings.DB_USER)
        logger.info("DB Password: %s", mask_password(settings.DB_PSW))
        logger.info("DB Name:     %s", settings.DB_NAME)
    logger.info("App Port:    %s", settings.PORT)
    logger.info("JSON Schema: %s", settings.JSON_SCHEMA)
    logger.info("=====================")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    try:
        settings = load_settings(argv)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        print(f"Configuration error: {messages}\n", file=sys.stderr)
        parser.print_help(sys.stderr)
        sys.exit(1)

    log_settings(settings)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_level="info")


if __name__ == "__main__":
    main()
