"""CRUD pages for the defined table, plus the AJAX lookup used by the edit form."""

import logging
import time
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError

from crudgen.config import Settings
from crudgen.core.deps import get_record_service, get_schema, get_settings
from crudgen.core.masks import format_record, format_records
from crudgen.schemas.definition import Schema, SchemaField
from crudgen.schemas.pagination import Pagination
from crudgen.services.records import RecordService
from crudgen.services.validation import FORM_ERROR_KEY, parse_key, validate

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def datetime_local(value: str) -> str:
    """Shape a stored datetime (``YYYY-MM-DD HH:MM:SS``) for a datetime-local input."""
    return value.replace(" ", "T", 1)[:16]


templates.env.filters["datetime_local"] = datetime_local

router = APIRouter(tags=["crud"])

CREATE_FAILED = "Erro interno ao salvar. Verifique se os dados estão corretos."
UPDATE_FAILED = "Erro interno ao atualizar."
NOT_FOUND = "Registro não encontrado."

SchemaDep = Annotated[Schema, Depends(get_schema)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
ServiceDep = Annotated[RecordService, Depends(get_record_service)]


def _parse_page(raw: str | None) -> int:
    try:
        page = int(raw or "")
    except ValueError:
        return 1
    return page if page > 0 else 1


async def _read_form(request: Request) -> dict[str, str]:
    """Submitted values, keeping only the first value of repeated keys."""
    form = await request.form()
    values: dict[str, str] = {}
    for key, value in form.multi_items():
        if isinstance(value, str):
            values.setdefault(key, value)
    return values


def _key_from_query(request: Request, pk: SchemaField):
    raw = request.query_params.get("id", "")
    if not raw:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "ID ausente")
    try:
        return parse_key(pk, raw)
    except ValueError:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "ID inválido")


async def _render_list(
    request: Request,
    svc: RecordService,
    schema: Schema,
    settings: Settings,
    *,
    errors: dict[str, str] | None = None,
    form_data: dict[str, str] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    page = _parse_page(request.query_params.get("page"))
    search = request.query_params.get("search", "")
    records, total = await svc.find_all(page, settings.PAGE_SIZE, search)
    return templates.TemplateResponse(
        request,
        "crud.html",
        {
            "schema": schema,
            "primary_key": schema.primary_key,
            "records": format_records(schema, records),
            "errors": errors or {},
            "form_data": form_data or {},
            "search": search,
            "pagination": Pagination.build(page, settings.PAGE_SIZE, total),
            "colspan": len(schema.fields) + 1,
            "form_error_key": FORM_ERROR_KEY,
            "check_optional_formats": settings.VALIDATE_OPTIONAL_FORMATS,
            "current_time": int(time.time()),
        },
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def list_records(
    request: Request,
    svc: ServiceDep,
    schema: SchemaDep,
    settings: SettingsDep,
):
    """List page with search, pagination and the create/edit form."""
    return await _render_list(request, svc, schema, settings)


@router.post("/create")
async def create_record(
    request: Request,
    svc: ServiceDep,
    schema: SchemaDep,
    settings: SettingsDep,
):
    form = await _read_form(request)
    data, errors = validate(form, schema, settings.VALIDATE_OPTIONAL_FORMATS)
    if errors:
        return await _render_list(
            request, svc, schema, settings,
            errors=errors, form_data=form, status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        await svc.create(data)
    except (SQLAlchemyError, ValueError):
        logger.error("Failed to create %s record", schema.table_name, exc_info=True)
        return await _render_list(
            request, svc, schema, settings,
            errors={FORM_ERROR_KEY: CREATE_FAILED}, form_data=form,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return RedirectResponse(request.url_for("list_records"), status_code=status.HTTP_302_FOUND)


@router.post("/update")
async def update_record(
    request: Request,
    svc: ServiceDep,
    schema: SchemaDep,
    settings: SettingsDep,
):
    pk = schema.require_primary_key()
    form = await _read_form(request)
    raw_id = form.get(pk.name) or form.get("id") or request.query_params.get("id", "")
    if not raw_id:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "ID ausente")

    data, errors = validate(form, schema, settings.VALIDATE_OPTIONAL_FORMATS)
    if errors:
        return await _render_list(
            request, svc, schema, settings,
            errors=errors, form_data=form, status_code=status.HTTP_400_BAD_REQUEST,
        )

    key = data.get(pk.name)
    if key is None:
        try:
            key = parse_key(pk, raw_id)
        except ValueError:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "ID inválido")

    try:
        found = await svc.update(key, data)
    except (SQLAlchemyError, ValueError):
        logger.error("Failed to update %s record %s", schema.table_name, key, exc_info=True)
        return await _render_list(
            request, svc, schema, settings,
            errors={FORM_ERROR_KEY: UPDATE_FAILED}, form_data=form,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if not found:
        return await _render_list(
            request, svc, schema, settings,
            errors={FORM_ERROR_KEY: NOT_FOUND}, form_data=form,
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return RedirectResponse(request.url_for("list_records"), status_code=status.HTTP_302_FOUND)


@router.post("/delete")
async def delete_record(request: Request, svc: ServiceDep, schema: SchemaDep):
    pk = schema.require_primary_key()
    key = _key_from_query(request, pk)

    try:
        found = await svc.delete(key)
    except SQLAlchemyError:
        logger.error("Failed to delete %s record %s", schema.table_name, key, exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Erro ao deletar registro")

    if not found:
        raise HTTPException(status.HTTP_404_NOT_FOUND, NOT_FOUND)

    return RedirectResponse(request.url_for("list_records"), status_code=status.HTTP_302_FOUND)


@router.get("/get")
async def get_record(request: Request, svc: ServiceDep, schema: SchemaDep):
    """Display-formatted record as JSON, used to fill the edit form."""
    pk = schema.require_primary_key()
    key = _key_from_query(request, pk)

    record = await svc.find_by_id(key)
    if record is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    return JSONResponse(format_record(schema, record))
