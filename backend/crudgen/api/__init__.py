"""HTTP routes."""

from fastapi import APIRouter

from crudgen.api.crud import router as crud_router

api_router = APIRouter()
api_router.include_router(crud_router)
