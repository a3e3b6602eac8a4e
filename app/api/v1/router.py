from fastapi import APIRouter

from app.api.v1 import analysis, characters


api_router = APIRouter(prefix="/v1")

api_router.include_router(analysis.router)
api_router.include_router(characters.router)
