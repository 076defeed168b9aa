from fastapi import APIRouter
from . import calculations, clients, comparisons

api_router = APIRouter()
api_router.include_router(calculations.router, prefix="/calculations", tags=["calculations"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(comparisons.router, prefix="/comparisons", tags=["comparisons"])
