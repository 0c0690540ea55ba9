# manuorder/api/main.py

from fastapi import APIRouter

from ..orders.controller import router as orders_router
from ..quotations.controller import router as quotations_router
from ..files.controller import router as files_router
from ..reports.controller import router as reports_router

# Create main API router
api_router = APIRouter()

api_router.include_router(orders_router)
api_router.include_router(quotations_router)
api_router.include_router(files_router)
api_router.include_router(reports_router)
