"""API v1 router — aggregates all sub-routers."""

from fastapi import APIRouter

from crm_engine.api.v1 import customers, segments

api_router = APIRouter()

api_router.include_router(customers.router, prefix="/customers", tags=["Customers"])
api_router.include_router(segments.router, prefix="/segments", tags=["Segments"])
