# crm_segments/api/v1/api.py

from fastapi import APIRouter
from crm_segments.api.v1.endpoints import campaigns, customers, segments

api_router = APIRouter()

api_router.include_router(segments.router)
api_router.include_router(campaigns.router)
api_router.include_router(customers.router)
