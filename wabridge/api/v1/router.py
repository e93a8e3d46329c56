"""Main API router combining all v1 endpoints"""
from fastapi import APIRouter

from wabridge.api.v1 import groups

api_router = APIRouter()

api_router.include_router(
    groups.router,
    prefix="/conversations/{conversation_id}/whatsapp-group",
    tags=["WhatsApp Groups"]
)
