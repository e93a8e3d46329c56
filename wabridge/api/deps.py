"""
API dependencies for tenant resolution and conversation lookup.
"""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from wabridge.core.config import DEFAULT_TENANT_ID
from wabridge.db.session import get_db
from wabridge.models.conversation import Conversation


def get_tenant_id(request: Request) -> str:
    """
    Tenant from the X-Tenant-Id header, falling back to the default tenant.
    Authentication happens upstream of this service.
    """
    return request.headers.get("x-tenant-id") or DEFAULT_TENANT_ID


def get_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
) -> Conversation:
    """Load the conversation addressed by the route or return 404"""
    conversation = db.query(Conversation).filter(
        Conversation.tenant_id == tenant_id,
        Conversation.id == conversation_id
    ).first()

    if not conversation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return conversation
