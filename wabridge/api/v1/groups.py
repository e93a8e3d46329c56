"""
WhatsApp group endpoints for a conversation.

Validation failures (not a group, missing fields, duplicate member) map to
422; provider and configuration failures map to 500.
"""
import logging
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wabridge.api.deps import get_conversation
from wabridge.core.errors import ValidationError, WabridgeError
from wabridge.db.session import get_db
from wabridge.models.conversation import Conversation
from wabridge.schemas.group import (
    GroupDescriptionUpdate,
    GroupInfoResponse,
    GroupMemberAdd,
    GroupMemberResponse,
    GroupNameUpdate,
)
from wabridge.services.group_service import WhatsAppGroupService

router = APIRouter()
log = logging.getLogger("wabridge.api.groups")


def get_group_service(
    conversation: Conversation = Depends(get_conversation),
    db: Session = Depends(get_db)
) -> WhatsAppGroupService:
    return WhatsAppGroupService(db, conversation)


@contextmanager
def group_errors():
    """Translate service errors into HTTP responses"""
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except WabridgeError as e:
        log.error(f"❌ Group operation failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("", response_model=GroupInfoResponse)
def show_group(service: WhatsAppGroupService = Depends(get_group_service)):
    """Group info and members from the local mirror"""
    with group_errors():
        return service.group_info()


@router.patch("/name")
def update_group_name(data: GroupNameUpdate, service: WhatsAppGroupService = Depends(get_group_service)):
    with group_errors():
        service.update_name(data.name)
    return {"ok": True}


@router.patch("/description")
def update_group_description(data: GroupDescriptionUpdate, service: WhatsAppGroupService = Depends(get_group_service)):
    with group_errors():
        service.update_description(data.description)
    return {"ok": True}


@router.post("/members", response_model=GroupMemberResponse)
def add_group_member(data: GroupMemberAdd, service: WhatsAppGroupService = Depends(get_group_service)):
    with group_errors():
        return service.add_member(data.phone_number, name=data.name)


@router.delete("/members/{phone_number}")
def remove_group_member(phone_number: str, service: WhatsAppGroupService = Depends(get_group_service)):
    with group_errors():
        service.remove_member(phone_number)
    return {"ok": True}


@router.post("/members/{phone_number}/promote")
def promote_group_admin(phone_number: str, service: WhatsAppGroupService = Depends(get_group_service)):
    with group_errors():
        service.promote_admin(phone_number)
    return {"ok": True}


@router.post("/members/{phone_number}/demote")
def demote_group_admin(phone_number: str, service: WhatsAppGroupService = Depends(get_group_service)):
    with group_errors():
        service.demote_admin(phone_number)
    return {"ok": True}


@router.post("/sync")
def sync_group_members(service: WhatsAppGroupService = Depends(get_group_service)):
    """Pull the authoritative roster from the gateway"""
    with group_errors():
        service.sync_members()
    return {"ok": True}
