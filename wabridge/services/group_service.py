# wabridge/services/group_service.py
"""
WhatsApp group service - group operations for a conversation.

Each operation calls the channel's provider first and only then updates
the local mirror. Provider failures propagate unchanged; if the mirror
update fails after the gateway call succeeded, the next sync_members
repairs it.
"""
from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from wabridge.core.errors import NotAGroupError, ValidationError
from wabridge.models.conversation import Conversation
from wabridge.models.group_member import WhatsAppGroupMember
from wabridge.schemas.group import GroupInfoResponse, GroupMemberResponse
from wabridge.services.member_sync import (
    find_group_member,
    remove_group_member,
    sync_members_from_provider,
    upsert_group_member,
)
from wabridge.services.providers import BaseProviderService, get_group_provider

log = logging.getLogger("wabridge.group_service")


class WhatsAppGroupService:
    """Service for WhatsApp group operations on one conversation"""

    def __init__(self, db: Session, conversation: Conversation, provider: Optional[BaseProviderService] = None):
        """
        Args:
            db: Database session
            conversation: Group conversation
            provider: Provider service (resolved from the conversation's channel if omitted)
        """
        self.db = db
        self.conversation = conversation
        self._provider = provider

    @property
    def provider_service(self) -> BaseProviderService:
        if self._provider is None:
            self._provider = get_group_provider(self.conversation.channel, db=self.db)
        return self._provider

    @property
    def group_id(self) -> str:
        return self.conversation.whatsapp_group_id

    # ────────────────────────────────────────────
    # Read
    # ────────────────────────────────────────────

    def group_info(self) -> GroupInfoResponse:
        """Group info from the local mirror (no gateway call)"""
        self._ensure_group()
        members = sorted(
            self.conversation.whatsapp_group_members,
            key=lambda member: (member.name or "", member.phone_number),
        )
        return GroupInfoResponse(
            id=self.group_id,
            name=self.conversation.whatsapp_group_name,
            description=self.conversation.whatsapp_group_description,
            participant_count=self.conversation.whatsapp_group_participants_count,
            members=[GroupMemberResponse.model_validate(member) for member in members],
        )

    # ────────────────────────────────────────────
    # Group metadata
    # ────────────────────────────────────────────

    def update_name(self, new_name: str) -> None:
        self._ensure_group()
        self._require(new_name, "name")

        self.provider_service.update_group_name(self.group_id, new_name)
        self._update_group_metadata(name=new_name)
        log.info(f"✏️ Group {self.group_id} renamed to {new_name!r}")

    def update_description(self, new_description: str) -> None:
        self._ensure_group()
        if new_description is None:
            raise ValidationError("description is required")

        self.provider_service.update_group_description(self.group_id, new_description)
        self._update_group_metadata(description=new_description)
        log.info(f"✏️ Group {self.group_id} description updated")

    # ────────────────────────────────────────────
    # Members
    # ────────────────────────────────────────────

    def add_member(self, phone_number: str, name: Optional[str] = None) -> WhatsAppGroupMember:
        self._ensure_group()
        self._require(phone_number, "phone_number")

        self.provider_service.add_group_participant(self.group_id, phone_number)
        member = upsert_group_member(self.db, self.conversation, phone_number, name=name)
        self.db.commit()
        return member

    def remove_member(self, phone_number: str) -> None:
        self._ensure_group()
        self._require(phone_number, "phone_number")

        self.provider_service.remove_group_participant(self.group_id, phone_number)
        remove_group_member(self.db, self.conversation, phone_number)
        self.db.commit()

    def promote_admin(self, phone_number: str) -> None:
        self._ensure_group()
        self._require(phone_number, "phone_number")

        self.provider_service.promote_group_admin(self.group_id, phone_number)
        self._set_admin(phone_number, True)

    def demote_admin(self, phone_number: str) -> None:
        self._ensure_group()
        self._require(phone_number, "phone_number")

        self.provider_service.demote_group_admin(self.group_id, phone_number)
        self._set_admin(phone_number, False)

    def sync_members(self) -> None:
        """Refresh group metadata and members from the gateway"""
        self._ensure_group()

        group_info = self.provider_service.get_group_info(self.group_id)
        if group_info.participants is None:
            log.info(f"ℹ️ Gateway reported no participants for {self.group_id} - nothing to sync")
            return

        self._update_group_metadata(
            name=group_info.name,
            description=group_info.description,
            participant_count=len(group_info.participants),
        )
        sync_members_from_provider(self.db, self.conversation, group_info.participants)

    # ────────────────────────────────────────────
    # Helpers
    # ────────────────────────────────────────────

    def _ensure_group(self) -> None:
        if not self.conversation.is_whatsapp_group:
            raise NotAGroupError()

    @staticmethod
    def _require(value, field: str) -> None:
        if value is None or not str(value).strip():
            raise ValidationError(f"{field} is required")

    def _set_admin(self, phone_number: str, is_admin: bool) -> None:
        member = find_group_member(self.db, self.conversation, phone_number)
        if member:
            member.is_admin = is_admin
            self.db.commit()

    def _update_group_metadata(self, name=None, description=None, participant_count=None) -> None:
        current_attrs = dict(self.conversation.additional_attributes or {})
        if name is not None:
            current_attrs['whatsapp_group_name'] = name
        if description is not None:
            current_attrs['whatsapp_group_description'] = description
        if participant_count is not None:
            current_attrs['whatsapp_group_participant_count'] = participant_count
        self.conversation.additional_attributes = current_attrs
        flag_modified(self.conversation, "additional_attributes")
        self.db.commit()
