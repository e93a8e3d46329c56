# wabridge/models/conversation.py
"""Conversation model - owner of the denormalized group mirror"""
from sqlalchemy import Column, String, Integer, JSON, ForeignKey
from sqlalchemy.orm import relationship

from wabridge.core.jid import is_group_identifier
from wabridge.models.base import BaseModel


class Conversation(BaseModel):
    __tablename__ = "conversations"

    channel_id = Column(Integer, ForeignKey("whatsapp_channels.id"), index=True, nullable=False)
    contact_identifier = Column(String(255), index=True, nullable=False)  # phone number or group id
    contact_name = Column(String(255), nullable=True)

    # whatsapp_group_name, whatsapp_group_description, whatsapp_group_participant_count
    additional_attributes = Column(JSON, nullable=True, default=dict)

    channel = relationship("WhatsAppChannel", back_populates="conversations")
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan")
    whatsapp_group_members = relationship(
        "WhatsAppGroupMember",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="WhatsAppGroupMember.name",
    )

    @property
    def is_whatsapp_group(self) -> bool:
        return bool(self.contact_identifier) and is_group_identifier(self.contact_identifier)

    @property
    def whatsapp_group_id(self):
        return self.contact_identifier if self.is_whatsapp_group else None

    @property
    def whatsapp_group_name(self):
        return (self.additional_attributes or {}).get("whatsapp_group_name") or self.contact_name

    @property
    def whatsapp_group_description(self):
        return (self.additional_attributes or {}).get("whatsapp_group_description")

    @property
    def whatsapp_group_participants_count(self):
        count = (self.additional_attributes or {}).get("whatsapp_group_participant_count")
        if count is None:
            return len(self.whatsapp_group_members)
        return count

    def __repr__(self):
        return f"<Conversation {self.id} with {self.contact_identifier}>"
