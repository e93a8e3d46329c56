# wabridge/models/group_member.py
"""WhatsApp group member model - local mirror of the gateway roster"""
from sqlalchemy import Column, String, Boolean, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from wabridge.models.base import BaseModel


class WhatsAppGroupMember(BaseModel):
    __tablename__ = "whatsapp_group_members"
    __table_args__ = (
        UniqueConstraint('conversation_id', 'phone_number', name='index_group_members_on_conversation_and_phone'),
    )

    conversation_id = Column(Integer, ForeignKey("conversations.id"), index=True, nullable=False)
    phone_number = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime, nullable=True)

    conversation = relationship("Conversation", back_populates="whatsapp_group_members")

    @property
    def display_name(self) -> str:
        return self.name or self.phone_number

    def __repr__(self):
        return f"<WhatsAppGroupMember {self.phone_number} admin={self.is_admin}>"
