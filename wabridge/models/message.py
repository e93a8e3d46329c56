# wabridge/models/message.py
"""
Message models for conversation messages and their attachments.
"""
from sqlalchemy import Column, String, Text, JSON, Integer, Boolean, DateTime, LargeBinary, ForeignKey
from sqlalchemy.orm import relationship

from wabridge.models.base import BaseModel


class Message(BaseModel):
    """Store conversation messages (incoming and outgoing)"""
    __tablename__ = "messages"

    conversation_id = Column(Integer, ForeignKey("conversations.id"), index=True, nullable=False)
    source_id = Column(String(255), index=True, nullable=True)  # Gateway message id
    message_type = Column(String(20), nullable=False, default="outgoing")  # 'incoming' or 'outgoing'
    content = Column(Text, nullable=True)
    content_attributes = Column(JSON, nullable=True, default=dict)  # is_reaction, ...
    in_reply_to_id = Column(Integer, ForeignKey("messages.id"), nullable=True)
    is_unsupported = Column(Boolean, default=False, nullable=False)
    external_created_at = Column(DateTime, nullable=True)

    conversation = relationship("Conversation", back_populates="messages")
    in_reply_to = relationship("Message", remote_side="Message.id")
    attachments = relationship("Attachment", back_populates="message", cascade="all, delete-orphan")

    @property
    def is_reaction(self) -> bool:
        return bool((self.content_attributes or {}).get("is_reaction"))

    @property
    def is_outgoing(self) -> bool:
        return self.message_type == "outgoing"

    def __repr__(self):
        return f"<Message {self.id} ({self.message_type}) source={self.source_id}>"


class Attachment(BaseModel):
    """Media attached to a message"""
    __tablename__ = "attachments"

    message_id = Column(Integer, ForeignKey("messages.id"), index=True, nullable=False)
    file_type = Column(String(20), nullable=False)  # 'image', 'audio', 'file', 'sticker', 'video'
    file_name = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    data = Column(LargeBinary, nullable=True)
    meta = Column(JSON, nullable=True, default=dict)  # is_recorded_audio, ...

    message = relationship("Message", back_populates="attachments")

    def __repr__(self):
        return f"<Attachment {self.file_type} {self.file_name}>"
