from wabridge.models.base import Base, BaseModel
from wabridge.models.channel import WhatsAppChannel, ConnectionState
from wabridge.models.conversation import Conversation
from wabridge.models.group_member import WhatsAppGroupMember
from wabridge.models.message import Message, Attachment

__all__ = [
    "Base",
    "BaseModel",
    "WhatsAppChannel",
    "ConnectionState",
    "Conversation",
    "WhatsAppGroupMember",
    "Message",
    "Attachment",
]
