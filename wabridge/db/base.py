"""Import all models for Alembic"""
from wabridge.models.base import Base

from wabridge.models.channel import WhatsAppChannel
from wabridge.models.conversation import Conversation
from wabridge.models.group_member import WhatsAppGroupMember
from wabridge.models.message import Message, Attachment

__all__ = ["Base"]
