# wabridge/models/channel.py
"""
WhatsApp channel model - one connected phone number on a gateway.
"""
from sqlalchemy import Column, String, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.orm.attributes import flag_modified

from wabridge.models.base import BaseModel


class ConnectionState:
    """Values of provider_connection['connection'] as reported by the gateway"""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSE = "close"


class WhatsAppChannel(BaseModel):
    """Store channel configuration for a gateway-backed WhatsApp number"""
    __tablename__ = "whatsapp_channels"

    phone_number = Column(String(50), index=True, nullable=False)
    provider = Column(String(50), nullable=False, default="baileys")  # 'baileys', 'zapi', 'whatsapp_cloud'

    # provider_url, api_key, webhook_verify_token (baileys)
    # instance_id, token, client_token (zapi)
    provider_config = Column(JSON, nullable=True, default=dict)
    provider_connection = Column(JSON, nullable=True, default=dict)
    callback_webhook_url = Column(String(500), nullable=True)

    conversations = relationship("Conversation", back_populates="channel")

    @property
    def connection(self):
        return (self.provider_connection or {}).get("connection")

    def update_provider_connection(self, **attributes):
        """Merge attributes into provider_connection (e.g. connection='close')"""
        current = dict(self.provider_connection or {})
        current.update(attributes)
        self.provider_connection = current
        flag_modified(self, "provider_connection")

    def __repr__(self):
        return f"<WhatsAppChannel {self.provider}:{self.phone_number}>"
