"""
Provider selection.

Each gateway kind has its own provider class; the channel's configured
provider picks one. Kinds without group support fail here, before any
operation runs.
"""
from typing import Optional

from sqlalchemy.orm import Session

from wabridge.core.errors import UnsupportedProviderError
from wabridge.models.channel import WhatsAppChannel
from wabridge.services.providers.base import BaseProviderService
from wabridge.services.providers.baileys import BaileysProviderService
from wabridge.services.providers.zapi import ZapiProviderService


def get_group_provider(whatsapp_channel: WhatsAppChannel, db: Optional[Session] = None, http=None) -> BaseProviderService:
    """Provider service able to manage groups on this channel"""
    provider = whatsapp_channel.provider
    if provider == "baileys":
        return BaileysProviderService(whatsapp_channel, db=db, http=http)
    if provider == "zapi":
        return ZapiProviderService(whatsapp_channel, db=db, http=http)
    raise UnsupportedProviderError(provider)


__all__ = [
    'BaseProviderService',
    'BaileysProviderService',
    'ZapiProviderService',
    'get_group_provider',
]
