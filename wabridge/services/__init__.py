"""
Service layer initialization.
"""
from wabridge.services.group_service import WhatsAppGroupService
from wabridge.services.providers import (
    BaileysProviderService,
    ZapiProviderService,
    get_group_provider,
)

__all__ = [
    'WhatsAppGroupService',
    'BaileysProviderService',
    'ZapiProviderService',
    'get_group_provider',
]
