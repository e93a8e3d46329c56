# wabridge/core/errors.py
"""
Exception hierarchy for gateway integration and group management.

ValidationError subclasses are client faults and never reach the network.
ProviderUnavailableError and UnsupportedProviderError are server faults.
"""
from typing import Optional


class WabridgeError(Exception):
    """Base exception for all wabridge errors"""


class ValidationError(WabridgeError):
    """Invalid request that is rejected before any gateway call"""


class NotAGroupError(ValidationError):
    """Operation requires a WhatsApp group conversation"""

    def __init__(self, message: str = "Conversation is not a WhatsApp group"):
        super().__init__(message)


class DuplicateMemberError(ValidationError):
    """A member with this phone number already exists in the group"""

    def __init__(self, phone_number: str):
        self.phone_number = phone_number
        super().__init__(f"Member {phone_number} already exists in this group")


class ProviderUnavailableError(WabridgeError):
    """Gateway returned a non-success status or could not be reached"""

    def __init__(self, message: str = "WhatsApp provider is unavailable", status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class UnsupportedProviderError(WabridgeError):
    """Channel provider kind has no group management implementation"""

    def __init__(self, provider: Optional[str]):
        self.provider = provider
        super().__init__(f"Provider {provider} does not support group operations")


class MessageContentTypeNotSupported(WabridgeError):
    """Outgoing message has no reaction, attachment or text to send"""
