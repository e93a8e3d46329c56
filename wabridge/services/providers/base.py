# wabridge/services/providers/base.py
"""
Provider interface shared by every gateway variant.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from sqlalchemy.orm import Session

from wabridge.core.errors import ProviderUnavailableError
from wabridge.core.logging_config import get_gateway_logger, log_api_request, log_api_response
from wabridge.models.channel import ConnectionState, WhatsAppChannel
from wabridge.schemas.group import GroupInfo

log = logging.getLogger("wabridge.providers")
api_log = get_gateway_logger()


class BaseProviderService(ABC):
    """
    Group management contract used by WhatsAppGroupService.

    Subclasses issue HTTP calls through self.http, which defaults to the
    requests module and can be replaced with any object exposing
    request(method, url, **kwargs).
    """

    def __init__(self, whatsapp_channel: WhatsAppChannel, db: Optional[Session] = None, http=None):
        self.whatsapp_channel = whatsapp_channel
        self.db = db
        self.http = http or requests

    # ────────────────────────────────────────────
    # Channel state
    # ────────────────────────────────────────────

    def mark_connection_closed(self) -> None:
        self.whatsapp_channel.update_provider_connection(connection=ConnectionState.CLOSE)
        self.commit()

    def commit(self) -> None:
        if self.db is not None:
            self.db.commit()

    # ────────────────────────────────────────────
    # HTTP helpers
    # ────────────────────────────────────────────

    def api_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ):
        """
        Issue a request to the gateway.

        Transport failures are logged and raised as ProviderUnavailableError.
        The response is returned as-is; callers decide whether a non-success
        status is fatal.
        """
        headers = self.api_headers()
        log_api_request(api_log, method, url, data=json or params, headers=headers)
        try:
            response = self.http.request(method, url, headers=headers, json=json, params=params)
        except requests.RequestException as e:
            log_api_response(api_log, 0, None, error=e)
            log.error(f"❌ Gateway request failed: {method} {url}: {e}")
            raise ProviderUnavailableError(f"WhatsApp provider is unavailable: {e}") from e

        log_api_response(api_log, response.status_code, response.text)
        return response

    @staticmethod
    def process_response(response) -> bool:
        """Log the body of a non-success response; return whether it succeeded"""
        if not response.ok:
            log.error(f"❌ Gateway responded {response.status_code}: {response.text}")
        return response.ok

    def request_or_raise(self, method: str, url: str, **kwargs):
        response = self.request(method, url, **kwargs)
        if not self.process_response(response):
            raise ProviderUnavailableError(status_code=response.status_code)
        return response

    @staticmethod
    def parsed_response(response) -> Any:
        """Response JSON, or None when the body is empty or not JSON"""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # ────────────────────────────────────────────
    # Group management
    # ────────────────────────────────────────────

    @abstractmethod
    def get_group_info(self, group_id: str) -> GroupInfo:
        """Fetch authoritative group metadata and roster"""

    @abstractmethod
    def update_group_name(self, group_id: str, new_name: str) -> bool:
        ...

    @abstractmethod
    def update_group_description(self, group_id: str, new_description: str) -> bool:
        ...

    @abstractmethod
    def add_group_participant(self, group_id: str, phone_number: str) -> bool:
        ...

    @abstractmethod
    def remove_group_participant(self, group_id: str, phone_number: str) -> bool:
        ...

    @abstractmethod
    def promote_group_admin(self, group_id: str, phone_number: str) -> bool:
        ...

    @abstractmethod
    def demote_group_admin(self, group_id: str, phone_number: str) -> bool:
        ...
