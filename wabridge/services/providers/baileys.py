# wabridge/services/providers/baileys.py
"""
Baileys gateway provider.

Drives an external Baileys HTTP gateway: connection lifecycle, messaging,
presence, receipts and group management. Every call is scoped to the
channel's phone number and authenticated with the x-api-key header.

Operations listed in WITH_ERROR_HANDLING mark the channel closed and
attempt one reconnection when they fail (see error_handling.py).
"""
import logging
from datetime import timezone
from typing import Any, Dict, Iterable, List, Optional

import requests
from sqlalchemy.orm import Session

from wabridge.core import config
from wabridge.core.errors import (
    MessageContentTypeNotSupported,
    ProviderUnavailableError,
    ValidationError,
)
from wabridge.core.jid import to_group_jid, to_recipient_jid, to_user_jid
from wabridge.models.channel import WhatsAppChannel
from wabridge.models.message import Message
from wabridge.schemas.group import GroupInfo
from wabridge.services.message_content import (
    build_forward_envelope,
    build_message_content,
    message_key,
    parse_message_timestamp,
)
from wabridge.services.providers.base import BaseProviderService
from wabridge.services.providers.error_handling import ChannelRecovery, RecoveryState

log = logging.getLogger("wabridge.providers.baileys")

# Conversation typing events -> gateway presence type
TYPING_STATUS_MAP = {
    "conversation.typing_on": "composing",
    "conversation.recording": "recording",
    "conversation.typing_off": "paused",
}
PRESENCE_TYPES = {"composing", "recording", "paused"}

# Account availability -> gateway presence type
AVAILABILITY_MAP = {
    "online": "available",
    "offline": "unavailable",
    "busy": "unavailable",
}

PARTICIPANT_ACTIONS = {"add", "remove", "promote", "demote"}


class BaileysProviderService(BaseProviderService):
    """Provider client for a Baileys gateway channel"""

    WITH_ERROR_HANDLING = (
        "setup_channel_provider",
        "disconnect_channel_provider",
        "send_message",
        "forward_message",
        "set_presence",
        "update_presence",
        "read_messages",
        "unread_message",
        "received_messages",
        "get_group_info",
        "update_group_name",
        "update_group_description",
        "modify_group_participants",
    )

    def __init__(
        self,
        whatsapp_channel: WhatsAppChannel,
        db: Optional[Session] = None,
        http=None,
        recovery_state: Optional[RecoveryState] = None,
    ):
        """
        Args:
            whatsapp_channel: Channel to drive
            db: Session used to persist connection state and message write-backs
            http: Transport exposing request(); defaults to requests
            recovery_state: Recovery state of this channel
        """
        super().__init__(whatsapp_channel, db=db, http=http)

        reconnect = self.setup_channel_provider
        self.recovery = ChannelRecovery(
            state=recovery_state or RecoveryState(),
            on_failure=self.mark_connection_closed,
            reconnect=reconnect,
        )
        self.recovery.apply(self, self.WITH_ERROR_HANDLING)

    # ────────────────────────────────────────────
    # Gateway status
    # ────────────────────────────────────────────

    @classmethod
    def provider_status(cls, http=None) -> Dict[str, Any]:
        """Check the default gateway is configured and reachable"""
        if not config.BAILEYS_PROVIDER_DEFAULT_URL or not config.BAILEYS_PROVIDER_DEFAULT_API_KEY:
            raise ProviderUnavailableError(
                "Missing BAILEYS_PROVIDER_DEFAULT_URL or BAILEYS_PROVIDER_DEFAULT_API_KEY setup"
            )

        try:
            response = (http or requests).request(
                "GET",
                f"{config.BAILEYS_PROVIDER_DEFAULT_URL}/status",
                headers={"x-api-key": config.BAILEYS_PROVIDER_DEFAULT_API_KEY},
            )
        except Exception as e:
            log.error(f"❌ Baileys status check failed: {e}")
            raise ProviderUnavailableError("Baileys API is unavailable") from e

        if not response.ok:
            log.error(response.text)
            raise ProviderUnavailableError("Baileys API is unavailable", status_code=response.status_code)

        return response.json()

    def validate_provider_config(self) -> bool:
        response = self.request("GET", f"{self.provider_url}/status/auth")
        return self.process_response(response)

    def media_url(self, media_id: str) -> str:
        return f"{self.provider_url}/media/{media_id}"

    # ────────────────────────────────────────────
    # Connection lifecycle
    # ────────────────────────────────────────────

    def setup_channel_provider(self) -> bool:
        body = {
            "clientName": config.BAILEYS_PROVIDER_DEFAULT_CLIENT_NAME,
            "webhookUrl": self.whatsapp_channel.callback_webhook_url,
            "webhookVerifyToken": self.provider_config.get("webhook_verify_token"),
            "includeMedia": False,
        }
        self.request_or_raise(
            "POST",
            self.connection_url(),
            json={key: value for key, value in body.items() if value is not None},
        )
        log.info(f"✅ Channel {self.whatsapp_channel.phone_number} registered with gateway")
        return True

    def disconnect_channel_provider(self) -> bool:
        self.request_or_raise("DELETE", self.connection_url())
        log.info(f"🔌 Channel {self.whatsapp_channel.phone_number} disconnected from gateway")
        return True

    # ────────────────────────────────────────────
    # Messaging
    # ────────────────────────────────────────────

    def send_message(self, recipient_id: str, message: Message) -> Optional[str]:
        """
        Send a message and write back its external timestamp.

        Returns:
            Gateway message id, or None when the message had nothing to send
            (it is flagged is_unsupported instead)
        """
        remote_jid = to_recipient_jid(recipient_id)
        try:
            content = build_message_content(message, remote_jid)
        except MessageContentTypeNotSupported as e:
            log.warning(f"⚠️ {e} - marking unsupported")
            message.is_unsupported = True
            self.commit()
            return None

        response = self.request_or_raise(
            "POST",
            self.connection_url("send-message"),
            json={"jid": remote_jid, "messageContent": content},
        )
        data = (self.parsed_response(response) or {}).get("data") or {}

        external_created_at = parse_message_timestamp(data.get("messageTimestamp"))
        if external_created_at:
            message.external_created_at = external_created_at
            self.commit()

        message_id = (data.get("key") or {}).get("id")
        log.info(f"✅ Message sent to {remote_jid}: {message_id}")
        return message_id

    def forward_message(self, message: Message, destination_ids: Iterable[str]) -> Optional[List[Dict[str, Any]]]:
        """Forward a message to several destinations; returns per-destination results"""
        response = self.request_or_raise(
            "POST",
            self.connection_url("forward-message"),
            json={
                "message": build_forward_envelope(message),
                "destinationJids": [to_recipient_jid(jid) for jid in destination_ids],
            },
        )
        return ((self.parsed_response(response) or {}).get("data") or {}).get("results")

    # ────────────────────────────────────────────
    # Presence
    # ────────────────────────────────────────────

    def set_presence(self, recipient_id: str, kind: str) -> bool:
        """Typing indicator towards one chat: composing, recording or paused"""
        presence = TYPING_STATUS_MAP.get(kind, kind)
        if presence not in PRESENCE_TYPES:
            raise ValidationError(f"Unknown presence type: {kind}")

        self.request_or_raise(
            "PATCH",
            self.connection_url("presence"),
            json={"toJid": to_recipient_jid(recipient_id), "type": presence},
        )
        return True

    def update_presence(self, status: str) -> bool:
        """Account-level availability: online, offline or busy"""
        if status not in AVAILABILITY_MAP:
            raise ValidationError(f"Unknown availability status: {status}")

        self.request_or_raise(
            "PATCH",
            self.connection_url("presence"),
            json={"type": AVAILABILITY_MAP[status]},
        )
        return True

    # ────────────────────────────────────────────
    # Receipts
    # ────────────────────────────────────────────

    def read_messages(self, messages: Iterable[Message], recipient_id: str) -> bool:
        remote_jid = to_recipient_jid(recipient_id)
        self.request_or_raise(
            "POST",
            self.connection_url("read-messages"),
            json={"keys": [message_key(message, remote_jid) for message in messages]},
        )
        return True

    def unread_message(self, recipient_id: str, message: Message) -> bool:
        remote_jid = to_recipient_jid(recipient_id)
        timestamp = message.external_created_at
        self.request_or_raise(
            "POST",
            self.connection_url("chat-modify"),
            json={
                "jid": remote_jid,
                "mod": {
                    "markRead": False,
                    "lastMessages": [{
                        "key": message_key(message, remote_jid),
                        "messageTimestamp": int(timestamp.replace(tzinfo=timezone.utc).timestamp()) if timestamp else None,
                    }],
                },
            },
        )
        return True

    def received_messages(self, recipient_id: str, messages: Iterable[Message]) -> bool:
        remote_jid = to_recipient_jid(recipient_id)
        self.request_or_raise(
            "POST",
            self.connection_url("send-receipts"),
            json={"keys": [message_key(message, remote_jid) for message in messages]},
        )
        return True

    # ────────────────────────────────────────────
    # Best-effort lookups
    # ────────────────────────────────────────────

    def get_profile_pic(self, jid: str) -> Optional[str]:
        """Profile picture URL, or None when the gateway can't provide one"""
        try:
            response = self.request(
                "GET",
                self.connection_url("profile-picture-url"),
                params={"jid": jid},
            )
        except ProviderUnavailableError:
            return None

        if not self.process_response(response):
            return None

        parsed = self.parsed_response(response)
        if isinstance(parsed, dict):
            data = parsed.get("data") if isinstance(parsed.get("data"), dict) else parsed
            parsed = data.get("profilePictureUrl") or data.get("url")
        return parsed or None

    def on_whatsapp(self, recipient_id: str) -> Dict[str, Any]:
        """Registration check; an empty or failed lookup reports exists=False"""
        remote_jid = to_recipient_jid(recipient_id)
        fallback = {"jid": remote_jid, "exists": False}
        try:
            response = self.request(
                "POST",
                self.connection_url("on-whatsapp"),
                json={"jids": [remote_jid]},
            )
        except ProviderUnavailableError:
            return fallback

        if not self.process_response(response):
            return fallback

        parsed = self.parsed_response(response)
        return parsed[0] if isinstance(parsed, list) and parsed else fallback

    # ────────────────────────────────────────────
    # Group management
    # ────────────────────────────────────────────

    def get_group_info(self, group_id: str) -> GroupInfo:
        response = self.request_or_raise(
            "GET",
            self.connection_url("group-metadata"),
            params={"jid": to_group_jid(group_id)},
        )
        data = self.parsed_response(response) or {}
        if "name" not in data and "subject" in data:
            data = {**data, "name": data["subject"]}
        if "description" not in data and "desc" in data:
            data = {**data, "description": data["desc"]}
        return GroupInfo.model_validate(data)

    def update_group_name(self, group_id: str, new_name: str) -> bool:
        self.request_or_raise(
            "PATCH",
            self.connection_url("update-group-subject"),
            json={"jid": to_group_jid(group_id), "subject": new_name},
        )
        return True

    def update_group_description(self, group_id: str, new_description: str) -> bool:
        self.request_or_raise(
            "PATCH",
            self.connection_url("update-group-description"),
            json={"jid": to_group_jid(group_id), "description": new_description},
        )
        return True

    def modify_group_participants(self, group_id: str, phone_number: str, action: str) -> bool:
        if action not in PARTICIPANT_ACTIONS:
            raise ValidationError(f"Unknown participant action: {action}")

        self.request_or_raise(
            "PATCH",
            self.connection_url("modify-group-participants"),
            json={
                "jid": to_group_jid(group_id),
                "participants": [to_user_jid(phone_number)],
                "action": action,
            },
        )
        log.info(f"👥 {action} {phone_number} in group {group_id}")
        return True

    def add_group_participant(self, group_id: str, phone_number: str) -> bool:
        return self.modify_group_participants(group_id, phone_number, "add")

    def remove_group_participant(self, group_id: str, phone_number: str) -> bool:
        return self.modify_group_participants(group_id, phone_number, "remove")

    def promote_group_admin(self, group_id: str, phone_number: str) -> bool:
        return self.modify_group_participants(group_id, phone_number, "promote")

    def demote_group_admin(self, group_id: str, phone_number: str) -> bool:
        return self.modify_group_participants(group_id, phone_number, "demote")

    # ────────────────────────────────────────────
    # Helpers
    # ────────────────────────────────────────────

    @property
    def provider_config(self) -> Dict[str, Any]:
        return self.whatsapp_channel.provider_config or {}

    @property
    def provider_url(self) -> Optional[str]:
        return self.provider_config.get("provider_url") or config.BAILEYS_PROVIDER_DEFAULT_URL

    @property
    def api_key(self) -> Optional[str]:
        return self.provider_config.get("api_key") or config.BAILEYS_PROVIDER_DEFAULT_API_KEY

    def api_headers(self) -> Dict[str, str]:
        return {"x-api-key": self.api_key or "", "Content-Type": "application/json"}

    def connection_url(self, action: Optional[str] = None) -> str:
        url = f"{self.provider_url}/connections/{self.whatsapp_channel.phone_number}"
        return f"{url}/{action}" if action else url
