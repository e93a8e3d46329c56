# wabridge/services/message_content.py
"""
Builds gateway wire payloads from local messages.

send-message payloads are chosen in priority order:
reaction > attachment > text. A message with none of these raises
MessageContentTypeNotSupported.
"""
import base64
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from wabridge.core.errors import MessageContentTypeNotSupported
from wabridge.core.jid import to_recipient_jid
from wabridge.models.message import Message, Attachment

log = logging.getLogger("wabridge.message_content")

# attachment file_type -> buffer field in send-message content
ATTACHMENT_FIELDS = {
    "image": "image",
    "audio": "audio",
    "file": "document",
    "sticker": "sticker",
    "video": "video",
}

# attachment file_type -> gateway-side media reference for forwarded messages
FORWARD_MEDIA_KEYS = {
    "image": "imageMessage",
    "video": "videoMessage",
    "audio": "audioMessage",
    "file": "documentMessage",
    "sticker": "documentMessage",
}


def message_key(message: Message, remote_jid: str) -> Dict[str, Any]:
    """Gateway message key: {id, remoteJid, fromMe}"""
    return {
        "id": message.source_id,
        "remoteJid": remote_jid,
        "fromMe": message.is_outgoing,
    }


def build_message_content(message: Message, remote_jid: str) -> Dict[str, Any]:
    """
    Build the messageContent of a send-message request.

    Args:
        message: Outgoing message
        remote_jid: Recipient JID, also used in the key of a reacted-to message

    Raises:
        MessageContentTypeNotSupported: nothing sendable in the message
    """
    if message.is_reaction and message.in_reply_to is not None:
        return reaction_content(message, remote_jid)
    if message.attachments:
        return attachment_content(message)
    if message.content:
        return {"text": message.content}

    raise MessageContentTypeNotSupported(f"Message {message.id} has no sendable content")


def reaction_content(message: Message, remote_jid: str) -> Dict[str, Any]:
    return {
        "react": {
            "key": message_key(message.in_reply_to, remote_jid),
            "text": message.content,
        }
    }


def attachment_content(message: Message) -> Dict[str, Any]:
    """Only the first attachment is sent; the message text becomes its caption."""
    attachment = message.attachments[0]
    buffer = attachment_to_base64(attachment)

    content = {
        "fileName": attachment.file_name,
        "caption": message.content,
    }
    field = ATTACHMENT_FIELDS.get(attachment.file_type)
    if field:
        content[field] = buffer
    if attachment.file_type == "audio":
        content["ptt"] = (attachment.meta or {}).get("is_recorded_audio")
    elif attachment.file_type == "file":
        content["mimetype"] = attachment.content_type

    return {key: value for key, value in content.items() if value is not None}


def attachment_to_base64(attachment: Attachment) -> Optional[str]:
    if attachment.data is None:
        return None
    return base64.b64encode(attachment.data).decode("ascii")


# ────────────────────────────────────────────
# Forwarding
# ────────────────────────────────────────────

def build_forward_envelope(message: Message) -> Dict[str, Any]:
    """
    Build the WAMessage envelope for forward-message.

    Media bytes are not sent: the gateway resolves them from its own store,
    so attachments only carry their caption.
    """
    remote_jid = to_recipient_jid(message.conversation.contact_identifier)
    key = message_key(message, remote_jid)
    key["id"] = message.source_id or str(message.id)

    return {
        "key": key,
        "message": forward_message_content(message),
    }


def forward_message_content(message: Message) -> Dict[str, Any]:
    if message.attachments:
        media_key = FORWARD_MEDIA_KEYS.get(message.attachments[0].file_type)
        if media_key == "audioMessage":
            return {media_key: {}}
        if media_key:
            return {media_key: {"caption": message.content}}
    return {"conversation": message.content or ""}


# ────────────────────────────────────────────
# Timestamps
# ────────────────────────────────────────────

def parse_message_timestamp(value) -> Optional[datetime]:
    """
    Convert a gateway messageTimestamp to a naive UTC datetime.

    Accepts seconds as int or numeric string, or a protobuf Long
    serialized as {"low": ..., "high": ..., "unsigned": ...}.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        low = int(value.get("low", 0)) & 0xFFFFFFFF
        high = int(value.get("high", 0))
        seconds = (high << 32) | low
    else:
        try:
            seconds = int(float(value))
        except (TypeError, ValueError):
            log.warning(f"⚠️ Unparseable message timestamp: {value!r}")
            return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
