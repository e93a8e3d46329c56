# wabridge/core/jid.py
"""
Gateway addressing helpers.

WhatsApp addresses (JIDs) come in three shapes:
- users:  5511987654321@s.whatsapp.net
- linked: 123456789012345@lid (opaque, never rewritten)
- groups: 120363123456789123-1234567890@g.us
"""
USER_SUFFIX = "@s.whatsapp.net"
LID_SUFFIX = "@lid"
GROUP_SUFFIX = "@g.us"


def to_user_jid(phone_number: str) -> str:
    """Convert a phone number to a user JID. Already-normalized input is returned unchanged."""
    phone_number = str(phone_number).strip()
    if phone_number.endswith(LID_SUFFIX) or phone_number.endswith(USER_SUFFIX):
        return phone_number
    return f"{phone_number.replace('+', '')}{USER_SUFFIX}"


def to_group_jid(group_id: str) -> str:
    group_id = str(group_id).strip()
    if group_id.endswith(GROUP_SUFFIX):
        return group_id
    return f"{group_id}{GROUP_SUFFIX}"


def is_group_identifier(source_id) -> bool:
    """
    Group ids either carry the @g.us suffix or are shaped
    <creatorId>-<timestamp>, so any hyphen marks a group.
    """
    source_id = str(source_id or "")
    return source_id.endswith(GROUP_SUFFIX) or "-" in source_id


def phone_from_jid(address: str) -> str:
    """
    Key used for local group members: the bare phone number.
    @lid identifiers have no phone number and are kept whole.
    """
    address = str(address).strip()
    if address.endswith(LID_SUFFIX):
        return address
    if address.endswith(USER_SUFFIX):
        address = address[:-len(USER_SUFFIX)]
    return address.replace('+', '')


def to_recipient_jid(recipient_id: str) -> str:
    """Chat address for a conversation identifier, group or user"""
    if is_group_identifier(recipient_id):
        return to_group_jid(recipient_id)
    return to_user_jid(recipient_id)
