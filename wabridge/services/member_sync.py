# wabridge/services/member_sync.py
"""
Group roster reconciliation.

Makes the local member mirror of a group conversation match the roster
reported by the gateway. Inserts and updates run before deletions so a
phone number present on both sides is never removed, and re-running with
an unchanged roster changes nothing.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wabridge.core.errors import DuplicateMemberError
from wabridge.core.jid import phone_from_jid
from wabridge.models.conversation import Conversation
from wabridge.models.group_member import WhatsAppGroupMember
from wabridge.schemas.group import GroupParticipant

log = logging.getLogger("wabridge.member_sync")


def find_group_member(db: Session, conversation: Conversation, phone_number: str) -> Optional[WhatsAppGroupMember]:
    return _load_member(db, conversation, phone_from_jid(phone_number))


def _load_member(db: Session, conversation: Conversation, phone: str) -> Optional[WhatsAppGroupMember]:
    return db.query(WhatsAppGroupMember).filter(
        WhatsAppGroupMember.conversation_id == conversation.id,
        WhatsAppGroupMember.phone_number == phone
    ).first()


def _apply_changes(member: WhatsAppGroupMember, name: Optional[str], is_admin: Optional[bool]) -> None:
    if name is not None and member.name != name:
        member.name = name
    if is_admin is not None and member.is_admin != is_admin:
        member.is_admin = is_admin


def upsert_group_member(
    db: Session,
    conversation: Conversation,
    phone_number: str,
    name: Optional[str] = None,
    is_admin: Optional[bool] = None,
    merge_on_conflict: bool = False,
) -> WhatsAppGroupMember:
    """
    Create the member or update its name/admin flag.

    None leaves the stored value untouched. The insert runs in a savepoint:
    when the (conversation, phone_number) unique index rejects it because a
    concurrent request stored the same member first, only that insert is
    rolled back. With merge_on_conflict the stored row is re-read and
    updated instead; otherwise DuplicateMemberError is raised.
    """
    phone = phone_from_jid(phone_number)
    member = find_group_member(db, conversation, phone)

    if member:
        _apply_changes(member, name, is_admin)
        db.flush()
        return member

    member = WhatsAppGroupMember(
        tenant_id=conversation.tenant_id,
        conversation_id=conversation.id,
        phone_number=phone,
        name=name,
        is_admin=bool(is_admin),
        joined_at=datetime.utcnow(),
    )
    try:
        with db.begin_nested():
            db.add(member)
            db.flush()
    except IntegrityError as e:
        stored = _load_member(db, conversation, phone) if merge_on_conflict else None
        if stored is None:
            log.warning(f"⚠️ Duplicate member {phone} in conversation {conversation.id}: {e.orig}")
            raise DuplicateMemberError(phone) from e

        log.info(f"🔁 Member {phone} was stored concurrently - updating it instead")
        _apply_changes(stored, name, is_admin)
        db.flush()
        return stored

    log.info(f"➕ Member {phone} added to conversation {conversation.id}")
    return member


def remove_group_member(db: Session, conversation: Conversation, phone_number: str) -> bool:
    """Delete the local member if present; absence is not an error"""
    member = find_group_member(db, conversation, phone_number)
    if not member:
        return False
    db.delete(member)
    db.flush()
    log.info(f"➖ Member {member.phone_number} removed from conversation {conversation.id}")
    return True


def sync_members_from_provider(
    db: Session,
    conversation: Conversation,
    participants: Iterable[GroupParticipant],
) -> None:
    """Reconcile local members with the gateway roster and commit"""
    participants = list(participants)
    existing_phones = {
        phone for (phone,) in db.query(WhatsAppGroupMember.phone_number).filter(
            WhatsAppGroupMember.conversation_id == conversation.id
        ).all()
    }

    # Add or update members from provider
    provider_phones = set()
    for participant in participants:
        phone = phone_from_jid(participant.id)
        provider_phones.add(phone)
        upsert_group_member(
            db,
            conversation,
            phone,
            name=participant.name,
            is_admin=participant.is_admin,
            merge_on_conflict=True,
        )

    # Remove members that are no longer in the group
    removed_phones = existing_phones - provider_phones
    for phone in removed_phones:
        remove_group_member(db, conversation, phone)

    db.commit()
    log.info(
        f"🔄 Synced {len(provider_phones)} members for conversation {conversation.id} "
        f"({len(removed_phones)} removed)"
    )
