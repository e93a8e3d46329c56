# wabridge/services/providers/zapi.py
"""
Z-API provider - group management only.

Z-API addresses groups as "<id>-group" and participants as bare phone
numbers; both are translated here so the group service can stay
provider-agnostic.

Failed group operations close the channel and restart the Z-API instance
once, the same recovery policy the Baileys provider applies.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from wabridge.core import config
from wabridge.core.jid import GROUP_SUFFIX, phone_from_jid
from wabridge.models.channel import WhatsAppChannel
from wabridge.schemas.group import GroupInfo, GroupParticipant
from wabridge.services.providers.base import BaseProviderService
from wabridge.services.providers.error_handling import ChannelRecovery, RecoveryState

log = logging.getLogger("wabridge.providers.zapi")


class ZapiProviderService(BaseProviderService):
    """Provider client for a Z-API instance"""

    WITH_ERROR_HANDLING = (
        "get_group_info",
        "update_group_name",
        "update_group_description",
        "modify_participants",
    )

    def __init__(
        self,
        whatsapp_channel: WhatsAppChannel,
        db: Optional[Session] = None,
        http=None,
        recovery_state: Optional[RecoveryState] = None,
    ):
        super().__init__(whatsapp_channel, db=db, http=http)

        reconnect = self.restart_instance
        self.recovery = ChannelRecovery(
            state=recovery_state or RecoveryState(),
            on_failure=self.mark_connection_closed,
            reconnect=reconnect,
        )
        self.recovery.apply(self, self.WITH_ERROR_HANDLING)

    # ────────────────────────────────────────────
    # Instance lifecycle
    # ────────────────────────────────────────────

    def restart_instance(self) -> bool:
        """Ask Z-API to restart the instance session"""
        self.request_or_raise("GET", self.instance_url("restart"))
        log.info(f"🔄 Z-API instance {self.provider_config.get('instance_id')} restart requested")
        return True

    # ────────────────────────────────────────────
    # Group management
    # ────────────────────────────────────────────

    def get_group_info(self, group_id: str) -> GroupInfo:
        response = self.request_or_raise("GET", self.instance_url(f"group-metadata/{self.zapi_group_id(group_id)}"))
        data = self.parsed_response(response) or {}

        participants = data.get("participants")
        return GroupInfo(
            id=data.get("phone") or group_id,
            name=data.get("subject"),
            description=data.get("description"),
            participants=self.normalize_participants(participants) if participants is not None else None,
        )

    def update_group_name(self, group_id: str, new_name: str) -> bool:
        self.request_or_raise(
            "POST",
            self.instance_url("update-group-name"),
            json={"groupId": self.zapi_group_id(group_id), "groupName": new_name},
        )
        return True

    def update_group_description(self, group_id: str, new_description: str) -> bool:
        self.request_or_raise(
            "POST",
            self.instance_url("update-group-description"),
            json={"groupId": self.zapi_group_id(group_id), "groupDescription": new_description},
        )
        return True

    def add_group_participant(self, group_id: str, phone_number: str) -> bool:
        return self.modify_participants("add-participant", group_id, phone_number, autoInvite=True)

    def remove_group_participant(self, group_id: str, phone_number: str) -> bool:
        return self.modify_participants("remove-participant", group_id, phone_number)

    def promote_group_admin(self, group_id: str, phone_number: str) -> bool:
        return self.modify_participants("add-admin", group_id, phone_number)

    def demote_group_admin(self, group_id: str, phone_number: str) -> bool:
        return self.modify_participants("remove-admin", group_id, phone_number)

    def modify_participants(self, action: str, group_id: str, phone_number: str, **extra) -> bool:
        self.request_or_raise(
            "POST",
            self.instance_url(action),
            json={
                "groupId": self.zapi_group_id(group_id),
                "phones": [phone_from_jid(phone_number)],
                **extra,
            },
        )
        log.info(f"👥 {action} {phone_number} in group {group_id}")
        return True

    # ────────────────────────────────────────────
    # Helpers
    # ────────────────────────────────────────────

    @staticmethod
    def normalize_participants(participants: List[Dict[str, Any]]) -> List[GroupParticipant]:
        return [
            GroupParticipant(
                id=participant.get("phone") or participant.get("id"),
                name=participant.get("name") or participant.get("short"),
                isAdmin=bool(participant.get("isAdmin")),
                isSuperAdmin=bool(participant.get("isSuperAdmin")),
            )
            for participant in participants
        ]

    @staticmethod
    def zapi_group_id(group_id: str) -> str:
        group_id = str(group_id)
        if group_id.endswith(GROUP_SUFFIX):
            group_id = group_id[:-len(GROUP_SUFFIX)]
        return group_id if group_id.endswith("-group") else f"{group_id}-group"

    @property
    def provider_config(self) -> Dict[str, Any]:
        return self.whatsapp_channel.provider_config or {}

    @property
    def client_token(self) -> Optional[str]:
        return self.provider_config.get("client_token") or config.ZAPI_CLIENT_TOKEN

    def api_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.client_token:
            headers["Client-Token"] = self.client_token
        return headers

    def instance_url(self, action: str) -> str:
        base_url = self.provider_config.get("provider_url") or config.ZAPI_PROVIDER_DEFAULT_URL
        instance_id = self.provider_config.get("instance_id")
        token = self.provider_config.get("token")
        return f"{base_url}/instances/{instance_id}/token/{token}/{action}"
