from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime


# ────────────────────────────────────────────
# Gateway payloads
# ────────────────────────────────────────────

class GroupParticipant(BaseModel):
    """Participant as reported by the gateway roster"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Participant phone number or JID")
    name: Optional[str] = None
    isAdmin: bool = False
    isSuperAdmin: bool = False

    @property
    def is_admin(self) -> bool:
        return self.isAdmin or self.isSuperAdmin


class GroupInfo(BaseModel):
    """Authoritative group metadata returned by a provider"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    participants: Optional[List[GroupParticipant]] = None


# ────────────────────────────────────────────
# Request Schemas (Input)
# ────────────────────────────────────────────

class GroupNameUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="New group subject")


class GroupDescriptionUpdate(BaseModel):
    description: str = Field(..., max_length=2048, description="New group description")


class GroupMemberAdd(BaseModel):
    phone_number: str = Field(..., description="Member phone number (international format)")
    name: Optional[str] = Field(None, max_length=255)

    @field_validator('phone_number')
    @classmethod
    def validate_phone_number(cls, v):
        """Clean and validate phone number"""
        clean = v.replace('+', '').replace(' ', '').replace('-', '')
        if not clean.isdigit():
            raise ValueError('Phone number must contain only digits')
        return clean


# ────────────────────────────────────────────
# Response Schemas (Output)
# ────────────────────────────────────────────

class GroupMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    phone_number: str
    name: Optional[str] = None
    display_name: str
    is_admin: bool = False
    joined_at: Optional[datetime] = None


class GroupInfoResponse(BaseModel):
    """Group info as shown to agents"""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    participant_count: int = 0
    members: List[GroupMemberResponse] = Field(default_factory=list)
