from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from powdercoat.core.enums import Availability


class TeamMemberCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    role: str = Field(min_length=1, max_length=120)
    department: str = Field(min_length=1, max_length=120)
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    create_account: bool = False
    password: Optional[str] = Field(default=None, min_length=6)


class TeamMemberUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    avatar_url: Optional[str] = None
    availability: Optional[Availability] = None


class AvailabilityIn(BaseModel):
    availability: Availability


class TeamMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: str
    department: str
    email: Optional[str] = None
    user_id: Optional[int] = None
    availability: Availability
    avatar_url: Optional[str] = None


class CredentialsIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)


class AccountOut(BaseModel):
    team_member_id: int
    user_id: int
    email: str
    password: Optional[str] = None


class ProvisionResult(BaseModel):
    team_member_id: int
    name: str
    success: bool
    email: Optional[str] = None
    password: Optional[str] = None
    error: Optional[str] = None


class BatchProvisionOut(BaseModel):
    created: List[ProvisionResult]


class AssignmentsIn(BaseModel):
    team_member_ids: List[int]
