"""
Team registry records and the commands that act on them.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TeamCommandType = Literal[
    "create",
    "addMember",
    "joinTeam",
    "listMembers",
    "addChannel",
    "setDetail",
    "getDetail",
    "list",
    "listMyTeams",
]


class TeamMember(BaseModel):
    id: str
    name: str


class Team(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: str = ""
    members: List[TeamMember] = Field(default_factory=list)
    channel_ids: List[str] = Field(default_factory=list, alias="channelIds")
    details: Dict[str, str] = Field(default_factory=dict)
    tenant_id: str = Field(alias="tenantId")

    def to_record(self) -> dict:
        return {"type": "team", **self.model_dump(mode="json", by_alias=True)}


class TeamCommand(BaseModel):
    """One registry operation. Only the fields its type needs are read."""
    model_config = ConfigDict(populate_by_name=True)

    type: TeamCommandType
    tenant_id: str = Field(default="unknown", alias="tenantId")
    team_id: Optional[str] = Field(default=None, alias="teamId")
    name: Optional[str] = None
    description: Optional[str] = None
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    user_id: Optional[str] = Field(default=None, alias="userId")
    key: Optional[str] = None
    value: Optional[str] = None
