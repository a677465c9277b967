"""
Persisted record shapes. Each is written to storage as a camelCase JSON document.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import StandupResponse, StandupSummary, StorageInfo, User, UTCDateTime, utc_now


class StorageItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    tenant_id: str = Field(alias="tenantId")

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class GroupStorageItem(StorageItem):
    type: Literal["group"] = "group"
    users: List[User] = Field(default_factory=list)
    started_at: Optional[UTCDateTime] = Field(default=None, alias="startedAt")
    active_responses: List[StandupResponse] = Field(default_factory=list, alias="activeResponses")
    active_standup_activity_id: Optional[str] = Field(default=None, alias="activeStandupActivityId")
    storage: StorageInfo = Field(default_factory=StorageInfo)
    save_history: bool = Field(default=False, alias="saveHistory")
    custom_instructions: Optional[str] = Field(default=None, alias="customInstructions")
    conversation_name: Optional[str] = Field(default=None, alias="conversationName")


class HistoryStorageItem(StorageItem):
    type: Literal["history"] = "history"
    summaries: List[StandupSummary] = Field(default_factory=list)


class UserSettings(BaseModel):
    """Per-user standup preferences"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    tenant_id: str = Field(alias="tenantId")
    standup_groups: List[str] = Field(default_factory=list, alias="standupGroups")
    default_standup_group: Optional[str] = Field(default=None, alias="defaultStandupGroup")
    last_updated: UTCDateTime = Field(default_factory=utc_now, alias="lastUpdated")


class UserSettingsStorageItem(UserSettings):
    id: str
    type: Literal["userSettings"] = "userSettings"

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
