"""
Incoming chat activity as posted to the webhook endpoints.
"""
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import User

UNKNOWN_TENANT = "unknown"

_MENTION_TAG = re.compile(r"<at>.*?</at>", re.IGNORECASE)


class ChannelAccount(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    name: str = ""
    role: Optional[str] = None


class ConversationAccount(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: Optional[str] = None
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    is_group: Optional[bool] = Field(default=None, alias="isGroup")
    conversation_type: Optional[str] = Field(default=None, alias="conversationType")


class ChatActivity(BaseModel):
    """Bot Framework style activity"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = "message"
    id: Optional[str] = None
    name: Optional[str] = None  # Invoke name, e.g. task/fetch
    from_: ChannelAccount = Field(alias="from")
    conversation: ConversationAccount
    recipient: Optional[ChannelAccount] = None
    text: Optional[str] = None
    entities: List[Dict[str, Any]] = Field(default_factory=list)
    value: Optional[Dict[str, Any]] = None
    channel_data: Optional[Dict[str, Any]] = Field(default=None, alias="channelData")
    members_added: Optional[List[ChannelAccount]] = Field(default=None, alias="membersAdded")

    @property
    def tenant_id(self) -> str:
        return self.conversation.tenant_id or UNKNOWN_TENANT

    @property
    def is_group(self) -> bool:
        if self.conversation.is_group is not None:
            return self.conversation.is_group
        return self.conversation.conversation_type not in (None, "personal")

    @property
    def user(self) -> User:
        return User(id=self.from_.id, name=self.from_.name)

    @property
    def mentions(self) -> List[User]:
        """Mentioned people, excluding the bot itself"""
        bot_id = self.recipient.id if self.recipient else None
        mentioned = []
        for entity in self.entities:
            if entity.get("type") != "mention":
                continue
            account = entity.get("mentioned") or {}
            if account.get("role") == "bot" or (bot_id and account.get("id") == bot_id):
                continue
            mentioned.append(User(id=account.get("id", ""), name=account.get("name", "")))
        return mentioned

    @property
    def team_channel_id(self) -> Optional[str]:
        channel = (self.channel_data or {}).get("channel") or {}
        return channel.get("id")


def remove_mention_text(text: Optional[str]) -> str:
    """
    Remove mention entities from message text.

    Teams includes mentions as <at>Name</at> in the text.
    """
    if not text:
        return ""
    cleaned = _MENTION_TAG.sub("", text)
    return " ".join(cleaned.split())
