from dataclasses import dataclass, field
from typing import List, Optional

from ..models.activity import ChatActivity
from ..models.types import SendFn, User


@dataclass
class CommandContext:
    """Who sent a command, where, and how to reply"""
    send: SendFn
    conversation_id: str
    user_id: str
    user_name: str
    tenant_id: str
    conversation_name: Optional[str] = None
    mentions: List[User] = field(default_factory=list)
    is_group: bool = True

    @classmethod
    def from_activity(cls, activity: ChatActivity, send: SendFn) -> "CommandContext":
        return cls(
            send=send,
            conversation_id=activity.conversation.id,
            user_id=activity.from_.id,
            user_name=activity.from_.name,
            tenant_id=activity.tenant_id,
            conversation_name=activity.conversation.name,
            mentions=activity.mentions,
            is_group=activity.is_group,
        )
