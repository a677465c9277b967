"""
Shared fixtures: in-memory storage, the service stack and a scripted LLM.
"""
import itertools
import json
import uuid
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from standup_agent.agents.standup_coordinator import StandupCoordinator
from standup_agent.config import TestingConfig
from standup_agent.models.activity import ChatActivity
from standup_agent.services.llm_provider import ChatTurn, ToolCall
from standup_agent.services.persistent_standup_service import PersistentStandupService
from standup_agent.services.standup_group_service import StandupGroupService
from standup_agent.services.user_settings_service import UserSettingsService
from standup_agent.services.user_standup_service import UserStandupService
from standup_agent.storage.memory import InMemoryStorage, InMemoryStorageFactory

TENANT = "tenant-1"
CONVERSATION = "conv-1"


class FakeLLM:
    """Stands in for LLMProvider; replays scripted tool-call turns"""

    def __init__(self, turns: Optional[List[ChatTurn]] = None, completion: str = "NOTHING_TO_SAY"):
        self.turns = list(turns or [])
        self.completion = completion
        self.tool_requests: List[Dict[str, Any]] = []
        self.prompts: List[Dict[str, Any]] = []
        self.closed = False

    async def generate_completion(self, prompt: str, system_prompt: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        self.prompts.append({"prompt": prompt, "system_prompt": system_prompt})
        return {"content": self.completion, "tokens_used": 0, "model": "fake", "provider": "fake"}

    async def complete_with_tools(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> ChatTurn:
        self.tool_requests.append({"messages": [dict(m) for m in messages], "tools": tools})
        if self.turns:
            return self.turns.pop(0)
        return ChatTurn(content="ok")

    async def close(self) -> None:
        self.closed = True


_call_ids = itertools.count(1)


def tool_turn(tool_name: str, /, **arguments: Any) -> ChatTurn:
    """A model turn that calls one tool"""
    return ChatTurn(tool_calls=[ToolCall(id=f"call_{next(_call_ids)}", name=tool_name, arguments=json.dumps(arguments))])


class Outbox:
    """Collects what a handler sends; every send gets an id"""

    def __init__(self):
        self.sent: List[Any] = []

    async def send(self, message: Any) -> Dict[str, Any]:
        self.sent.append(message)
        if isinstance(message, dict):
            return {"id": message.get("id") or str(uuid.uuid4()), **message}
        return {"id": str(uuid.uuid4()), "text": message}

    @property
    def texts(self) -> List[str]:
        return [m for m in self.sent if isinstance(m, str)]

    @property
    def cards(self) -> List[Dict[str, Any]]:
        return [m for m in self.sent if isinstance(m, dict)]


def activity_payload(
    text: Optional[str] = None,
    user_id: str = "u1",
    user_name: str = "Alice",
    conversation_id: str = CONVERSATION,
    is_group: bool = True,
    mentions: Optional[List[Dict[str, str]]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Wire-format activity as a chat channel would post it"""
    payload: Dict[str, Any] = {
        "type": "message",
        "id": str(uuid.uuid4()),
        "from": {"id": user_id, "name": user_name},
        "recipient": {"id": "bot-1", "name": "Standup Agent"},
        "conversation": {
            "id": conversation_id,
            "name": "Team A" if is_group else None,
            "tenantId": TENANT,
            "isGroup": is_group,
            "conversationType": "groupChat" if is_group else "personal",
        },
        "entities": [
            {"type": "mention", "mentioned": mention, "text": f"<at>{mention['name']}</at>"}
            for mention in (mentions or [])
        ],
    }
    if text is not None:
        payload["text"] = text
    payload.update(extra)
    return payload


def make_activity(*args: Any, **kwargs: Any) -> ChatActivity:
    return ChatActivity.model_validate(activity_payload(*args, **kwargs))


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def persistent_service():
    return PersistentStandupService(InMemoryStorage(), InMemoryStorage())


@pytest.fixture
def user_settings_service():
    return UserSettingsService(InMemoryStorage())


@pytest.fixture
def group_service(persistent_service, user_settings_service, fake_llm):
    return StandupGroupService(persistent_service, user_settings_service, llm=fake_llm)


@pytest.fixture
def user_service(user_settings_service, group_service):
    return UserStandupService(user_settings_service, group_service)


@pytest.fixture
def coordinator(group_service, user_service, fake_llm):
    return StandupCoordinator(group_service, user_service, InMemoryStorageFactory(), fake_llm)


@pytest_asyncio.fixture
async def created_coordinator(fake_llm):
    coordinator = await StandupCoordinator.create(TestingConfig(), llm_provider=fake_llm)
    yield coordinator
    await coordinator.close()
