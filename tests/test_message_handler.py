"""
Tests for the message handler: ! commands and the natural-language path.
"""
import pytest

from standup_agent.agents.standup_coordinator import StandupCoordinator
from standup_agent.core.exceptions import StorageError
from standup_agent.handlers.message import COMMAND_FAILED, NOT_UNDERSTOOD, handle_message
from standup_agent.models.types import StandupResponse
from standup_agent.services.llm_provider import ChatTurn
from standup_agent.services.persistent_standup_service import PersistentStandupService
from standup_agent.services.standup_group_service import StandupGroupService
from standup_agent.services.user_settings_service import UserSettingsService
from standup_agent.services.user_standup_service import UserStandupService
from standup_agent.storage.memory import InMemoryStorage, InMemoryStorageFactory

from conftest import CONVERSATION, TENANT, make_activity, tool_turn

pytestmark = pytest.mark.asyncio

BOT = {"id": "bot-1", "name": "Standup Agent"}
BOB = {"id": "u2", "name": "Bob"}


async def say(coordinator, outbox, llm, text, **kwargs):
    await handle_message(make_activity(text, **kwargs), outbox.send, coordinator, llm)


def card_texts(message):
    return [block.get("text") for block in message["attachments"][0]["content"]["body"]]


# =============================================================================
# ! commands
# =============================================================================

class TestCommands:

    async def test_register_with_history(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register --history")

        assert outbox.texts == ["Standup group registered successfully!"]
        group = await coordinator.validate_group(CONVERSATION, TENANT)
        assert group.save_history is True
        assert group.conversation_name == "Team A"

    async def test_register_twice(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!register")

        assert outbox.texts[-1] == "A standup group is already registered for this conversation."

    async def test_command_after_bot_mention(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "<at>Standup Agent</at> !register", mentions=[BOT])
        assert outbox.texts == ["Standup group registered successfully!"]

    async def test_add_ignores_the_bot_mention(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(
            coordinator, outbox, fake_llm,
            "<at>Standup Agent</at> !add <at>Bob</at>",
            mentions=[BOT, BOB],
        )

        assert outbox.texts[-1] == "Added users: Bob"

    async def test_add_without_mentions(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!add")

        assert outbox.texts[-1] == "Please @mention the users you want to add."

    async def test_remove(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!add <at>Bob</at>", mentions=[BOB])
        await say(coordinator, outbox, fake_llm, "!remove <at>Bob</at>", mentions=[BOB])

        assert outbox.texts[-1] == "Removed users: Bob"

    async def test_group_details(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!group details")

        details = outbox.texts[-1]
        assert details.startswith("📊 **Standup Group Details**")
        assert "Members (1): Alice" in details
        assert "Status: No active standup" in details

    async def test_start_standup_replaces_placeholder_with_progress_view(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!start standup")

        assert outbox.texts[-1] == "Starting standup..."
        progress = outbox.cards[-1]
        group = await coordinator.validate_group(CONVERSATION, TENANT)
        assert group.is_standup_active
        assert progress["id"] == group.active_standup_activity_id
        assert "Standup Session" in card_texts(progress)

    async def test_start_standup_twice(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!start standup")
        await say(coordinator, outbox, fake_llm, "!start standup")

        assert outbox.texts[-1] == "A standup is already in progress."

    async def test_restart_keeps_responses(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!start standup")
        await coordinator.submit_response(
            CONVERSATION, StandupResponse(user_id="u1", completed_work="a", planned_work="b"), TENANT
        )
        await say(coordinator, outbox, fake_llm, "!restart standup")

        group = await coordinator.validate_group(CONVERSATION, TENANT)
        assert group.is_standup_active
        assert len(group.active_responses) == 1

    async def test_close_standup_sends_summary(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!start standup")
        await coordinator.submit_response(
            CONVERSATION, StandupResponse(user_id="u1", completed_work="shipped", planned_work="test"), TENANT
        )
        await say(coordinator, outbox, fake_llm, "!close standup")

        assert outbox.texts[-1] == "Standup closed and saved successfully."
        summary = outbox.cards[-1]
        assert "id" not in summary
        assert "**Alice**" in card_texts(summary)

    async def test_close_without_responses(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!start standup")
        await say(coordinator, outbox, fake_llm, "!close standup")

        assert outbox.texts[-1] == "No responses were recorded for this standup."

    async def test_parking_lot_keeps_original_casing(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!parkinglot Discuss Q3 Budget")

        assert outbox.texts[-1] == "Your parking lot item has been saved for the next standup."
        items = (await coordinator.get_parking_lot_items(CONVERSATION, TENANT)).data["parking_lot_items"]
        assert items[0].item == "Discuss Q3 Budget"

        await say(coordinator, outbox, fake_llm, "!parkinglot")
        assert "**Current Parking Lot Items**" in card_texts(outbox.cards[-1])

    async def test_history_settings(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")

        await say(coordinator, outbox, fake_llm, "!history on")
        assert outbox.texts[-1] == "History saving has been enabled."

        await say(coordinator, outbox, fake_llm, "!history status")
        assert outbox.texts[-1] == 'History saving is currently enabled. Use "!history on" or "!history off" to change.'

        await say(coordinator, outbox, fake_llm, "!history off")
        assert outbox.texts[-1] == "History saving has been disabled."

    async def test_history_view(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        await say(coordinator, outbox, fake_llm, "!history")

        assert "Historical Standups" in card_texts(outbox.cards[-1])

    async def test_commands_without_group(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!start standup")
        assert outbox.texts[-1] == "No standup group registered. Use !register to create one."

    async def test_unknown_command_is_ignored(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!dance")
        assert outbox.sent == []
        assert fake_llm.tool_requests == []

    async def test_activity_without_text_is_ignored(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, None)
        assert outbox.sent == []


# =============================================================================
# Natural language
# =============================================================================

class TestNaturalLanguage:

    async def test_group_tool_reply_suppresses_model_text(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        fake_llm.turns = [tool_turn("startStandup"), ChatTurn(content="I started the standup")]

        await say(coordinator, outbox, fake_llm, "let's kick off standup")

        assert "I started the standup" not in outbox.texts
        assert outbox.texts[-1] == "Starting standup..."
        assert (await coordinator.validate_group(CONVERSATION, TENANT)).is_standup_active

    async def test_group_tools_are_offered(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "what can you do?")

        names = [tool["function"]["name"] for tool in fake_llm.tool_requests[0]["tools"]]
        assert "startStandup" in names and "addParkingLot" in names
        assert "addWork" not in names
        assert outbox.texts == ["ok"]

    async def test_tool_result_goes_back_to_the_model(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        fake_llm.turns = [tool_turn("toggleHistory", enable=True), ChatTurn(content="History is on now.")]

        await say(coordinator, outbox, fake_llm, "please keep history")

        assert outbox.texts[-1] == "History is on now."
        tool_message = fake_llm.tool_requests[-1]["messages"][-1]
        assert tool_message["content"] == "History saving has been enabled."

    async def test_custom_instruction(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        fake_llm.turns = [
            tool_turn("setSpecialCustomInstruction", customInstruction="Say happy friday"),
            ChatTurn(content="Saved."),
        ]

        await say(coordinator, outbox, fake_llm, "on close say happy friday")

        group = await coordinator.validate_group(CONVERSATION, TENANT)
        assert group.custom_instructions == "Say happy friday"

    async def test_personal_chat_adds_work_item(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        fake_llm.turns = [tool_turn("addWork", item="write docs"), ChatTurn(content="Added.")]

        await say(coordinator, outbox, fake_llm, "add write docs to my list", conversation_id="dm-1", is_group=False)

        assert outbox.texts[-1] == f"Work item added to your standup group ({CONVERSATION})"
        names = [tool["function"]["name"] for tool in fake_llm.tool_requests[-1]["tools"]]
        assert "startStandup" not in names

    async def test_personal_chat_lists_standups(self, coordinator, outbox, fake_llm):
        await say(coordinator, outbox, fake_llm, "!register")
        fake_llm.turns = [tool_turn("listStandups"), ChatTurn(content="Here you go")]

        await say(coordinator, outbox, fake_llm, "which standups am I in", conversation_id="dm-1", is_group=False)

        assert outbox.texts[-1] == f"**Your Standups:**\n\n- Team A {CONVERSATION} (default)\n\n"

    async def test_model_failure_apologises(self, coordinator, outbox, fake_llm):
        async def broken(messages, tools):
            raise RuntimeError("model down")

        fake_llm.complete_with_tools = broken
        await say(coordinator, outbox, fake_llm, "start the standup")

        assert outbox.texts == [NOT_UNDERSTOOD]


# =============================================================================
# Storage failures
# =============================================================================

class FullDiskStorage(InMemoryStorage):
    async def set(self, key, record):
        raise StorageError("disk full", "file", key)


def failing_coordinator(llm):
    groups = PersistentStandupService(FullDiskStorage(), InMemoryStorage())
    user_settings = UserSettingsService(InMemoryStorage())
    group_service = StandupGroupService(groups, user_settings, llm=llm)
    user_service = UserStandupService(user_settings, group_service)
    return StandupCoordinator(group_service, user_service, InMemoryStorageFactory(), llm)


class TestStorageFailures:

    async def test_command_failure_is_reported(self, outbox, fake_llm):
        coordinator = failing_coordinator(fake_llm)

        await say(coordinator, outbox, fake_llm, "!register")

        assert outbox.texts == [COMMAND_FAILED]
        assert await coordinator.validate_group(CONVERSATION, TENANT) is None

    async def test_natural_language_failure_is_reported(self, outbox, fake_llm):
        coordinator = failing_coordinator(fake_llm)
        fake_llm.turns = [tool_turn("register"), ChatTurn(content="Registered")]

        await say(coordinator, outbox, fake_llm, "please register this chat")

        assert outbox.texts == [NOT_UNDERSTOOD]
