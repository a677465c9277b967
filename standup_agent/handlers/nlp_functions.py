"""
Natural-language tool sets for group and personal conversations.

Tools that message the user themselves flip ``did_message_user`` so the
model's closing text is not sent on top of their reply.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..agents.standup_coordinator import StandupCoordinator
from ..agents.tool_agent import ToolCallingAgent
from ..commands.context import CommandContext
from ..commands.register import execute_register
from ..commands.standup import execute_close_standup, execute_start_standup
from ..commands.users import execute_add_users, execute_group_details, execute_remove_users
from ..models.cards import card_message, create_historical_standups_card, create_parking_lot_card
from ..models.types import Failure, SendFn
from ..utils.logging import get_logger

logger = get_logger(__name__)

GROUP_PURPOSE = (
    "I can help you conduct standups by managing your standup group, adding or removing users, "
    "starting or closing standup sessions, managing history settings, viewing historical standups, "
    "and saving parking lot items for future standups."
)

PERSONAL_PURPOSE = """I can help you manage your personal standup experience! You can:
• View and manage your standup settings
• Set your default standup group
• Add work items to your default standup group
• View and clear your work items from your default group
• View your personal standup history across all teams
• Manage which standups you participate in"""


@dataclass
class MessageState:
    send: SendFn
    did_message_user: bool = False

    async def reply(self, message: Any) -> Any:
        self.did_message_user = True
        return await self.send(message)


def _string_parameter(name: str, description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: {"type": "string", "description": description}},
        "required": [name],
    }


def register_group_chat_functions(
    agent: ToolCallingAgent,
    context: CommandContext,
    coordinator: StandupCoordinator,
    state: MessageState,
    text: str,
) -> None:
    # Commands reply through state.reply
    replying = CommandContext(
        send=state.reply,
        conversation_id=context.conversation_id,
        user_id=context.user_id,
        user_name=context.user_name,
        tenant_id=context.tenant_id,
        conversation_name=context.conversation_name,
        mentions=context.mentions,
        is_group=context.is_group,
    )

    async def register(args: Dict[str, Any]) -> None:
        await execute_register(replying, coordinator, text)

    async def add(args: Dict[str, Any]) -> None:
        logger.info("Adding users to the standup group")
        await execute_add_users(replying, coordinator)

    async def remove(args: Dict[str, Any]) -> None:
        logger.info("Removing users from the standup group")
        await execute_remove_users(replying, coordinator)

    async def group_details(args: Dict[str, Any]) -> None:
        await execute_group_details(replying, coordinator)

    async def start_standup(args: Dict[str, Any]) -> None:
        logger.info("Starting a new standup session")
        await execute_start_standup(replying, coordinator)

    async def restart_standup(args: Dict[str, Any]) -> None:
        logger.info("Restarting the current standup session")
        await execute_start_standup(replying, coordinator, should_restart=True)

    async def close_standup(args: Dict[str, Any]) -> None:
        logger.info("Ending the current standup session")
        await execute_close_standup(replying, coordinator)

    async def toggle_history(args: Dict[str, Any]) -> str:
        enable = bool(args.get("enable", False))
        result = await coordinator.set_save_history(context.conversation_id, context.tenant_id, enable)
        return result.message

    async def set_custom_instruction(args: Dict[str, Any]) -> str:
        instruction = args.get("customInstruction", "")
        logger.info(f"Updating custom instruction to {instruction}")
        result = await coordinator.set_custom_instructions(
            context.conversation_id, context.tenant_id, instruction
        )
        return result.message

    async def check_history(args: Dict[str, Any]) -> Optional[str]:
        result = await coordinator.get_save_history(context.conversation_id, context.tenant_id)
        if isinstance(result, Failure):
            await state.reply(result.message)
            return None
        state_name = "enabled" if result.data["save_history"] else "disabled"
        return (
            f"History saving is currently {state_name}. "
            'You can change this with "enable history" or "disable history".'
        )

    async def view_history(args: Dict[str, Any]) -> None:
        await send_history(state.reply, coordinator, context)

    async def clear_parking_lot(args: Dict[str, Any]) -> str:
        result = await coordinator.clear_parking_lot(context.conversation_id, context.tenant_id, context.user_id)
        return result.message

    async def view_parking_lot(args: Dict[str, Any]) -> None:
        await send_parking_lot(state.reply, coordinator, context)

    async def add_parking_lot(args: Dict[str, Any]) -> None:
        result = await coordinator.add_parking_lot_item(
            context.conversation_id, context.tenant_id, context.user_id, args.get("item", "")
        )
        await state.reply(result.message)

    async def purpose(args: Dict[str, Any]) -> str:
        return GROUP_PURPOSE

    agent.function("register", "Register a new standup group", register)
    agent.function("add", "Add users to the standup group", add)
    agent.function("remove", "Remove users from the standup group", remove)
    agent.function("groupDetails", "Show standup group information", group_details)
    agent.function("startStandup", "Start a new standup session", start_standup)
    agent.function("restartStandup", "Restart the current standup session", restart_standup)
    agent.function("closeStandup", "End the current standup session", close_standup)
    agent.function(
        "toggleHistory",
        "Enable or disable history saving for the standup group",
        toggle_history,
        {
            "type": "object",
            "properties": {"enable": {"type": "boolean", "description": "Enable or disable history saving"}},
            "required": ["enable"],
        },
    )
    agent.function(
        "setSpecialCustomInstruction",
        "Set a special custom instruction for agent to say when the standup closes",
        set_custom_instruction,
        _string_parameter(
            "customInstruction",
            "The custom instruction that the agent should follow when the standup closes.",
        ),
    )
    agent.function("checkHistory", "Check the current history saving setting", check_history)
    agent.function("viewHistory", "View historical standup information", view_history)
    agent.function("clearParkingLot", "Clear all items from the parking lot", clear_parking_lot)
    agent.function("viewParkingLot", "View current parking lot items", view_parking_lot)
    agent.function(
        "addParkingLot",
        "Add an item to discuss in the next standup's parking lot",
        add_parking_lot,
        _string_parameter("item", "The item to add to the parking lot"),
    )
    agent.function("purpose", "Explain the purpose of the bot", purpose)


def register_personal_chat_functions(
    agent: ToolCallingAgent,
    context: CommandContext,
    coordinator: StandupCoordinator,
    state: MessageState,
) -> None:
    async def view_settings(args: Dict[str, Any]) -> None:
        result = await coordinator.get_user_settings(context.user_id, context.tenant_id)
        if isinstance(result, Failure):
            await state.reply(result.message)
            return

        settings = result.data["settings"]
        if settings is None:
            await state.reply("You don't have any standup settings yet. Join a standup group to get started!")
            return

        groups = ", ".join(settings.standup_groups) if settings.standup_groups else "None"
        await state.reply(
            "**Your Standup Settings:**\n\n"
            f"**Standup Groups:** {groups}\n"
            f"**Default Standup:** {settings.default_standup_group or 'None set'}\n"
            f"**Last Updated:** {settings.last_updated:%Y-%m-%d %H:%M:%S %Z}"
        )

    async def set_default_standup(args: Dict[str, Any]) -> None:
        result = await coordinator.set_default_standup(
            context.user_id, context.tenant_id, args.get("standupIdOrName", "")
        )
        await state.reply(result.message)

    async def list_standups(args: Dict[str, Any]) -> Optional[str]:
        result = await coordinator.get_standups_for_user(context.user_id, context.tenant_id)
        if isinstance(result, Failure):
            await state.reply(result.message)
            return None

        standups = result.data["standups"]
        if not standups:
            await state.reply("You're not participating in any standups yet.")
            return None

        message = "**Your Standups:**\n\n"
        for standup in standups:
            name = f"{standup['conversation_name']} " if standup["conversation_name"] else ""
            default = " (default)" if standup["is_default"] else ""
            message += f"- {name}{standup['conversation_id']}{default}\n\n"
        await state.reply(message)
        return message

    async def add_work(args: Dict[str, Any]) -> None:
        result = await coordinator.add_work_item_to_default_group(
            context.user_id, context.tenant_id, args.get("item", "")
        )
        await state.reply(result.message)

    async def view_todays_work(args: Dict[str, Any]) -> None:
        result = await coordinator.get_work_items_from_default_group(context.user_id, context.tenant_id)
        if isinstance(result, Failure):
            await state.reply(result.message)
            return

        work_items = result.data["work_items"]
        group_id = result.data["group_id"]
        if not work_items:
            await state.reply(f"You haven't added any work items to your default standup group ({group_id}) yet.")
            return

        message = f"**Your Work Items for {result.data.get('group_name') or group_id}:**\n\n"
        for index, item in enumerate(work_items, start=1):
            message += f"{index}. {item}\n"
        await state.reply(message)

    async def clear_todays_work(args: Dict[str, Any]) -> None:
        result = await coordinator.clear_work_items_from_default_group(context.user_id, context.tenant_id)
        await state.reply(result.message)

    async def view_personal_history(args: Dict[str, Any]) -> None:
        result = await coordinator.get_historical_standups(context.tenant_id, user_id=context.user_id)
        if isinstance(result, Failure):
            await state.reply(result.message)
            return
        await state.reply(card_message(
            create_historical_standups_card(result.data["histories"], coordinator.group_service.display_timezone)
        ))

    async def purpose(args: Dict[str, Any]) -> str:
        return PERSONAL_PURPOSE

    agent.function("viewSettings", "Show your standup settings", view_settings)
    agent.function(
        "setDefaultStandup",
        "Set your default standup group",
        set_default_standup,
        _string_parameter("standupIdOrName", "The ID or Name of the standup group to set as default"),
    )
    agent.function("listStandups", "Show standups you participate in", list_standups)
    agent.function(
        "addWork",
        "Add a work item to your default standup group",
        add_work,
        _string_parameter("item", "The work item to add"),
    )
    agent.function("viewTodaysWork", "Show your work items from your default standup group", view_todays_work)
    agent.function("clearTodaysWork", "Clear your work items from your default standup group", clear_todays_work)
    agent.function("viewPersonalHistory", "View your personal standup history", view_personal_history)
    agent.function("purpose", "Explain what I can help you with", purpose)


async def send_history(send: SendFn, coordinator: StandupCoordinator, context: CommandContext) -> None:
    """History view for the conversation, or for the user in a 1:1 chat"""
    if context.is_group:
        result = await coordinator.get_historical_standups(context.tenant_id, conversation_id=context.conversation_id)
    else:
        result = await coordinator.get_historical_standups(context.tenant_id, user_id=context.user_id)

    if isinstance(result, Failure):
        await send(result.message)
        return
    await send(card_message(
        create_historical_standups_card(result.data["histories"], coordinator.group_service.display_timezone)
    ))


async def send_parking_lot(send: SendFn, coordinator: StandupCoordinator, context: CommandContext) -> None:
    result = await coordinator.get_parking_lot_items(context.conversation_id, context.tenant_id)
    if isinstance(result, Failure):
        await send(result.message)
        return
    await send(card_message(create_parking_lot_card(result.data["parking_lot_items"])))
