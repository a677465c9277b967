"""
Message handler for the standup agent.

Text starting with ``!`` is matched against the fixed commands. Anything
else goes to the language model with the tool set for the conversation type.
"""
from typing import Any

from .nlp_functions import (
    MessageState,
    register_group_chat_functions,
    register_personal_chat_functions,
    send_history,
    send_parking_lot,
)
from ..agents.standup_coordinator import StandupCoordinator
from ..agents.tool_agent import ToolCallingAgent
from ..commands.context import CommandContext
from ..commands.register import execute_register
from ..commands.standup import execute_close_standup, execute_start_standup
from ..commands.users import execute_add_users, execute_group_details, execute_remove_users
from ..models.activity import ChatActivity, remove_mention_text
from ..models.types import Failure, SendFn
from ..utils.logging import get_logger

logger = get_logger(__name__)

NLP_INSTRUCTIONS = (
    "You are a Standup Agent assistant that understands natural language commands. "
    "Use the tools available to you to figure out what the user wants to do."
)
NOT_UNDERSTOOD = "I couldn't understand that command. Try using ! prefix for direct commands."
COMMAND_FAILED = "Sorry, something went wrong while running that command. Please try again."
PARKING_LOT_COMMAND = "!parkinglot"


async def handle_message(
    activity: ChatActivity,
    send: SendFn,
    coordinator: StandupCoordinator,
    llm: Any,
    max_iterations: int = 5,
) -> None:
    if activity.text is None:
        return

    context = CommandContext.from_activity(activity, send)
    raw_text = remove_mention_text(activity.text)
    text = raw_text.lower().strip()

    if text.startswith("!"):
        logger.info(f"Exact command detected: {text}")
        try:
            await _handle_command(context, coordinator, text, raw_text)
        except Exception as e:
            logger.error(f"Error processing command {text}: {e}", exc_info=True)
            await send(COMMAND_FAILED)
        return

    logger.info(f"Natural language command detected: {text}")
    state = MessageState(send=send)
    try:
        agent = ToolCallingAgent(llm, NLP_INSTRUCTIONS, max_iterations=max_iterations)
        if context.is_group:
            register_group_chat_functions(agent, context, coordinator, state, text)
        else:
            register_personal_chat_functions(agent, context, coordinator, state)

        reply = await agent.send(text)
        if not state.did_message_user:
            await send(reply or "")
    except Exception as e:
        logger.error(f"Error processing natural language command: {e}", exc_info=True)
        await send(NOT_UNDERSTOOD)


async def _handle_command(
    context: CommandContext,
    coordinator: StandupCoordinator,
    text: str,
    raw_text: str,
) -> None:
    if "!register" in text:
        await execute_register(context, coordinator, text)
    elif "!add" in text:
        await execute_add_users(context, coordinator)
    elif text.startswith("!remove"):
        await execute_remove_users(context, coordinator)
    elif text.startswith("!history"):
        await _handle_history(context, coordinator, text)
    elif "group details" in text:
        await execute_group_details(context, coordinator)
    elif "restart standup" in text:
        await execute_start_standup(context, coordinator, should_restart=True)
    elif "start standup" in text:
        await execute_start_standup(context, coordinator)
    elif "close standup" in text:
        await execute_close_standup(context, coordinator)
    elif text.startswith(PARKING_LOT_COMMAND):
        # Keep the user's casing for the stored item
        item = raw_text.strip()[len(PARKING_LOT_COMMAND):].strip()
        if not item:
            await send_parking_lot(context.send, coordinator, context)
            return
        result = await coordinator.add_parking_lot_item(
            context.conversation_id, context.tenant_id, context.user_id, item
        )
        await context.send(result.message)
    else:
        logger.info(f"Unrecognised command: {text}")


async def _handle_history(context: CommandContext, coordinator: StandupCoordinator, text: str) -> None:
    if text == "!history" or "view" in text:
        await send_history(context.send, coordinator, context)
        return

    enable = "on" in text
    disable = "off" in text
    if not enable and not disable:
        result = await coordinator.get_save_history(context.conversation_id, context.tenant_id)
        if isinstance(result, Failure):
            await context.send(result.message)
            return
        await context.send(f'{result.message} Use "!history on" or "!history off" to change.')
        return

    result = await coordinator.set_save_history(context.conversation_id, context.tenant_id, enable)
    await context.send(result.message)
