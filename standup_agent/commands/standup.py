from .context import CommandContext
from ..agents.standup_coordinator import StandupCoordinator
from ..models.cards import card_message, create_standup_card
from ..models.types import Failure
from ..utils.logging import get_logger

logger = get_logger(__name__)


async def execute_start_standup(
    context: CommandContext,
    coordinator: StandupCoordinator,
    should_restart: bool = False,
) -> None:
    if should_restart:
        closed = await coordinator.close_standup(
            context.conversation_id, context.tenant_id, to_be_restarted=True
        )
        if isinstance(closed, Failure):
            await context.send(closed.message)
            return

    # The progress view replaces this message in place
    sent = await context.send("Starting standup...")
    activity_id = sent.get("id") if isinstance(sent, dict) else None

    result = await coordinator.start_standup(context.conversation_id, context.tenant_id, activity_id)
    if isinstance(result, Failure):
        await context.send(result.message)
        return

    logger.info(f"Standup started in {context.conversation_id}")
    card = create_standup_card([], result.data.get("previous_parking_lot"))
    await context.send(card_message(card, activity_id))


async def execute_close_standup(context: CommandContext, coordinator: StandupCoordinator) -> None:
    result = await coordinator.close_standup(context.conversation_id, context.tenant_id, send=context.send)
    if isinstance(result, Failure):
        await context.send(result.message)
        return

    await context.send(result.message)
    if result.data.get("summary"):
        await context.send(card_message(result.data["summary"]))
