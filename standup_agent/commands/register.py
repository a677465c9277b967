from .context import CommandContext
from ..agents.standup_coordinator import StandupCoordinator
from ..models.types import User, result_message
from ..services.note_storage import NoStorage


async def execute_register(context: CommandContext, coordinator: StandupCoordinator, text: str) -> str:
    if await coordinator.validate_group(context.conversation_id, context.tenant_id):
        message = "A standup group is already registered for this conversation."
        await context.send(message)
        return message

    result = await coordinator.register_group(
        context.conversation_id,
        NoStorage(),
        User(id=context.user_id, name=context.user_name),
        context.tenant_id,
        include_history="--history" in text,
        conversation_name=context.conversation_name,
    )
    message = result_message(result)
    await context.send(message)
    return message
