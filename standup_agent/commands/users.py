from .context import CommandContext
from ..agents.standup_coordinator import StandupCoordinator
from ..models.types import Failure, result_message


async def execute_add_users(context: CommandContext, coordinator: StandupCoordinator) -> str:
    if not context.mentions:
        message = "Please @mention the users you want to add."
    else:
        result = await coordinator.add_users(context.conversation_id, context.mentions, context.tenant_id)
        message = result_message(result)
    await context.send(message)
    return message


async def execute_remove_users(context: CommandContext, coordinator: StandupCoordinator) -> str:
    if not context.mentions:
        message = "Please @mention the users you want to remove."
    else:
        user_ids = [mention.id for mention in context.mentions]
        result = await coordinator.remove_users(context.conversation_id, user_ids, context.tenant_id)
        message = result_message(result)
    await context.send(message)
    return message


async def execute_group_details(context: CommandContext, coordinator: StandupCoordinator) -> str:
    result = await coordinator.get_group_details(context.conversation_id, context.tenant_id)
    if isinstance(result, Failure):
        await context.send(result.message)
        return result.message

    details = result.data
    members = details["members"]
    status = "Active standup in progress" if details["started_at"] else "No active standup"
    message = (
        "📊 **Standup Group Details**\n"
        f"Members ({len(members)}): {', '.join(member.name for member in members)}\n"
        f"Status: {status}\n"
        f"Storage: {details['storage_type']}"
    )
    await context.send(message)
    return message
