"""
Message handler for the team-registry agent.
"""
import json
from typing import Any, Dict, List, Optional

from ..agents.tool_agent import ToolCallingAgent
from ..models.activity import ChatActivity, remove_mention_text
from ..models.team import Team, TeamCommand
from ..services.team_commands import TeamCommands
from ..utils.logging import get_logger

logger = get_logger(__name__)

THREAD_SUFFIX = "@thread.tacv2"
NOT_UNDERSTOOD = "I had trouble understanding that request. Could you please rephrase it?"

NO_ARGUMENTS: Dict[str, Any] = {"type": "object", "properties": {}}


def channel_conversation_id(conversation_id: str) -> str:
    """Drop the per-message suffix so every reply in a channel maps to the channel"""
    if THREAD_SUFFIX in conversation_id:
        return conversation_id.split(THREAD_SUFFIX)[0] + THREAD_SUFFIX
    return conversation_id


def build_instructions(user_name: str, current_team: Optional[Team], member_teams: List[Team]) -> str:
    instructions = "You are a team management assistant that helps organize and manage team information. "
    if current_team:
        instructions += (
            f'You are currently in the context of team "{current_team.name}". '
            f"Here are the team's details: {json.dumps(current_team.details)}. "
        )
    else:
        instructions += "You are not currently in any team's context. "

    if member_teams:
        names = ", ".join(team.name for team in member_teams)
        instructions += f"The user ({user_name}) is a member of these teams: {names}. "
    else:
        instructions += f"The user ({user_name}) is not a member of any teams. "
    return instructions


async def handle_team_message(
    activity: ChatActivity,
    team_commands: TeamCommands,
    llm: Any,
    max_iterations: int = 5,
) -> str:
    """Answer one message; the reply is always returned, never sent directly"""
    try:
        tenant_id = activity.tenant_id
        channel_id = channel_conversation_id(activity.conversation.id)
        teams = await team_commands.get_all_teams(tenant_id)
        current_team = next((team for team in teams if channel_id in team.channel_ids), None)
        member_teams = [
            team for team in teams if any(member.id == activity.from_.id for member in team.members)
        ]

        agent = ToolCallingAgent(
            llm,
            build_instructions(activity.from_.name, current_team, member_teams),
            max_iterations=max_iterations,
        )
        _register_team_functions(agent, activity, team_commands, current_team, channel_id)

        reply = await agent.send(remove_mention_text(activity.text))
        return reply or ""
    except Exception as e:
        logger.error(f"Error processing team message: {e}", exc_info=True)
        return NOT_UNDERSTOOD


def _register_team_functions(
    agent: ToolCallingAgent,
    activity: ChatActivity,
    team_commands: TeamCommands,
    current_team: Optional[Team],
    channel_id: str,
) -> None:
    tenant_id = activity.tenant_id

    async def run(**fields: Any) -> str:
        return await team_commands.handle_command(TeamCommand(tenant_id=tenant_id, **fields))

    async def create_team(args: Dict[str, Any]) -> str:
        return await run(
            type="create",
            name=args.get("name"),
            description=args.get("description"),
            channel_id=channel_id,
        )

    async def list_my_teams(args: Dict[str, Any]) -> str:
        return await run(type="listMyTeams", user_id=activity.from_.id)

    agent.function(
        "createTeam",
        "Create a new team with a name and description",
        create_team,
        {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name of the team"},
                "description": {"type": "string", "description": "Description of the team"},
            },
            "required": ["name", "description"],
        },
    )

    if current_team is not None:
        team_id = current_team.id

        async def add_member(args: Dict[str, Any]) -> str:
            # Mentions win over the name the model extracted
            mentioned = [user.name for user in activity.mentions if user.name]
            if mentioned:
                results = [await run(type="addMember", team_id=team_id, name=name) for name in mentioned]
                return "\n".join(results)
            return await run(type="addMember", team_id=team_id, name=args.get("name"))

        async def join_team(args: Dict[str, Any]) -> str:
            return await run(type="joinTeam", team_id=team_id, user_id=activity.from_.id, name=activity.from_.name)

        async def list_members(args: Dict[str, Any]) -> str:
            return await run(type="listMembers", team_id=team_id)

        async def remember_detail(args: Dict[str, Any]) -> str:
            return await run(type="setDetail", team_id=team_id, key=args.get("key"), value=args.get("value"))

        async def get_detail(args: Dict[str, Any]) -> str:
            return await run(type="getDetail", team_id=team_id, key=args.get("key"))

        agent.function(
            "addMember",
            "Add members to the current team (handles @mentions)",
            add_member,
            {
                "type": "object",
                "properties": {"name": {"type": "string", "description": "Name of the member to add"}},
                "required": ["name"],
            },
        )
        agent.function("joinTeam", "Join the current team", join_team, NO_ARGUMENTS)
        agent.function("listMembers", "List all members in the current team", list_members, NO_ARGUMENTS)
        agent.function(
            "rememberDetail",
            "Remember a detail for the current team.",
            remember_detail,
            {
                "type": "object",
                "properties": {
                    "key": {"type": "string", "description": "Key for the detail"},
                    "value": {"type": "string", "description": "Value for the detail"},
                },
                "required": ["key", "value"],
            },
        )
        agent.function(
            "getDetail",
            "Get a custom detail from the current team",
            get_detail,
            {
                "type": "object",
                "properties": {"key": {"type": "string", "description": "Key of the detail, omit for all details"}},
            },
        )

    agent.function("listMyTeams", "List all teams you are a member of", list_my_teams, NO_ARGUMENTS)
