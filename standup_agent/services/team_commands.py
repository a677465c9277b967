"""
Team Commands - team registry operations over the Teams storage container.
"""
import json
import uuid
from typing import List, Optional

from pydantic import ValidationError

from ..models.team import Team, TeamCommand, TeamMember
from ..storage.base import Storage
from ..utils.logging import get_logger

logger = get_logger(__name__)

TEAM_NOT_FOUND = "Team not found"


class TeamCommands:
    """Applies TeamCommand requests and answers with a user-facing string"""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_team(self, team_id: str, tenant_id: str) -> Optional[Team]:
        record = await self.storage.get(team_id, tenant_id)
        return Team.model_validate(record) if record else None

    async def save_team(self, team: Team) -> None:
        await self.storage.set(team.id, team.to_record())

    async def get_all_teams(self, tenant_id: str) -> List[Team]:
        teams = []
        for record in await self.storage.query_by_tenant_id(tenant_id):
            if record.get("type") != "team":
                continue
            try:
                teams.append(Team.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping malformed team record {record.get('id')}: {e}")
        return teams

    async def handle_command(self, command: TeamCommand) -> str:
        handlers = {
            "create": self._create,
            "addMember": self._add_member,
            "joinTeam": self._join_team,
            "listMembers": self._list_members,
            "addChannel": self._add_channel,
            "setDetail": self._set_detail,
            "getDetail": self._get_detail,
            "list": self._list_teams,
            "listMyTeams": self._list_my_teams,
        }
        handler = handlers.get(command.type)
        if handler is None:
            return "Unknown command"
        logger.info(f"Handling team command {command.type} for tenant {command.tenant_id}")
        return await handler(command)

    async def _create(self, command: TeamCommand) -> str:
        if not command.name or not command.description:
            return "Usage: create <name> <description>"

        team = Team(
            id=str(uuid.uuid4()),
            name=command.name,
            description=command.description,
            channel_ids=[command.channel_id] if command.channel_id else [],
            tenant_id=command.tenant_id,
        )
        await self.save_team(team)
        return f"Team created: {team.name} (ID: {team.id})"

    async def _add_member(self, command: TeamCommand) -> str:
        if not command.team_id or not command.name:
            return "Usage: add-member <teamId> <name>"

        team = await self.get_team(command.team_id, command.tenant_id)
        if team is None:
            return TEAM_NOT_FOUND

        member = TeamMember(id=str(uuid.uuid4()), name=command.name)
        team.members.append(member)
        await self.save_team(team)
        return f"Added {member.name} to team {team.name}"

    async def _join_team(self, command: TeamCommand) -> str:
        if not command.team_id or not command.user_id or not command.name:
            return "Missing required information for joining team"

        team = await self.get_team(command.team_id, command.tenant_id)
        if team is None:
            return TEAM_NOT_FOUND
        if any(member.id == command.user_id for member in team.members):
            return "You are already a member of this team"

        member = TeamMember(id=command.user_id, name=command.name)
        team.members.append(member)
        await self.save_team(team)
        return f"You ({member.name}) have joined team {team.name}"

    async def _list_members(self, command: TeamCommand) -> str:
        if not command.team_id:
            return "Usage: list-members <teamId>"

        team = await self.get_team(command.team_id, command.tenant_id)
        if team is None:
            return TEAM_NOT_FOUND
        if not team.members:
            return "No members in team"
        return "\n".join(f"- {member.name}" for member in team.members)

    async def _add_channel(self, command: TeamCommand) -> str:
        if not command.team_id or not command.channel_id:
            return "Usage: add-channel <teamId> <channelId>"

        team = await self.get_team(command.team_id, command.tenant_id)
        if team is None:
            return TEAM_NOT_FOUND
        if command.channel_id in team.channel_ids:
            return "Channel already exists in team"

        team.channel_ids.append(command.channel_id)
        await self.save_team(team)
        return f"Added channel {command.channel_id} to team {team.name}"

    async def _set_detail(self, command: TeamCommand) -> str:
        if not command.team_id or not command.key or not command.value:
            return "Usage: set-detail <teamId> <key> <value>"

        team = await self.get_team(command.team_id, command.tenant_id)
        if team is None:
            return TEAM_NOT_FOUND

        team.details[command.key] = command.value
        await self.save_team(team)
        return f"Set {command.key}={command.value} for team {team.name}"

    async def _get_detail(self, command: TeamCommand) -> str:
        if not command.team_id:
            return "Usage: get-detail <teamId> <key>"

        team = await self.get_team(command.team_id, command.tenant_id)
        if team is None:
            return TEAM_NOT_FOUND
        if not command.key:
            return json.dumps(team.details, indent=2)

        value = team.details.get(command.key)
        if not value:
            return f"No value found for key: {command.key}"
        return f"{command.key}={value}"

    async def _list_teams(self, command: TeamCommand) -> str:
        teams = await self.get_all_teams(command.tenant_id)
        if not teams:
            return "No teams found"
        return "\n".join(
            f"{team.name} (ID: {team.id})\n"
            f"Description: {team.description}\n"
            f"Members: {len(team.members)}\n"
            f"Channels: {len(team.channel_ids)}\n"
            for team in teams
        )

    async def _list_my_teams(self, command: TeamCommand) -> str:
        teams = [
            team
            for team in await self.get_all_teams(command.tenant_id)
            if any(member.id == command.user_id for member in team.members)
        ]
        if not teams:
            return "You are not a member of any teams"
        return "\n".join(
            f"{team.name} (ID: {team.id})\n"
            f"Description: {team.description}\n"
            f"Members: {len(team.members)}\n"
            for team in teams
        )
