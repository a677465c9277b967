from typing import Any, Dict, List

from .standup_group_service import StandupGroupService, format_responses
from .user_settings_service import UserSettingsService
from ..core.exceptions import StandupAgentError
from ..models.types import Failure, HistoryEntry, Result, Success
from ..utils.logging import get_logger

logger = get_logger(__name__)


class UserStandupService:
    """Personal (1:1 chat) view over a user's standup groups"""

    def __init__(self, user_settings_service: UserSettingsService, group_service: StandupGroupService):
        self.user_settings_service = user_settings_service
        self.group_service = group_service

    async def get_user_settings(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        try:
            settings = await self.user_settings_service.get_user_settings(user_id, tenant_id)
        except StandupAgentError as e:
            return Failure(message=f"Failed to get user settings: {e.message}")
        return Success(data={"settings": settings}, message="User settings retrieved successfully")

    async def set_default_standup(self, user_id: str, tenant_id: str, standup_group_id: str) -> Result[Dict[str, Any]]:
        try:
            await self.user_settings_service.set_default_standup(user_id, tenant_id, standup_group_id)
        except StandupAgentError as e:
            return Failure(message=e.message)
        message = "Default standup set successfully"
        return Success(data={"message": message}, message=message)

    async def get_standups_for_user(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        try:
            groups = await self.group_service.get_all_groups(tenant_id)
            settings = await self.user_settings_service.get_user_settings(user_id, tenant_id)
        except StandupAgentError as e:
            logger.error(f"Error getting user standups: {e}", exc_info=True)
            return Failure(message=f"Failed to get user standups: {e.message}")

        default_group = settings.default_standup_group if settings else None
        standups: List[Dict[str, Any]] = [
            {
                "conversation_id": group.conversation_id,
                "conversation_name": group.conversation_name,
                "is_default": group.conversation_id == default_group,
            }
            for group in groups
            if group.has_user(user_id)
        ]
        if len(standups) == 1:
            # A single standup is always the default
            standups[0]["is_default"] = True

        return Success(data={"standups": standups}, message="User standups retrieved successfully")

    async def get_personal_historical_standups(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        try:
            groups = await self.group_service.get_all_groups(tenant_id)
            histories: List[HistoryEntry] = []
            for group in groups:
                for summary in await self.group_service.get_standup_history_for_group(group):
                    own = [r for r in summary.responses if r.user_id == user_id]
                    if not own:
                        continue
                    histories.append(HistoryEntry(
                        date=summary.date,
                        group_name=group.conversation_name or group.conversation_id,
                        responses=format_responses(own, summary.participants),
                    ))
        except StandupAgentError as e:
            return Failure(message=f"Failed to get personal history: {e.message}")

        histories.sort(key=lambda h: h.date, reverse=True)
        return Success(data={"histories": histories}, message="History retrieved successfully")
