from typing import Optional

from ..core.exceptions import NotAMemberError
from ..models.records import UserSettings, UserSettingsStorageItem
from ..models.types import utc_now
from ..storage.base import Storage
from ..utils.logging import get_logger

logger = get_logger(__name__)


class UserSettingsService:
    """Per-user standup group membership and default group"""

    def __init__(self, user_settings_storage: Storage):
        self.storage = user_settings_storage

    @staticmethod
    def _user_key(user_id: str) -> str:
        return f"user_{user_id}"

    async def get_user_settings(self, user_id: str, tenant_id: str) -> Optional[UserSettings]:
        record = await self.storage.get(self._user_key(user_id), tenant_id)
        if not record:
            return None
        item = UserSettingsStorageItem.model_validate(record)
        return UserSettings.model_validate(item.model_dump(exclude={"id", "type"}))

    async def update_user_settings(self, settings: UserSettings) -> None:
        key = self._user_key(settings.user_id)
        item = UserSettingsStorageItem(
            id=key,
            **settings.model_dump(exclude={"last_updated"}),
            last_updated=utc_now(),
        )
        await self.storage.set(key, item.to_record())

    async def add_standup_group(self, user_id: str, tenant_id: str, standup_group_id: str) -> None:
        settings = await self.get_user_settings(user_id, tenant_id)
        if settings is None:
            settings = UserSettings(user_id=user_id, tenant_id=tenant_id)

        if standup_group_id in settings.standup_groups:
            return

        settings.standup_groups.append(standup_group_id)
        # Auto-set as default if it's the only one
        if len(settings.standup_groups) == 1:
            settings.default_standup_group = standup_group_id

        await self.update_user_settings(settings)
        logger.info(f"User {user_id} joined standup group {standup_group_id}")

    async def remove_standup_group(self, user_id: str, tenant_id: str, standup_group_id: str) -> None:
        settings = await self.get_user_settings(user_id, tenant_id)
        if settings is None:
            return

        settings.standup_groups = [g for g in settings.standup_groups if g != standup_group_id]
        if settings.default_standup_group == standup_group_id:
            settings.default_standup_group = (
                settings.standup_groups[0] if len(settings.standup_groups) == 1 else None
            )

        await self.update_user_settings(settings)
        logger.info(f"User {user_id} left standup group {standup_group_id}")

    async def set_default_standup(self, user_id: str, tenant_id: str, standup_group_id: str) -> None:
        settings = await self.get_user_settings(user_id, tenant_id)
        if settings is None:
            await self.add_standup_group(user_id, tenant_id, standup_group_id)
            return

        if standup_group_id not in settings.standup_groups:
            raise NotAMemberError()

        settings.default_standup_group = standup_group_id
        await self.update_user_settings(settings)
