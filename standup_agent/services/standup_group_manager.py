from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from .note_storage import StandupStorage
from .persistent_standup_service import PersistentStandupService
from ..models.standup_group import StandupGroup
from ..models.types import User
from ..utils.logging import get_logger

logger = get_logger(__name__)


class StandupGroupManager:
    """
    Load -> mutate -> save around a standup group.

    There is no locking: two concurrent edits of the same group both load the
    same snapshot and the last save wins.
    """

    def __init__(self, persistent_service: PersistentStandupService):
        self.persistent_service = persistent_service

    @asynccontextmanager
    async def editing(self, conversation_id: str, tenant_id: str) -> AsyncIterator[Optional[StandupGroup]]:
        """
        Yield the stored group (or None) and save it when the block exits normally.

        Usage:
            async with manager.editing(conversation_id, tenant_id) as group:
                if group:
                    group.add_user(user)
        """
        group = await self.persistent_service.load_group(conversation_id, tenant_id)
        yield group
        if group is not None:
            await self.persistent_service.save_group(group)

    async def create_group(
        self,
        conversation_id: str,
        storage: StandupStorage,
        creator: User,
        tenant_id: str,
        save_history: bool = False,
        conversation_name: Optional[str] = None,
    ) -> StandupGroup:
        group = StandupGroup(
            conversation_id=conversation_id,
            storage=storage,
            tenant_id=tenant_id,
            history_log=self.persistent_service,
            users=[creator],
            save_history=save_history,
            conversation_name=conversation_name,
        )
        await self.persistent_service.save_group(group)
        logger.info(f"Created standup group {conversation_id} for tenant {tenant_id}")
        return group

    async def load_group(self, conversation_id: str, tenant_id: str) -> Optional[StandupGroup]:
        """Read-only load; changes to the returned group are not saved"""
        return await self.persistent_service.load_group(conversation_id, tenant_id)

    async def get_all_groups(self, tenant_id: str) -> List[StandupGroup]:
        return await self.persistent_service.get_all_groups(tenant_id)
