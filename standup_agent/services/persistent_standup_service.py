"""
Persistent Standup Service

Maps StandupGroup instances to GroupStorageItem records and keeps the
append-only history log of each group.
"""
from typing import Callable, List, Optional

from pydantic import ValidationError

from .note_storage import NoStorage, StandupStorage
from ..models.records import GroupStorageItem, HistoryStorageItem
from ..models.standup_group import StandupGroup
from ..models.types import StandupSummary, StorageInfo
from ..storage.base import Storage
from ..utils.logging import get_logger

logger = get_logger(__name__)

NoteStorageFactory = Callable[[StorageInfo], StandupStorage]


def default_note_storage_factory(info: StorageInfo) -> StandupStorage:
    """Restore a note sink from its stored description"""
    if info.type != "none":
        logger.warning(
            f"Cannot restore '{info.type}' note storage without a client, falling back to none"
        )
    return NoStorage()


class PersistentStandupService:
    """Load/save of standup groups and their history"""

    def __init__(
        self,
        group_storage: Storage,
        history_storage: Storage,
        note_storage_factory: Optional[NoteStorageFactory] = None,
    ):
        self.group_storage = group_storage
        self.history_storage = history_storage
        self.note_storage_factory = note_storage_factory or default_note_storage_factory

    def _group_from_item(self, item: GroupStorageItem) -> StandupGroup:
        return StandupGroup(
            conversation_id=item.id,
            storage=self.note_storage_factory(item.storage),
            tenant_id=item.tenant_id,
            history_log=self,
            users=item.users,
            active_responses=item.active_responses,
            started_at=item.started_at,
            active_standup_activity_id=item.active_standup_activity_id,
            save_history=item.save_history,
            custom_instructions=item.custom_instructions,
            conversation_name=item.conversation_name,
        )

    async def load_group(self, conversation_id: str, tenant_id: str) -> Optional[StandupGroup]:
        record = await self.group_storage.get(conversation_id, tenant_id)
        if not record:
            return None
        item = GroupStorageItem.model_validate(
            {**record, "id": record.get("id", conversation_id), "tenantId": record.get("tenantId", tenant_id)}
        )
        return self._group_from_item(item)

    async def save_group(self, group: StandupGroup) -> None:
        item = GroupStorageItem(
            id=group.conversation_id,
            tenant_id=group.tenant_id,
            users=group.users,
            started_at=group.started_at,
            active_responses=group.active_responses,
            active_standup_activity_id=group.active_standup_activity_id,
            storage=group.storage.get_storage_info(),
            save_history=group.save_history,
            custom_instructions=group.custom_instructions,
            conversation_name=group.conversation_name,
        )
        await self.group_storage.set(group.conversation_id, item.to_record())
        logger.debug(f"Saved group {group.conversation_id} for tenant {group.tenant_id}")

    async def get_all_groups(self, tenant_id: str) -> List[StandupGroup]:
        groups = []
        for record in await self.group_storage.query_by_tenant_id(tenant_id):
            if record.get("type") != "group":
                continue
            try:
                groups.append(self._group_from_item(GroupStorageItem.model_validate(record)))
            except ValidationError as e:
                logger.warning(f"Skipping malformed group record {record.get('id')}: {e}")
        return groups

    async def add_standup_history(self, group: StandupGroup, summary: StandupSummary) -> None:
        record = await self.history_storage.get(group.conversation_id, group.tenant_id)
        if record:
            history = HistoryStorageItem.model_validate(record)
        else:
            history = HistoryStorageItem(id=group.conversation_id, tenant_id=group.tenant_id)

        history.summaries.append(summary)
        await self.history_storage.set(group.conversation_id, history.to_record())
        logger.info(
            f"Appended standup history for {group.conversation_id} ({len(history.summaries)} entries)"
        )

    async def get_standup_history(self, group: StandupGroup) -> List[StandupSummary]:
        record = await self.history_storage.get(group.conversation_id, group.tenant_id)
        if not record:
            return []
        return HistoryStorageItem.model_validate(record).summaries
