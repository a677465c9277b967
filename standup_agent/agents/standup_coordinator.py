from typing import Any, Dict, List, Optional, Tuple

from ..config import Settings
from ..models.standup_group import StandupGroup
from ..models.types import Failure, Result, SendFn, StandupResponse, Success, User
from ..services.llm_provider import LLMProvider
from ..services.note_storage import StandupStorage
from ..services.persistent_standup_service import NoteStorageFactory, PersistentStandupService
from ..services.standup_group_service import StandupGroupService
from ..services.user_settings_service import UserSettingsService
from ..services.user_standup_service import UserStandupService
from ..storage.base import StorageFactory
from ..storage.factory import build_storage_factory
from ..utils.logging import get_logger

logger = get_logger(__name__)


class StandupCoordinator:
    """
    Single entry point for the standup agent.

    Group operations go to StandupGroupService, personal operations to
    UserStandupService. Build one with ``StandupCoordinator.create`` and
    release it with ``close``.
    """

    def __init__(
        self,
        group_service: StandupGroupService,
        user_service: UserStandupService,
        storage_factory: Optional[StorageFactory] = None,
        llm: Optional[Any] = None,
    ):
        self.group_service = group_service
        self.user_service = user_service
        self.storage_factory = storage_factory
        self.llm = llm

    @classmethod
    async def create(
        cls,
        config: Settings,
        llm_provider: Optional[Any] = None,
        storage_factory: Optional[StorageFactory] = None,
        note_storage_factory: Optional[NoteStorageFactory] = None,
    ) -> "StandupCoordinator":
        storage_factory = storage_factory or build_storage_factory(config)
        await storage_factory.initialize()

        persistent_service = PersistentStandupService(
            storage_factory.get_storage(config.database_name, config.group_container),
            storage_factory.get_storage(config.database_name, config.history_container),
            note_storage_factory,
        )
        user_settings_service = UserSettingsService(
            storage_factory.get_storage(config.database_name, config.user_settings_container)
        )
        llm = llm_provider or LLMProvider(config)
        group_service = StandupGroupService(
            persistent_service,
            user_settings_service,
            llm=llm,
            display_timezone=config.display_timezone,
        )
        user_service = UserStandupService(user_settings_service, group_service)

        logger.info("Standup coordinator initialized successfully")
        return cls(group_service, user_service, storage_factory, llm)

    async def close(self) -> None:
        if self.llm is not None and hasattr(self.llm, "close"):
            await self.llm.close()
        if self.storage_factory is not None:
            await self.storage_factory.close()
        logger.info("Standup coordinator closed")

    # Group standup operations

    async def register_group(
        self,
        conversation_id: str,
        storage: StandupStorage,
        creator: User,
        tenant_id: str,
        include_history: bool = True,
        conversation_name: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.register_group(
            conversation_id, storage, creator, tenant_id, include_history, conversation_name
        )

    async def add_users(self, conversation_id: str, users: List[User], tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.group_service.add_users(conversation_id, users, tenant_id)

    async def remove_users(self, conversation_id: str, user_ids: List[str], tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.group_service.remove_users(conversation_id, user_ids, tenant_id)

    async def start_standup(
        self, conversation_id: str, tenant_id: str, activity_id: Optional[str] = None
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.start_standup(conversation_id, tenant_id, activity_id)

    async def submit_response(
        self,
        conversation_id: str,
        response: StandupResponse,
        tenant_id: str,
        send: Optional[SendFn] = None,
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.submit_response(conversation_id, response, tenant_id, send)

    async def close_standup(
        self,
        conversation_id: str,
        tenant_id: str,
        send: Optional[SendFn] = None,
        to_be_restarted: bool = False,
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.close_standup(conversation_id, tenant_id, send, to_be_restarted)

    async def validate_group(self, conversation_id: str, tenant_id: str) -> Optional[StandupGroup]:
        return await self.group_service.validate_group(conversation_id, tenant_id)

    async def get_parking_lot_items(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.group_service.get_parking_lot_items(conversation_id, tenant_id)

    async def add_parking_lot_item(
        self, conversation_id: str, tenant_id: str, user_id: Optional[str], item: str
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.add_parking_lot_item(conversation_id, tenant_id, user_id, item)

    async def clear_parking_lot(
        self, conversation_id: str, tenant_id: str, user_id: Optional[str]
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.clear_parking_lot(conversation_id, tenant_id, user_id)

    async def get_save_history(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.group_service.get_save_history(conversation_id, tenant_id)

    async def set_save_history(self, conversation_id: str, tenant_id: str, enabled: bool) -> Result[Dict[str, Any]]:
        return await self.group_service.set_save_history(conversation_id, tenant_id, enabled)

    async def set_custom_instructions(
        self, conversation_id: str, tenant_id: str, instructions: str
    ) -> Result[Dict[str, Any]]:
        return await self.group_service.set_custom_instructions(conversation_id, tenant_id, instructions)

    async def get_group_details(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.group_service.get_group_details(conversation_id, tenant_id)

    # User standup operations

    async def get_user_settings(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.user_service.get_user_settings(user_id, tenant_id)

    async def set_default_standup(self, user_id: str, tenant_id: str, standup_group_id: str) -> Result[Dict[str, Any]]:
        return await self.user_service.set_default_standup(user_id, tenant_id, standup_group_id)

    async def get_standups_for_user(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        return await self.user_service.get_standups_for_user(user_id, tenant_id)

    # Work items on the user's default group

    async def _default_group_id(self, user_id: str, tenant_id: str, no_groups_message: str) -> Tuple[Optional[str], Optional[Failure]]:
        standups = await self.user_service.get_standups_for_user(user_id, tenant_id)
        if isinstance(standups, Failure):
            return None, standups

        entries = standups.data["standups"]
        target = next((s for s in entries if s["is_default"]), None)
        if target is not None:
            return target["conversation_id"], None
        if not entries:
            return None, Failure(message=no_groups_message)
        return None, Failure(
            message="You belong to multiple standup groups. Use 'set default standup' to choose your default group."
        )

    async def add_work_item_to_default_group(self, user_id: str, tenant_id: str, item: str) -> Result[Dict[str, Any]]:
        group_id, failure = await self._default_group_id(
            user_id, tenant_id,
            "You are not a member of any standup groups yet. Join a standup group first.",
        )
        if failure:
            return failure
        return await self.group_service.add_work_item(group_id, tenant_id, user_id, item)

    async def get_work_items_from_default_group(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        group_id, failure = await self._default_group_id(
            user_id, tenant_id, "You are not a member of any standup groups yet."
        )
        if failure:
            return failure

        group = await self.validate_group(group_id, tenant_id)
        if group is None:
            return Failure(message="Your default standup group no longer exists.")
        if not group.has_user(user_id):
            return Failure(message="You are not a member of your standup group.")

        response = next((r for r in group.active_responses if r.user_id == user_id), None)
        work_items = [
            line for line in (response.planned_work.split("\n") if response else []) if line.strip()
        ]
        return Success(
            data={"work_items": work_items, "group_id": group_id, "group_name": group.conversation_name},
            message="Work items retrieved successfully",
        )

    async def clear_work_items_from_default_group(self, user_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        group_id, failure = await self._default_group_id(
            user_id, tenant_id, "You are not a member of any standup groups yet."
        )
        if failure:
            return failure
        return await self.group_service.clear_work_items(group_id, tenant_id, user_id)

    # History across both services

    async def get_historical_standups(
        self,
        tenant_id: str,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        if conversation_id:
            return await self.group_service.get_group_historical_standups(conversation_id, tenant_id)
        if user_id:
            return await self.user_service.get_personal_historical_standups(user_id, tenant_id)
        return Failure(message="A conversation or a user is required to look up history.")
