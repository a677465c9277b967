"""
Standup Group Service

One operation per group command. Every operation loads the group, checks
its preconditions, applies the change and reports a Success or Failure.
"""
from typing import Any, Dict, List, Optional

from .note_storage import StandupStorage
from .persistent_standup_service import PersistentStandupService
from .standup_group_manager import StandupGroupManager
from .user_settings_service import UserSettingsService
from ..models.cards import (
    card_message,
    create_closed_standup_card,
    create_standup_card,
    create_standup_summary_card,
)
from ..models.standup_group import StandupGroup
from ..models.types import (
    Failure,
    FormattedResponse,
    HistoryEntry,
    ParkingLotItem,
    Result,
    SendFn,
    StandupResponse,
    StandupSummary,
    Success,
    User,
    utc_now,
)
from ..utils.dates import DEFAULT_DISPLAY_TIMEZONE, format_long_date
from ..utils.logging import get_logger

logger = get_logger(__name__)

NO_GROUP_MESSAGE = "No standup group registered. Use !register to create one."
NOTHING_TO_SAY = "NOTHING_TO_SAY"
STORAGE_TYPE_NAMES = {"none": "None", "onenote": "OneNote"}

CLOSING_REMARK_PROMPT = """Today's date is {date}.
You are a standup agent who has just wrapped up standup. As part of ending the standup, the group has this special instruction for you:
<INSTRUCTION>
{instructions}.
</INSTRUCTION>

It's possible that there is no output that is warranted. When that happens, simply say "NOTHING_TO_SAY". Otherwise, reply in a formal tone."""


def _ok(message: str, **extra: Any) -> Success[Dict[str, Any]]:
    return Success(data={"message": message, **extra}, message=message)


def format_responses(responses: List[StandupResponse], users: List[User]) -> List[FormattedResponse]:
    names = {user.id: user.name for user in users}
    return [
        FormattedResponse(
            user_name=names.get(r.user_id, "Unknown"),
            completed_work=r.completed_work,
            planned_work=r.planned_work,
            parking_lot=r.parking_lot,
        )
        for r in responses
    ]


class StandupGroupService:
    """Orchestrates group commands over the group manager and persistence"""

    def __init__(
        self,
        persistent_service: PersistentStandupService,
        user_settings_service: Optional[UserSettingsService] = None,
        llm: Optional[Any] = None,
        display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
    ):
        self.persistent_service = persistent_service
        self.group_manager = StandupGroupManager(persistent_service)
        self.user_settings_service = user_settings_service
        self.llm = llm
        self.display_timezone = display_timezone

    async def validate_group(self, conversation_id: str, tenant_id: str) -> Optional[StandupGroup]:
        return await self.group_manager.load_group(conversation_id, tenant_id)

    async def register_group(
        self,
        conversation_id: str,
        storage: StandupStorage,
        creator: User,
        tenant_id: str,
        include_history: bool = True,
        conversation_name: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        if await self.validate_group(conversation_id, tenant_id):
            return Failure(message="A standup group is already registered for this conversation.")

        await self.group_manager.create_group(
            conversation_id,
            storage,
            creator,
            tenant_id,
            save_history=include_history,
            conversation_name=conversation_name,
        )
        if self.user_settings_service:
            await self.user_settings_service.add_standup_group(creator.id, tenant_id, conversation_id)

        return _ok("Standup group registered successfully!")

    async def add_users(self, conversation_id: str, users: List[User], tenant_id: str) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            if not users:
                return Failure(message="Please @mention the users you want to add.")
            added = [user for user in users if group.add_user(user)]

        if not added:
            return Failure(message="No new users were added (they might already be in the group).")

        if self.user_settings_service:
            for user in added:
                await self.user_settings_service.add_standup_group(user.id, tenant_id, conversation_id)

        return _ok(f"Added users: {', '.join(user.name for user in added)}")

    async def remove_users(self, conversation_id: str, user_ids: List[str], tenant_id: str) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            if not user_ids:
                return Failure(message="Please @mention the users you want to remove.")
            members = {user.id: user for user in group.users}
            removed = [members[user_id] for user_id in user_ids if group.remove_user(user_id)]

        if not removed:
            return Failure(message="No users were removed (they might not be in the group).")

        if self.user_settings_service:
            for user in removed:
                await self.user_settings_service.remove_standup_group(user.id, tenant_id, conversation_id)

        return _ok(f"Removed users: {', '.join(user.name for user in removed)}")

    async def start_standup(
        self,
        conversation_id: str,
        tenant_id: str,
        activity_id: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            if group.is_standup_active:
                return Failure(message="A standup is already in progress.")
            if not group.users:
                return Failure(message="No users in the standup group. Add users with !add @user")

            result = await group.start_standup(activity_id)

        return _ok("Starting standup...", previous_parking_lot=result.get("previous_parking_lot"))

    async def submit_response(
        self,
        conversation_id: str,
        response: StandupResponse,
        tenant_id: str,
        send: Optional[SendFn] = None,
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message="No standup group registered.")
            if not response.completed_work or not response.planned_work:
                return Failure(message="Please provide both completed and planned work updates.")
            recorded = group.add_response(response)
            activity_id = group.active_standup_activity_id
            started_at = group.started_at
            users = group.users
            responses = group.active_responses

        if not recorded:
            return Failure(
                message="Could not record response. Make sure a standup is active and you haven't already responded."
            )

        if send is not None and activity_id:
            names = {user.id: user.name for user in users}
            completed_users = [
                names.get(r.user_id, "Unknown")
                for r in responses
                if started_at is not None and r.timestamp >= started_at
            ]
            history = await self.persistent_service.get_standup_history(group)
            previous_parking_lot = history[-1].parking_lot if history else None
            await send(card_message(create_standup_card(completed_users, previous_parking_lot), activity_id))

        return _ok("Your standup response has been recorded.")

    async def close_standup(
        self,
        conversation_id: str,
        tenant_id: str,
        send: Optional[SendFn] = None,
        to_be_restarted: bool = False,
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message="No standup group registered.")

            activity_id = group.active_standup_activity_id
            if (
                not to_be_restarted
                and group.is_standup_active
                and group.storage.get_storage_info().type != "none"
            ):
                persisted = await group.persist_standup()
                if isinstance(persisted, Failure):
                    logger.warning(f"Could not append standup notes for {conversation_id}: {persisted.message}")

            responses = await group.close_standup(to_be_restarted)
            users = group.users
            custom_instructions = group.custom_instructions

        if to_be_restarted:
            return _ok("Standup closed successfully without sending summary")

        if not responses:
            return Failure(message="No responses were recorded for this standup.")

        formatted = format_responses(responses, users)

        if send is not None and activity_id:
            await send(card_message(create_closed_standup_card(responses, users), activity_id))

        closing_remark = None
        if custom_instructions:
            closing_remark = await self._closing_remark(custom_instructions)

        summary = create_standup_summary_card(formatted, closing_remark, tz_name=self.display_timezone)
        return _ok("Standup closed and saved successfully.", summary=summary, closing_remark=closing_remark)

    async def _closing_remark(self, custom_instructions: str) -> Optional[str]:
        if self.llm is None:
            logger.info("No language model configured, skipping closing remark")
            return None

        prompt = CLOSING_REMARK_PROMPT.format(
            date=format_long_date(utc_now(), self.display_timezone),
            instructions=custom_instructions,
        )
        try:
            result = await self.llm.generate_completion(
                "What is the message, if any, for the users?",
                system_prompt=prompt,
            )
        except Exception as e:
            logger.warning(f"Closing remark generation failed: {e}", exc_info=True)
            return None

        content = (result.get("content") or "").strip()
        if not content or NOTHING_TO_SAY in content:
            logger.info(f"Nothing produced for closing remark: {content!r}")
            return None
        return content

    async def get_parking_lot_items(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        group = await self.validate_group(conversation_id, tenant_id)
        if group is None:
            return Failure(message=NO_GROUP_MESSAGE)

        names = {user.id: user.name for user in group.users}
        items = [
            ParkingLotItem(item=line, user_name=names.get(response.user_id))
            for response in group.active_responses
            if response.parking_lot
            for line in response.parking_lot.split("\n")
        ]
        return Success(
            data={"parking_lot_items": items},
            message="Parking lot items retrieved successfully",
        )

    async def add_parking_lot_item(
        self,
        conversation_id: str,
        tenant_id: str,
        user_id: Optional[str],
        item: str,
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            group.add_parking_lot_item(user_id, item)
        return _ok("Your parking lot item has been saved for the next standup.")

    async def clear_parking_lot(
        self,
        conversation_id: str,
        tenant_id: str,
        user_id: Optional[str],
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            result = group.clear_parking_lot(user_id)

        if isinstance(result, Failure):
            return result
        return _ok(result.message, cleared=len(result.data))

    async def get_save_history(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        group = await self.validate_group(conversation_id, tenant_id)
        if group is None:
            return Failure(message=NO_GROUP_MESSAGE)
        state = "enabled" if group.save_history else "disabled"
        return Success(
            data={"save_history": group.save_history},
            message=f"History saving is currently {state}.",
        )

    async def set_save_history(self, conversation_id: str, tenant_id: str, enabled: bool) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            group.set_save_history(enabled)
        return _ok(f"History saving has been {'enabled' if enabled else 'disabled'}.")

    async def set_custom_instructions(
        self,
        conversation_id: str,
        tenant_id: str,
        instructions: str,
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message=NO_GROUP_MESSAGE)
            group.set_custom_instructions(instructions)
        logger.info(f"Updated custom instruction for {conversation_id}")
        return _ok(f"Custom instruction '{instructions}' was saved successfully!")

    async def get_group_details(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        group = await self.validate_group(conversation_id, tenant_id)
        if group is None:
            return Failure(message=NO_GROUP_MESSAGE)

        storage_type = group.storage.get_storage_info().type
        return Success(
            data={
                "members": group.users,
                "started_at": group.started_at,
                "storage_type": STORAGE_TYPE_NAMES.get(storage_type, storage_type),
                "save_history": group.save_history,
                "conversation_name": group.conversation_name,
            },
            message="Group details retrieved successfully",
        )

    async def get_group_historical_standups(self, conversation_id: str, tenant_id: str) -> Result[Dict[str, Any]]:
        group = await self.validate_group(conversation_id, tenant_id)
        if group is None:
            return Failure(message="No standup group found for this conversation.")

        summaries = await self.persistent_service.get_standup_history(group)
        histories = [
            HistoryEntry(date=summary.date, responses=format_responses(summary.responses, summary.participants))
            for summary in summaries
        ]
        return Success(data={"histories": histories}, message="History retrieved successfully")

    async def add_work_item(
        self,
        conversation_id: str,
        tenant_id: str,
        user_id: str,
        item: str,
    ) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message="Your standup group no longer exists or you don't have access to it.")
            if not group.has_user(user_id):
                return Failure(message="You are not a member of your standup group.")
            group.add_work_item(user_id, item)
        return _ok(f"Work item added to your standup group ({conversation_id})")

    async def clear_work_items(self, conversation_id: str, tenant_id: str, user_id: str) -> Result[Dict[str, Any]]:
        async with self.group_manager.editing(conversation_id, tenant_id) as group:
            if group is None:
                return Failure(message="Your default standup group no longer exists.")
            if not group.has_user(user_id):
                return Failure(message="You are not a member of your standup group.")
            group.clear_work_items(user_id)
        return _ok(f"Work items cleared from your standup group ({conversation_id})")

    async def get_all_groups(self, tenant_id: str) -> List[StandupGroup]:
        return await self.group_manager.get_all_groups(tenant_id)

    async def get_standup_history_for_group(self, group: StandupGroup) -> List[StandupSummary]:
        return await self.persistent_service.get_standup_history(group)
