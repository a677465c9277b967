"""
StandupGroup - the per-conversation standup aggregate.

A group is Idle while ``started_at`` is None and Active otherwise. Every
state change is made through the methods below; persistence is handled by
the caller (see ``StandupGroupManager.editing``).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from .types import (
    Failure,
    Result,
    StandupResponse,
    StandupSummary,
    Success,
    User,
    utc_now,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


class HistoryLog(Protocol):
    async def get_standup_history(self, group: "StandupGroup") -> List[StandupSummary]:
        ...

    async def add_standup_history(self, group: "StandupGroup", summary: StandupSummary) -> None:
        ...


class StandupGroup:
    """Membership, collected responses and lifecycle state of one conversation"""

    def __init__(
        self,
        conversation_id: str,
        storage: Any,
        tenant_id: str,
        history_log: HistoryLog,
        users: Optional[List[User]] = None,
        active_responses: Optional[List[StandupResponse]] = None,
        started_at: Optional[datetime] = None,
        active_standup_activity_id: Optional[str] = None,
        save_history: bool = False,
        custom_instructions: Optional[str] = None,
        conversation_name: Optional[str] = None,
    ):
        self.conversation_id = conversation_id
        self.storage = storage
        self.tenant_id = tenant_id
        self.conversation_name = conversation_name
        self._history_log = history_log
        self._users: List[User] = list(users or [])
        self._active_responses: List[StandupResponse] = list(active_responses or [])
        self._started_at = started_at
        self._active_standup_activity_id = active_standup_activity_id
        self._save_history = save_history
        self._custom_instructions = custom_instructions

    # Accessors
    @property
    def users(self) -> List[User]:
        return [user.model_copy() for user in self._users]

    @property
    def active_responses(self) -> List[StandupResponse]:
        return [response.model_copy() for response in self._active_responses]

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def active_standup_activity_id(self) -> Optional[str]:
        return self._active_standup_activity_id

    @property
    def save_history(self) -> bool:
        return self._save_history

    @property
    def custom_instructions(self) -> Optional[str]:
        return self._custom_instructions

    @property
    def is_standup_active(self) -> bool:
        return self._started_at is not None

    def has_user(self, user_id: str) -> bool:
        return any(user.id == user_id for user in self._users)

    # Settings
    def set_save_history(self, value: bool) -> None:
        self._save_history = value

    def set_custom_instructions(self, text: Optional[str]) -> None:
        self._custom_instructions = text or None

    def set_active_standup_activity_id(self, activity_id: Optional[str]) -> None:
        self._active_standup_activity_id = activity_id

    # Membership
    def add_user(self, user: User) -> bool:
        if self.has_user(user.id):
            return False
        self._users.append(user)
        return True

    def remove_user(self, user_id: str) -> bool:
        initial = len(self._users)
        self._users = [user for user in self._users if user.id != user_id]
        return len(self._users) != initial

    # Lifecycle
    async def start_standup(self, activity_id: Optional[str] = None) -> Dict[str, Any]:
        """Move to Active. Returns success False when a standup is already running."""
        if self._started_at is not None:
            return {"success": False}

        previous_parking_lot = None
        if self._save_history:
            summaries = await self._history_log.get_standup_history(self)
            if summaries:
                previous_parking_lot = summaries[-1].parking_lot

        self._started_at = utc_now()
        self._active_standup_activity_id = activity_id
        logger.info(f"Standup started for {self.conversation_id}")

        return {"success": True, "previous_parking_lot": previous_parking_lot}

    def add_response(self, response: StandupResponse) -> bool:
        if self._started_at is None:
            return False
        self._active_responses = [
            r for r in self._active_responses if r.user_id != response.user_id
        ]
        self._active_responses.append(response)
        return True

    def add_parking_lot_item(self, user_id: Optional[str], text: str) -> bool:
        slot = user_id or ""
        existing = self._find_response(slot)
        if existing is not None:
            existing.parking_lot = f"{existing.parking_lot}\n{text}" if existing.parking_lot else text
        else:
            self._active_responses.append(
                StandupResponse(user_id=slot, parking_lot=text, timestamp=utc_now())
            )
        return True

    def add_work_item(self, user_id: Optional[str], item: str) -> bool:
        slot = user_id or ""
        existing = self._find_response(slot)
        if existing is not None:
            existing.planned_work = f"{existing.planned_work}\n{item}" if existing.planned_work else item
        else:
            self._active_responses.append(
                StandupResponse(user_id=slot, planned_work=item, timestamp=utc_now())
            )
        return True

    def clear_work_items(self, user_id: str) -> bool:
        existing = self._find_response(user_id)
        if existing is None:
            return False
        existing.planned_work = ""
        return True

    def clear_parking_lot(self, user_id: Optional[str]) -> Result[List[StandupResponse]]:
        logger.info(f"Clearing parking lot items as requested by user: {user_id}")
        if self._started_at is not None:
            return Failure(
                message="There is an active standup in progress. Cannot clear parking lot right now"
            )
        cleared = self._active_responses
        self._active_responses = []
        return Success(
            data=cleared,
            message=f"Parking lot cleared (Removed {len(cleared)} items)",
        )

    async def close_standup(self, to_be_restarted: bool = False) -> List[StandupResponse]:
        """Move to Idle and return the responses collected during the cycle."""
        if self._started_at is None:
            return []

        self._started_at = None
        responses = self.active_responses

        if self._save_history and not to_be_restarted:
            await self._history_log.add_standup_history(self, self._build_summary(responses))

        if not to_be_restarted:
            self._active_responses = []
        self._active_standup_activity_id = None
        logger.info(f"Standup closed for {self.conversation_id} (restart={to_be_restarted})")
        return responses

    async def persist_standup(self) -> Result[None]:
        """Append the current responses to the external note sink"""
        if not self._active_responses:
            return Failure(message="No active responses to persist")
        summary = self._build_summary(self.active_responses)
        return await self.storage.append_standup_summary(summary)

    def _build_summary(self, responses: List[StandupResponse]) -> StandupSummary:
        return StandupSummary(
            date=utc_now(),
            participants=self.users,
            responses=responses,
            parking_lot=[r.parking_lot for r in responses if r.parking_lot],
        )

    def _find_response(self, user_id: str) -> Optional[StandupResponse]:
        for response in self._active_responses:
            if response.user_id == user_id:
                return response
        return None
