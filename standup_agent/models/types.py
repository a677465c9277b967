"""
Core standup data model and the tagged result returned by every service call.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, Awaitable, Callable, Generic, List, Optional, TypeVar, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

T = TypeVar("T")

# Sends a text or activity dict to the conversation and returns the sent activity
SendFn = Callable[[Any], Awaitable[Any]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # Naive values are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class User(BaseModel):
    """A standup participant"""
    id: str
    name: str


class StandupResponse(BaseModel):
    """One user's answer for the running standup"""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    completed_work: str = Field(default="", alias="completedWork")
    planned_work: str = Field(default="", alias="plannedWork")
    parking_lot: Optional[str] = Field(default=None, alias="parkingLot")
    timestamp: UTCDateTime = Field(default_factory=utc_now)


class StandupSummary(BaseModel):
    """Immutable history record written when a standup closes"""
    model_config = ConfigDict(populate_by_name=True)

    date: UTCDateTime = Field(default_factory=utc_now)
    participants: List[User] = Field(default_factory=list)
    responses: List[StandupResponse] = Field(default_factory=list)
    parking_lot: List[str] = Field(default_factory=list, alias="parkingLot")


class StorageInfo(BaseModel):
    """Serializable description of a group's external note sink"""
    model_config = ConfigDict(populate_by_name=True)

    type: str = "none"
    target_id: Optional[str] = Field(default=None, alias="targetId")


class Page(BaseModel):
    id: str
    title: str


class ParkingLotItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item: str
    user_name: Optional[str] = Field(default=None, alias="userName")


class FormattedResponse(BaseModel):
    """A response joined with its author's display name"""
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias="userName")
    completed_work: str = Field(default="", alias="completedWork")
    planned_work: str = Field(default="", alias="plannedWork")
    parking_lot: Optional[str] = Field(default=None, alias="parkingLot")


class HistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: UTCDateTime
    group_name: Optional[str] = Field(default=None, alias="groupName")
    responses: List[FormattedResponse] = Field(default_factory=list)


# Tagged result
@dataclass
class Success(Generic[T]):
    data: T
    message: str
    type: str = "success"


@dataclass
class Failure:
    message: str
    type: str = "error"


Result = Union[Success[T], Failure]


def result_message(result: "Result") -> str:
    """User-facing text of a result, preferring the payload message on success"""
    if isinstance(result, Success) and isinstance(result.data, dict):
        return result.data.get("message", result.message)
    return result.message
