"""
External note sinks a standup group can append its closed summaries to.
"""
import asyncio
from html import escape
from typing import Awaitable, Callable, List, Optional, Protocol, TypeVar

import httpx

from ..models.types import Failure, Page, Result, StandupSummary, StorageInfo, Success
from ..utils.dates import DEFAULT_DISPLAY_TIMEZONE, format_long_date
from ..utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class StandupStorage(Protocol):
    async def get_pages(self) -> Result[List[Page]]:
        ...

    async def append_standup_summary(self, summary: StandupSummary) -> Result[None]:
        ...

    def get_storage_info(self) -> StorageInfo:
        ...


class NoStorage:
    """No-op sink used when a group keeps no external notes"""

    async def get_pages(self) -> Result[List[Page]]:
        return Success(data=[], message="No pages available")

    async def append_standup_summary(self, summary: StandupSummary) -> Result[None]:
        return Success(data=None, message="Operation skipped (no storage configured)")

    def get_storage_info(self) -> StorageInfo:
        return StorageInfo(type="none")


class OneNoteStorage:
    """Appends standup summaries to a OneNote page through Microsoft Graph"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        page_id: str,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        base_url: str = "https://graph.microsoft.com/v1.0",
        display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
    ):
        self.client = client
        self.page_id = page_id
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.base_url = base_url.rstrip("/")
        self.display_timezone = display_timezone

    def get_storage_info(self) -> StorageInfo:
        return StorageInfo(type="onenote", target_id=self.page_id)

    async def get_pages(self) -> Result[List[Page]]:
        async def _list_pages() -> List[Page]:
            response = await self.client.get(
                f"{self.base_url}/me/onenote/pages",
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            return [
                Page(id=page["id"], title=page.get("title", ""))
                for page in response.json().get("value", [])
            ]

        return await self._with_retry(_list_pages)

    async def append_standup_summary(self, summary: StandupSummary) -> Result[None]:
        async def _append() -> None:
            body = [
                {
                    "target": "body",
                    "action": "append",
                    "content": self.format_standup_content(summary),
                }
            ]
            response = await self.client.patch(
                f"{self.base_url}/me/onenote/pages/{self.page_id}/content",
                json=body,
            )
            response.raise_for_status()

        return await self._with_retry(_append)

    async def _with_retry(self, operation: Callable[[], Awaitable[T]]) -> Result[T]:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.retry_attempts + 1):
            try:
                data = await operation()
                return Success(data=data, message="Operation succeeded")
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"OneNote call failed (attempt {attempt}/{self.retry_attempts}): {e}")
                if attempt < self.retry_attempts:
                    await asyncio.sleep(self.retry_delay * attempt)

        return Failure(
            message=f"Operation failed after {self.retry_attempts} attempts: {last_error}"
        )

    def format_standup_content(self, summary: StandupSummary) -> str:
        """Render a summary as OneNote presentation HTML"""
        formatted_date = format_long_date(summary.date, self.display_timezone)
        participants = ", ".join(escape(p.name) for p in summary.participants)
        names = {p.id: p.name for p in summary.participants}

        rows = []
        for response in summary.responses:
            name = escape(names.get(response.user_id, "Unknown User"))
            completed = "<br/>".join(escape(line) for line in response.completed_work.split("\n"))
            planned = "<br/>".join(escape(line) for line in response.planned_work.split("\n"))
            rows.append(
                f"<tr><td><b>{name}</b></td>"
                f"<td><p><strong>Completed:</strong><br/>{completed}</p>"
                f"<p><strong>Planned:</strong><br/>{planned}</p></td></tr>"
            )

        parking_lot = ""
        if summary.parking_lot:
            items = "".join(f"<li>{escape(item)}</li>" for item in summary.parking_lot)
            parking_lot = f'<div class="parking-lot"><h3>Parking Lot</h3><ul>{items}</ul></div>'

        return (
            '<div style="border: 1px solid #ccc; padding: 15px; margin: 10px 0;">'
            f'<h2 style="color: #2B579A;">{formatted_date}</h2>'
            f"<div><b>Participants:</b> {participants}</div>"
            '<table style="width: 100%; border-collapse: collapse;">'
            "<thead><tr><th>Team Member</th><th>Update</th></tr></thead>"
            f"<tbody>{''.join(rows)}</tbody></table>"
            f"{parking_lot}</div>"
        )
