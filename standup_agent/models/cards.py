"""
Adaptive Cards for the standup agent.
Each builder returns the card body; wrap it with card_attachment() to send it.
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from .types import FormattedResponse, HistoryEntry, ParkingLotItem, StandupResponse, User
from ..utils.dates import DEFAULT_DISPLAY_TIMEZONE, format_long_date

CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"

FROM_PREVIOUS_PARKING_LOT = "(from previous parking lot)"
ADDED_BY_PREFIX = "(added by"
NOT_DISCUSSED_PREFIX = "Not Discussed - "
DISCUSSED_PREFIX = "Discussed - "

_LIST_MARKER = re.compile(r"^[-*]\s*")


def card_attachment(card: Dict[str, Any]) -> Dict[str, Any]:
    return {"contentType": CARD_CONTENT_TYPE, "content": card}


def card_message(card: Dict[str, Any], activity_id: Optional[str] = None) -> Dict[str, Any]:
    """A message activity carrying one card; with an id it updates that message"""
    message: Dict[str, Any] = {"type": "message", "attachments": [card_attachment(card)]}
    if activity_id:
        message["id"] = activity_id
    return message


def _card(body: List[Dict[str, Any]], actions: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    card: Dict[str, Any] = {
        "$schema": CARD_SCHEMA,
        "type": "AdaptiveCard",
        "version": "1.5",
        "body": body,
    }
    if actions:
        card["actions"] = actions
    return card


def convert_text_to_markdown_list(text: str, user_name: Optional[str] = None) -> str:
    """Turn newline separated text into a markdown list, tagging the author once"""
    lines = []
    for raw in text.strip().split("\n"):
        item = _LIST_MARKER.sub("", raw.strip())
        if user_name is None or ADDED_BY_PREFIX in item:
            lines.append(f"- {item}")
        else:
            lines.append(f"- {item} (added by {user_name})")
    return "\n".join(lines)


def _work_table(completed: str, planned: str) -> Dict[str, Any]:
    def row(label: str, text: str) -> Dict[str, Any]:
        return {
            "type": "TableRow",
            "cells": [
                {"type": "TableCell", "items": [{"type": "TextBlock", "text": label, "wrap": True}]},
                {
                    "type": "TableCell",
                    "items": [{
                        "type": "TextBlock",
                        "text": convert_text_to_markdown_list(text) if text else "-",
                        "wrap": True,
                        "weight": "Lighter",
                    }],
                },
            ],
        }

    return {
        "type": "Table",
        "columns": [{"width": 2}, {"width": 6}],
        "rows": [row("Yesterday", completed), row("Today", planned)],
    }


def create_standup_card(
    completed_users: Optional[List[str]] = None,
    previous_parking_lot: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Progress view of a running standup"""
    completed_users = completed_users or []
    previous_items = [
        convert_text_to_markdown_list(line.strip())
        for entry in (previous_parking_lot or [])
        for line in entry.split("\n")
        if line.strip()
    ]

    body: List[Dict[str, Any]] = [
        {"type": "TextBlock", "text": "Standup Session", "size": "Large", "weight": "Bolder"},
        {"type": "TextBlock", "text": "Enter your details by clicking the button below.", "wrap": True},
    ]
    if completed_users:
        body.append({
            "type": "TextBlock",
            "text": f"Completed responses: {', '.join(completed_users)}",
            "wrap": True,
            "spacing": "Medium",
        })
    if previous_items:
        body.append({
            "type": "TextBlock",
            "text": "Discussed Previous Parking Lot Items:",
            "wrap": True,
            "spacing": "Medium",
        })
        body.append({
            "type": "TextBlock",
            "text": "Uncheck the values that still need discussion",
            "wrap": True,
            "size": "Small",
            "isSubtle": True,
            "spacing": "None",
        })
        for index, item in enumerate(previous_items):
            body.append({
                "type": "Input.Toggle",
                "id": f"parking_lot_{index}",
                "title": item,
                "value": f"{DISCUSSED_PREFIX}{item}",
                "valueOn": f"{DISCUSSED_PREFIX}{item}",
                "valueOff": f"{NOT_DISCUSSED_PREFIX}{item}",
                "wrap": True,
            })

    actions = [
        {
            "type": "Action.Submit",
            "title": "Fill out your status",
            "style": "positive",
            "data": {"msteams": {"type": "task/fetch"}, "actionType": "standup_input"},
        },
        {
            "type": "Action.Execute",
            "title": "Close standup",
            "data": {"action": "close_standup"},
        },
    ]
    return _card(body, actions)


def create_closed_standup_card(responses: List[StandupResponse], users: List[User]) -> Dict[str, Any]:
    """Replaces the progress view once the standup is closed"""
    names = {user.id: user.name for user in users}
    responded = [names.get(r.user_id, "Unknown") for r in responses if r.completed_work or r.planned_work]
    return _card([
        {"type": "TextBlock", "text": "Standup Session", "size": "Large", "weight": "Bolder"},
        {"type": "TextBlock", "text": "This standup has been closed.", "wrap": True},
        {
            "type": "TextBlock",
            "text": f"Responses: {', '.join(responded) if responded else 'none'}",
            "wrap": True,
            "isSubtle": True,
        },
    ])


def create_standup_summary_card(
    responses: List[FormattedResponse],
    extra_message: Optional[str] = None,
    date: Optional[datetime] = None,
    tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
) -> Dict[str, Any]:
    date_text = format_long_date(date or datetime.now().astimezone(), tz_name)
    body: List[Dict[str, Any]] = [
        {
            "type": "ColumnSet",
            "columns": [
                {"type": "Column", "width": "stretch", "items": [
                    {"type": "TextBlock", "text": "**Standup**", "wrap": True, "style": "heading"},
                ]},
                {"type": "Column", "width": "auto", "items": [
                    {"type": "TextBlock", "text": date_text, "wrap": True},
                ]},
            ],
        }
    ]
    for response in responses:
        if not (response.completed_work or response.planned_work):
            continue
        body.append({"type": "TextBlock", "text": f"**{response.user_name}**", "wrap": True, "separator": True})
        body.append(_work_table(response.completed_work, response.planned_work))

    parking_lot = "\n".join(
        convert_text_to_markdown_list(r.parking_lot, r.user_name)
        for r in responses
        if r.parking_lot and r.parking_lot.strip()
    )
    if parking_lot:
        body.append({"type": "TextBlock", "text": "**Parking Lot**", "wrap": True, "separator": True})
        body.append({"type": "TextBlock", "text": parking_lot, "wrap": True})

    if extra_message:
        body.append({"type": "TextBlock", "text": extra_message, "wrap": True, "separator": True})

    return _card(body)


def create_parking_lot_card(items: List[ParkingLotItem]) -> Dict[str, Any]:
    body: List[Dict[str, Any]] = [
        {"type": "TextBlock", "text": "**Current Parking Lot Items**", "wrap": True, "style": "heading"},
    ]
    if not items:
        body.append({
            "type": "TextBlock",
            "text": "_No parking lot items have been added yet._",
            "wrap": True,
            "isSubtle": True,
        })
    for entry in items:
        if entry.user_name is None or ADDED_BY_PREFIX in entry.item:
            text = entry.item
        else:
            text = f"{entry.item} (added by {entry.user_name})"
        body.append({"type": "TextBlock", "text": text, "wrap": True, "spacing": "Small", "separator": True})
    return _card(body)


def create_historical_standups_card(
    histories: List[HistoryEntry],
    tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
) -> Dict[str, Any]:
    body: List[Dict[str, Any]] = [
        {"type": "TextBlock", "text": "Historical Standups", "size": "Large", "weight": "Bolder"},
    ]
    if not histories:
        body.append({"type": "TextBlock", "text": "_No standup history yet._", "wrap": True, "isSubtle": True})

    for history in histories:
        header: List[Dict[str, Any]] = [
            {"type": "TextBlock", "text": format_long_date(history.date, tz_name), "wrap": True, "style": "heading"},
        ]
        if history.group_name:
            header.append({"type": "TextBlock", "text": f"Group: {history.group_name}", "wrap": True, "size": "Small"})
        body.append({"type": "Container", "items": header})

        for response in history.responses:
            if not (response.completed_work or response.planned_work):
                continue
            body.append({"type": "TextBlock", "text": f"**{response.user_name}**", "wrap": True, "separator": True})
            body.append(_work_table(response.completed_work, response.planned_work))
    return _card(body)


def create_task_module(user: User, existing: Optional[StandupResponse] = None) -> Dict[str, Any]:
    """Form a user fills in to submit a standup response"""
    return _card(
        [
            {"type": "TextBlock", "text": f"{user.name}'s Standup Update", "size": "Large", "weight": "Bolder"},
            {"type": "TextBlock", "text": "What did you do since last standup?", "wrap": True},
            {
                "type": "Input.Text",
                "id": "completedWork",
                "isMultiline": True,
                "isRequired": True,
                "value": existing.completed_work if existing else None,
            },
            {"type": "TextBlock", "text": "What do you plan to do today?", "wrap": True},
            {
                "type": "Input.Text",
                "id": "plannedWork",
                "isMultiline": True,
                "isRequired": True,
                "value": existing.planned_work if existing else None,
            },
            {"type": "TextBlock", "text": "Parking Lot", "wrap": True},
            {
                "type": "Input.Text",
                "id": "parkingLot",
                "isMultiline": True,
                "value": existing.parking_lot if existing else None,
            },
        ],
        [{"type": "Action.Submit", "title": "Submit", "data": {"action": "submit_standup", "userId": user.id}}],
    )
