"""
Standup API Endpoints

Read-only views of a standup group: details, history and parking lot
"""
from fastapi import APIRouter, Depends, HTTPException

from .messages import get_coordinator
from ...agents.standup_coordinator import StandupCoordinator
from ...models.types import Failure

router = APIRouter()


def _unwrap(result):
    if isinstance(result, Failure):
        raise HTTPException(status_code=404, detail=result.message)
    return result.data


@router.get("/{tenant_id}/{conversation_id}", response_model=dict)
async def get_group_details(
    tenant_id: str,
    conversation_id: str,
    coordinator: StandupCoordinator = Depends(get_coordinator),
):
    """Members, status and settings of a standup group"""
    details = _unwrap(await coordinator.get_group_details(conversation_id, tenant_id))
    started_at = details["started_at"]
    return {
        "conversation_id": conversation_id,
        "conversation_name": details["conversation_name"],
        "members": [member.model_dump() for member in details["members"]],
        "is_standup_active": started_at is not None,
        "started_at": started_at.isoformat() if started_at else None,
        "storage_type": details["storage_type"],
        "save_history": details["save_history"],
    }


@router.get("/{tenant_id}/{conversation_id}/history", response_model=dict)
async def get_group_history(
    tenant_id: str,
    conversation_id: str,
    coordinator: StandupCoordinator = Depends(get_coordinator),
):
    """Closed standups of a group, oldest first"""
    data = _unwrap(await coordinator.get_historical_standups(tenant_id, conversation_id=conversation_id))
    histories = [entry.model_dump(mode="json") for entry in data["histories"]]
    return {"histories": histories, "total": len(histories)}


@router.get("/{tenant_id}/{conversation_id}/parking-lot", response_model=dict)
async def get_parking_lot(
    tenant_id: str,
    conversation_id: str,
    coordinator: StandupCoordinator = Depends(get_coordinator),
):
    """Parking-lot items waiting for the next standup"""
    data = _unwrap(await coordinator.get_parking_lot_items(conversation_id, tenant_id))
    return {"items": [item.model_dump() for item in data["parking_lot_items"]]}
