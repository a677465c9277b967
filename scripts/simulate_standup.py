#!/usr/bin/env python3
"""
Simulate a standup cycle

Registers a group, adds two members, starts a standup, submits both
responses and closes it against the configured storage backend.
"""

import asyncio
import json
import sys
import uuid
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from standup_agent.agents.standup_coordinator import StandupCoordinator
from standup_agent.config import get_settings
from standup_agent.models.types import StandupResponse, User, result_message
from standup_agent.services.note_storage import NoStorage


async def print_activity(activity):
    """Send callback that prints instead of posting to a chat"""
    if isinstance(activity, str):
        print(f"  💬 {activity}")
    else:
        print(f"  🃏 {json.dumps(activity)[:120]}...")
    return {"id": str(uuid.uuid4())}


async def simulate_standup():
    settings = get_settings()
    coordinator = await StandupCoordinator.create(settings)

    tenant_id = "demo-tenant"
    conversation_id = f"demo-conversation-{uuid.uuid4().hex[:8]}"
    alice = User(id="alice", name="Alice")
    bob = User(id="bob", name="Bob")

    print("=" * 60)
    print(f"Simulating standup in {conversation_id} ({settings.storage_backend} storage)")
    print("=" * 60)

    try:
        result = await coordinator.register_group(
            conversation_id, NoStorage(), alice, tenant_id, include_history=True, conversation_name="Demo Team"
        )
        print(f"\n1️⃣  Register: {result_message(result)}")

        result = await coordinator.add_users(conversation_id, [bob], tenant_id)
        print(f"2️⃣  Add users: {result_message(result)}")

        sent = await print_activity("Starting standup...")
        result = await coordinator.start_standup(conversation_id, tenant_id, sent["id"])
        print(f"3️⃣  Start: {result_message(result)}")

        for user, completed, planned in [
            (alice, "Finished the login page", "Start on the settings page"),
            (bob, "Reviewed pull requests", "Fix the flaky deploy job"),
        ]:
            response = StandupResponse(user_id=user.id, completed_work=completed, planned_work=planned)
            result = await coordinator.submit_response(conversation_id, response, tenant_id, print_activity)
            print(f"4️⃣  {user.name} submitted: {result_message(result)}")

        result = await coordinator.add_parking_lot_item(conversation_id, tenant_id, bob.id, "Discuss release date")
        print(f"5️⃣  Parking lot: {result_message(result)}")

        result = await coordinator.close_standup(conversation_id, tenant_id, print_activity)
        print(f"6️⃣  Close: {result_message(result)}")

        history = await coordinator.get_historical_standups(tenant_id, conversation_id=conversation_id)
        if history.type == "success":
            print(f"\n📚 History entries: {len(history.data['histories'])}")

        print("\n✅ Simulation complete!")
    finally:
        await coordinator.close()


if __name__ == "__main__":
    asyncio.run(simulate_standup())
