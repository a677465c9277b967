"""
Tests for PersistentStandupService and StandupGroupManager.
"""
import pytest

from standup_agent.models.types import StandupResponse, StandupSummary, StorageInfo, User
from standup_agent.services.note_storage import NoStorage
from standup_agent.services.persistent_standup_service import PersistentStandupService
from standup_agent.services.standup_group_manager import StandupGroupManager
from standup_agent.storage.file import FileStorage
from standup_agent.storage.memory import InMemoryStorage

pytestmark = pytest.mark.asyncio

TENANT = "tenant-1"
ALICE = User(id="u1", name="Alice")


@pytest.fixture
def manager(persistent_service):
    return StandupGroupManager(persistent_service)


class TestPersistence:

    async def test_group_round_trips_through_storage(self, manager, persistent_service):
        await manager.create_group("conv-1", NoStorage(), ALICE, TENANT, save_history=True, conversation_name="Team A")

        group = await persistent_service.load_group("conv-1", TENANT)
        assert group.conversation_id == "conv-1"
        assert group.conversation_name == "Team A"
        assert group.save_history is True
        assert [u.name for u in group.users] == ["Alice"]
        assert group.storage.get_storage_info().type == "none"

    async def test_record_is_camel_case(self, manager, persistent_service):
        await manager.create_group("conv-1", NoStorage(), ALICE, TENANT)
        record = await persistent_service.group_storage.get("conv-1", TENANT)

        assert record["type"] == "group"
        assert record["tenantId"] == TENANT
        assert "saveHistory" in record and "activeResponses" in record
        assert record["storage"] == {"type": "none", "targetId": None}

    async def test_unknown_group_is_none(self, persistent_service):
        assert await persistent_service.load_group("missing", TENANT) is None

    async def test_file_backed_groups_keep_conversation_identity(self, tmp_path):
        storage = FileStorage("StandupDB", "StandupGroups", str(tmp_path))
        service = PersistentStandupService(storage, InMemoryStorage())
        await StandupGroupManager(service).create_group("19:abc", NoStorage(), ALICE, TENANT)

        assert await service.load_group("19_abc", TENANT) is None
        assert (await service.load_group("19:abc", TENANT)).conversation_id == "19:abc"

    async def test_get_all_groups_skips_foreign_and_malformed_records(self, manager, persistent_service):
        await manager.create_group("conv-1", NoStorage(), ALICE, TENANT)
        await persistent_service.group_storage.set("junk", {"id": "junk", "tenantId": TENANT, "type": "other"})
        await persistent_service.group_storage.set(
            "broken", {"id": "broken", "tenantId": TENANT, "type": "group", "users": "nope"}
        )

        groups = await persistent_service.get_all_groups(TENANT)
        assert [g.conversation_id for g in groups] == ["conv-1"]

    async def test_history_is_append_only(self, manager, persistent_service):
        group = await manager.create_group("conv-1", NoStorage(), ALICE, TENANT)
        await persistent_service.add_standup_history(group, StandupSummary(parking_lot=["one"]))
        await persistent_service.add_standup_history(group, StandupSummary(parking_lot=["two"]))

        history = await persistent_service.get_standup_history(group)
        assert [s.parking_lot for s in history] == [["one"], ["two"]]

    async def test_note_storage_is_restored_through_factory(self):
        restored = []

        def note_factory(info: StorageInfo):
            restored.append(info)
            return NoStorage()

        service = PersistentStandupService(InMemoryStorage(), InMemoryStorage(), note_factory)
        await StandupGroupManager(service).create_group("conv-1", NoStorage(), ALICE, TENANT)
        await service.load_group("conv-1", TENANT)

        assert restored[0].type == "none"


class TestEditing:

    async def test_changes_are_saved_on_exit(self, manager, persistent_service):
        await manager.create_group("conv-1", NoStorage(), ALICE, TENANT)

        async with manager.editing("conv-1", TENANT) as group:
            group.add_user(User(id="u2", name="Bob"))
            await group.start_standup()
            group.add_response(StandupResponse(user_id="u2", completed_work="a", planned_work="b"))

        reloaded = await persistent_service.load_group("conv-1", TENANT)
        assert [u.id for u in reloaded.users] == ["u1", "u2"]
        assert reloaded.is_standup_active
        assert reloaded.active_responses[0].completed_work == "a"

    async def test_nothing_saved_when_block_raises(self, manager, persistent_service):
        await manager.create_group("conv-1", NoStorage(), ALICE, TENANT)

        with pytest.raises(RuntimeError):
            async with manager.editing("conv-1", TENANT) as group:
                group.add_user(User(id="u2", name="Bob"))
                raise RuntimeError("boom")

        reloaded = await persistent_service.load_group("conv-1", TENANT)
        assert [u.id for u in reloaded.users] == ["u1"]

    async def test_missing_group_yields_none(self, manager):
        async with manager.editing("missing", TENANT) as group:
            assert group is None
