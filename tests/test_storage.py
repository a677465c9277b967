"""
Tests for the key/value storage backends.

The same contract runs against memory, JSON files under tmp_path and
SQLite through aiosqlite.
"""
import pytest
import pytest_asyncio
from sqlalchemy import select

from standup_agent.config import TestingConfig
from standup_agent.core.exceptions import StorageError, TenantRequiredError
from standup_agent.database import build_engine
from standup_agent.models.base import StorageDocument
from standup_agent.storage import (
    DatabaseStorageFactory,
    FileStorageFactory,
    InMemoryStorageFactory,
    NullStorageFactory,
    build_storage_factory,
)

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture(params=["memory", "file", "database"])
async def factory(request, tmp_path):
    if request.param == "memory":
        factory = InMemoryStorageFactory()
    elif request.param == "file":
        factory = FileStorageFactory(str(tmp_path / "data"))
    else:
        config = TestingConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'standup.db'}")
        factory = DatabaseStorageFactory(build_engine(config))

    await factory.initialize()
    yield factory
    await factory.close()


def record(key, tenant_id="tenant-1", **extra):
    return {"id": key, "tenantId": tenant_id, "type": "group", **extra}


# =============================================================================
# Storage contract
# =============================================================================

class TestStorageContract:

    async def test_set_then_get(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("conv-1", record("conv-1", users=[{"id": "u1", "name": "Alice"}]))

        loaded = await storage.get("conv-1", "tenant-1")
        assert loaded["users"] == [{"id": "u1", "name": "Alice"}]

    async def test_missing_key_returns_none(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        assert await storage.get("nope", "tenant-1") is None

    async def test_set_overwrites(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("conv-1", record("conv-1", saveHistory=False))
        await storage.set("conv-1", record("conv-1", saveHistory=True))

        loaded = await storage.get("conv-1", "tenant-1")
        assert loaded["saveHistory"] is True
        assert len(await storage.query_by_tenant_id("tenant-1")) == 1

    async def test_tenants_are_isolated(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("conv-1", record("conv-1", tenant_id="tenant-1"))
        await storage.set("conv-1", record("conv-1", tenant_id="tenant-2", marker="other"))

        assert (await storage.get("conv-1", "tenant-1")).get("marker") is None
        assert (await storage.get("conv-1", "tenant-2"))["marker"] == "other"
        assert [r["tenantId"] for r in await storage.query_by_tenant_id("tenant-2")] == ["tenant-2"]

    async def test_containers_are_isolated(self, factory):
        groups = factory.get_storage("StandupDB", "StandupGroups")
        history = factory.get_storage("StandupDB", "StandupHistory")
        await groups.set("conv-1", record("conv-1"))

        assert await history.get("conv-1", "tenant-1") is None

    async def test_similar_keys_stay_distinct(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("19:abc", record("19:abc", name="colon"))

        assert await storage.get("19_abc", "tenant-1") is None
        await storage.set("19_abc", record("19_abc", name="underscore"))
        assert (await storage.get("19:abc", "tenant-1"))["name"] == "colon"
        assert (await storage.get("19_abc", "tenant-1"))["name"] == "underscore"

    async def test_delete(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("conv-1", record("conv-1"))
        await storage.delete("conv-1", "tenant-1")
        await storage.delete("conv-1", "tenant-1")

        assert await storage.get("conv-1", "tenant-1") is None

    async def test_write_without_tenant_is_rejected(self, factory):
        storage = factory.get_storage("StandupDB", "StandupGroups")
        with pytest.raises(TenantRequiredError) as exc_info:
            await storage.set("conv-1", {"id": "conv-1"})
        assert exc_info.value.message == "tenantId is required"

    async def test_storage_is_cached_per_container(self, factory):
        assert factory.get_storage("StandupDB", "A") is factory.get_storage("StandupDB", "A")
        assert factory.get_storage("StandupDB", "A") is not factory.get_storage("StandupDB", "B")


# =============================================================================
# Backend specifics
# =============================================================================

class TestMemoryStorage:

    async def test_records_are_copied(self):
        storage = InMemoryStorageFactory().get_storage("db", "c")
        original = record("k", users=[])
        await storage.set("k", original)
        original["users"].append("mutated")

        loaded = await storage.get("k", "tenant-1")
        loaded["users"].append("mutated again")
        assert (await storage.get("k", "tenant-1"))["users"] == []


class TestFileStorage:

    async def test_writes_pretty_json_with_encoded_names(self, tmp_path):
        factory = FileStorageFactory(str(tmp_path))
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("19:abc@thread.tacv2", record("19:abc@thread.tacv2"))

        files = list((tmp_path / "StandupDB" / "StandupGroups").glob("*.json"))
        assert [f.name for f in files] == ["tenant-1:19%3Aabc@thread.tacv2.json"]
        assert files[0].read_text().startswith("{\n  ")

    async def test_corrupt_record_raises_storage_error(self, tmp_path):
        factory = FileStorageFactory(str(tmp_path))
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("conv-1", record("conv-1"))
        path = tmp_path / "StandupDB" / "StandupGroups" / "tenant-1:conv-1.json"
        path.write_text("{not json")

        with pytest.raises(StorageError):
            await storage.get("conv-1", "tenant-1")
        assert await storage.query_by_tenant_id("tenant-1") == []

    async def test_clear_all(self, tmp_path):
        factory = FileStorageFactory(str(tmp_path / "data"))
        storage = factory.get_storage("StandupDB", "StandupGroups")
        await storage.set("conv-1", record("conv-1"))

        await factory.clear_all()
        assert await factory.get_storage("StandupDB", "StandupGroups").get("conv-1", "tenant-1") is None


class TestDatabaseStorage:

    async def test_overwrite_updates_one_timestamped_row(self, tmp_path):
        config = TestingConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'standup.db'}")
        factory = DatabaseStorageFactory(build_engine(config))
        await factory.initialize()
        storage = factory.get_storage("StandupDB", "StandupGroups")

        await storage.set("conv-1", record("conv-1", users=[]))
        await storage.set("conv-1", record("conv-1", users=[{"id": "u1", "name": "Alice"}]))

        async with factory._session_factory() as session:
            rows = (await session.execute(select(StorageDocument))).scalars().all()
        await factory.close()

        assert len(rows) == 1
        assert rows[0].container == "StandupDB/StandupGroups"
        assert rows[0].created_at is not None
        assert rows[0].updated_at is not None
        assert rows[0].document["users"] == [{"id": "u1", "name": "Alice"}]


class TestNullStorage:

    async def test_keeps_nothing(self):
        storage = NullStorageFactory().get_storage("db", "c")
        await storage.set("k", record("k"))
        assert await storage.get("k", "tenant-1") is None
        assert await storage.query_by_tenant_id("tenant-1") == []


class TestBuildStorageFactory:

    async def test_selects_backend_by_name(self, tmp_path):
        assert build_storage_factory(TestingConfig(storage_backend="none")).backend_name == "none"
        assert build_storage_factory(TestingConfig(storage_backend="memory")).backend_name == "memory"
        file_factory = build_storage_factory(
            TestingConfig(storage_backend="file", file_storage_path=str(tmp_path))
        )
        assert file_factory.backend_name == "file"

    async def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_storage_factory(TestingConfig(storage_backend="cosmos"))
