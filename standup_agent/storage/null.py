from typing import List, Optional

from .base import Record, StorageFactory


class NullStorage:
    """Storage that keeps nothing. Reads always miss."""

    async def get(self, key: str, tenant_id: str) -> Optional[Record]:
        return None

    async def set(self, key: str, record: Record) -> None:
        return None

    async def delete(self, key: str, tenant_id: str) -> None:
        return None

    async def query_by_tenant_id(self, tenant_id: str) -> List[Record]:
        return []


class NullStorageFactory(StorageFactory):
    backend_name = "none"

    def _create_storage(self, database_name: str, container_name: str) -> NullStorage:
        return NullStorage()
