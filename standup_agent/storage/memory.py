import copy
from typing import Dict, List, Optional

from .base import Record, StorageFactory
from ..core.exceptions import TenantRequiredError


class InMemoryStorage:
    """Process-local storage. Records are deep-copied on the way in and out."""

    def __init__(self):
        self._records: Dict[str, Record] = {}

    @staticmethod
    def _composite_key(key: str, tenant_id: str) -> str:
        return f"{tenant_id}:{key}"

    async def get(self, key: str, tenant_id: str) -> Optional[Record]:
        record = self._records.get(self._composite_key(key, tenant_id))
        return copy.deepcopy(record) if record is not None else None

    async def set(self, key: str, record: Record) -> None:
        tenant_id = record.get("tenantId")
        if not tenant_id:
            raise TenantRequiredError("memory", key)
        self._records[self._composite_key(key, tenant_id)] = copy.deepcopy(record)

    async def delete(self, key: str, tenant_id: str) -> None:
        self._records.pop(self._composite_key(key, tenant_id), None)

    async def query_by_tenant_id(self, tenant_id: str) -> List[Record]:
        return [
            copy.deepcopy(record)
            for record in self._records.values()
            if record.get("tenantId") == tenant_id
        ]


class InMemoryStorageFactory(StorageFactory):
    backend_name = "memory"

    def _create_storage(self, database_name: str, container_name: str) -> InMemoryStorage:
        return InMemoryStorage()
