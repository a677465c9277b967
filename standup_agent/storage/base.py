from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

Record = Dict[str, Any]


@runtime_checkable
class Storage(Protocol):
    """Key/value store of JSON records partitioned by tenant."""

    async def get(self, key: str, tenant_id: str) -> Optional[Record]:
        ...

    async def set(self, key: str, record: Record) -> None:
        ...

    async def delete(self, key: str, tenant_id: str) -> None:
        ...

    async def query_by_tenant_id(self, tenant_id: str) -> List[Record]:
        ...


class StorageFactory(ABC):
    """Creates and caches one Storage per (database, container)."""

    backend_name: str = "base"

    def __init__(self):
        self._stores: Dict[str, Storage] = {}

    async def initialize(self) -> None:
        """Prepare the backend. Safe to call more than once."""

    def get_storage(self, database_name: str, container_name: str) -> Storage:
        cache_key = f"{database_name}:{container_name}"
        if cache_key not in self._stores:
            self._stores[cache_key] = self._create_storage(database_name, container_name)
        return self._stores[cache_key]

    @abstractmethod
    def _create_storage(self, database_name: str, container_name: str) -> Storage:
        pass

    async def close(self) -> None:
        self._stores.clear()
