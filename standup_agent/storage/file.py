import asyncio
import json
import shutil
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from .base import Record, StorageFactory
from ..core.exceptions import StorageError, TenantRequiredError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _safe_name(value: str) -> str:
    """Percent-encode so distinct keys never share a file name"""
    return quote(value, safe="@._-")


class FileStorage:
    """One pretty-printed JSON file per record under {base}/{database}/{container}"""

    def __init__(self, database_name: str, container_name: str, base_path: str = ".data"):
        self.database_name = database_name
        self.container_name = container_name
        self.path = Path(base_path) / database_name / container_name

    def _file_path(self, key: str, tenant_id: str) -> Path:
        return self.path / f"{_safe_name(tenant_id)}:{_safe_name(key)}.json"

    async def get(self, key: str, tenant_id: str) -> Optional[Record]:
        file_path = self._file_path(key, tenant_id)
        try:
            text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt record file {file_path}: {e}", "file", key) from e

    async def set(self, key: str, record: Record) -> None:
        tenant_id = record.get("tenantId")
        if not tenant_id:
            raise TenantRequiredError("file", key)
        file_path = self._file_path(key, tenant_id)
        payload = json.dumps(record, indent=2)

        def _write() -> None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(payload, encoding="utf-8")

        await asyncio.to_thread(_write)

    async def delete(self, key: str, tenant_id: str) -> None:
        file_path = self._file_path(key, tenant_id)
        await asyncio.to_thread(file_path.unlink, missing_ok=True)

    async def query_by_tenant_id(self, tenant_id: str) -> List[Record]:
        def _scan() -> List[Record]:
            if not self.path.exists():
                return []
            records = []
            for file_path in sorted(self.path.glob("*.json")):
                try:
                    record = json.loads(file_path.read_text(encoding="utf-8"))
                except json.JSONDecodeError:
                    logger.warning(f"Skipping unreadable record file {file_path}")
                    continue
                if record.get("tenantId") == tenant_id:
                    records.append(record)
            return records

        return await asyncio.to_thread(_scan)


class FileStorageFactory(StorageFactory):
    backend_name = "file"

    def __init__(self, base_path: str = ".data"):
        super().__init__()
        self.base_path = base_path

    async def initialize(self) -> None:
        logger.info(f"Making sure directory exists: {self.base_path}")
        await asyncio.to_thread(Path(self.base_path).mkdir, parents=True, exist_ok=True)

    def _create_storage(self, database_name: str, container_name: str) -> FileStorage:
        return FileStorage(database_name, container_name, self.base_path)

    async def clear_all(self) -> None:
        """Remove every stored record. Used by tests and the simulation script."""
        await asyncio.to_thread(shutil.rmtree, self.base_path, True)
        self._stores.clear()
