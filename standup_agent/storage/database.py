from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from .base import Record, StorageFactory
from ..core.exceptions import StorageError, TenantRequiredError
from ..database import build_session_factory
from ..models.base import Base, StorageDocument
from ..utils.logging import get_logger

logger = get_logger(__name__)


class DatabaseStorage:
    """Document-table storage. The container name namespaces the rows."""

    def __init__(self, session_factory: async_sessionmaker, database_name: str, container_name: str):
        self._session_factory = session_factory
        self.container = f"{database_name}/{container_name}"

    async def get(self, key: str, tenant_id: str) -> Optional[Record]:
        try:
            async with self._session_factory() as session:
                stmt = select(StorageDocument).where(
                    StorageDocument.container == self.container,
                    StorageDocument.key == key,
                    StorageDocument.tenant_id == tenant_id,
                )
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
                return dict(row.document) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {self.container}/{key}: {e}", exc_info=True)
            raise StorageError(f"Failed to read record: {e}", "database", key) from e

    async def set(self, key: str, record: Record) -> None:
        tenant_id = record.get("tenantId")
        if not tenant_id:
            raise TenantRequiredError("database", key)
        try:
            async with self._session_factory() as session:
                stmt = select(StorageDocument).where(
                    StorageDocument.container == self.container,
                    StorageDocument.key == key,
                    StorageDocument.tenant_id == tenant_id,
                )
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
                if row is None:
                    session.add(StorageDocument(
                        container=self.container,
                        key=key,
                        tenant_id=tenant_id,
                        document=record,
                    ))
                else:
                    row.document = record
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write {self.container}/{key}: {e}", exc_info=True)
            raise StorageError(f"Failed to write record: {e}", "database", key) from e

    async def delete(self, key: str, tenant_id: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(StorageDocument).where(
                        StorageDocument.container == self.container,
                        StorageDocument.key == key,
                        StorageDocument.tenant_id == tenant_id,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete record: {e}", "database", key) from e

    async def query_by_tenant_id(self, tenant_id: str) -> List[Record]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(StorageDocument)
                    .where(
                        StorageDocument.container == self.container,
                        StorageDocument.tenant_id == tenant_id,
                    )
                    .order_by(StorageDocument.id)
                )
                result = await session.execute(stmt)
                return [dict(row.document) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to query tenant {tenant_id}: {e}", "database") from e


class DatabaseStorageFactory(StorageFactory):
    backend_name = "database"

    def __init__(self, engine: AsyncEngine):
        super().__init__()
        self.engine = engine
        self._session_factory = build_session_factory(engine)

    async def initialize(self) -> None:
        # Create the document table
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database storage initialized")

    def _create_storage(self, database_name: str, container_name: str) -> DatabaseStorage:
        return DatabaseStorage(self._session_factory, database_name, container_name)

    async def close(self) -> None:
        await super().close()
        await self.engine.dispose()
