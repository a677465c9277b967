from sqlalchemy import Column, Integer, DateTime, String, JSON, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class StorageDocument(Base):
    """A JSON record of one storage container, partitioned by tenant"""
    __tablename__ = "storage_documents"
    __table_args__ = (
        UniqueConstraint("container", "key", "tenant_id", name="uq_storage_document_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    container = Column(String(255), nullable=False)
    key = Column(String(512), nullable=False)
    tenant_id = Column(String(255), nullable=False, index=True)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<StorageDocument(container='{self.container}', key='{self.key}', tenant_id='{self.tenant_id}')>"
