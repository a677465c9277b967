"""
Interchangeable key/value storage backends for standup records.

- none: discards everything
- memory: process-local dictionary
- file: JSON files on disk
- database: SQLAlchemy document table
"""

from .base import Record, Storage, StorageFactory
from .null import NullStorage, NullStorageFactory
from .memory import InMemoryStorage, InMemoryStorageFactory
from .file import FileStorage, FileStorageFactory
from .database import DatabaseStorage, DatabaseStorageFactory
from .factory import build_storage_factory

__all__ = [
    "Record",
    "Storage",
    "StorageFactory",
    "NullStorage",
    "NullStorageFactory",
    "InMemoryStorage",
    "InMemoryStorageFactory",
    "FileStorage",
    "FileStorageFactory",
    "DatabaseStorage",
    "DatabaseStorageFactory",
    "build_storage_factory",
]
