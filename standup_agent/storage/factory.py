from .base import StorageFactory
from .database import DatabaseStorageFactory
from .file import FileStorageFactory
from .memory import InMemoryStorageFactory
from .null import NullStorageFactory
from ..config import Settings
from ..database import build_engine
from ..utils.logging import get_logger

logger = get_logger(__name__)


def build_storage_factory(config: Settings) -> StorageFactory:
    """Select the storage backend named by ``config.storage_backend``"""
    backend = config.storage_backend.lower()

    if backend == "none":
        factory: StorageFactory = NullStorageFactory()
    elif backend == "memory":
        logger.warning("Using in-memory storage. This is not suitable for production.")
        factory = InMemoryStorageFactory()
    elif backend == "file":
        factory = FileStorageFactory(config.file_storage_path)
    elif backend == "database":
        factory = DatabaseStorageFactory(build_engine(config))
    else:
        raise ValueError(f"Unknown storage backend: {config.storage_backend}")

    logger.info(f"Using {factory.backend_name} storage backend")
    return factory
