from datetime import datetime, timezone
from typing import Optional


class StandupAgentError(Exception):
    """Base exception for standup agent errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.timestamp = datetime.now(timezone.utc)


class StorageError(StandupAgentError):
    """A storage backend failed to read or write a record."""

    def __init__(
        self,
        message: str,
        backend: str,
        key: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.key = key


class TenantRequiredError(StorageError):
    """A record was written without a tenantId."""

    def __init__(self, backend: str, key: Optional[str] = None) -> None:
        super().__init__("tenantId is required", backend, key)


class NotAMemberError(StandupAgentError):
    """The user is not a member of the requested standup group."""

    def __init__(self, message: str = "You are not a member of this standup group.") -> None:
        super().__init__(message)


class LLMProviderError(StandupAgentError):
    """The language model call failed."""

    def __init__(self, message: str, provider: str) -> None:
        super().__init__(message)
        self.provider = provider
