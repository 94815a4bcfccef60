"""
Error taxonomy for a migration pass.

ConfigurationError and TopLevelReadError are fatal. OwnerReadError and
RecordWriteError are recovered by the orchestrator and reported in the
pass summary.
"""

from typing import Any, Optional


class TaskIdsError(Exception):
    """Base class for every error raised by taskids."""
    pass


class ConfigurationError(TaskIdsError):
    """Missing or invalid bootstrap parameters."""
    pass


class TopLevelReadError(TaskIdsError):
    """The owner list could not be read."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read owners at '{path}': {cause}")


class OwnerReadError(TaskIdsError):
    """One owner's records could not be read."""

    def __init__(self, owner: str, cause: Optional[BaseException] = None):
        self.owner = owner
        self.cause = cause
        super().__init__(f"Failed to read records for owner '{owner}': {cause}")


class RecordWriteError(TaskIdsError):
    """One record's idOS update was rejected by the store."""

    def __init__(self, owner: str, key: str, value: Any, cause: Optional[BaseException] = None):
        self.owner = owner
        self.key = key
        self.value = value
        self.cause = cause
        super().__init__(f"Failed to update {owner}/{key} to idOS={value!r}: {cause}")
