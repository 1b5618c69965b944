"""Exceptions raised by the sync subsystem."""


class SyncError(Exception):
    """Base class for sync failures."""


class ConfigurationError(SyncError):
    """An external source is configured in a way that cannot be synced (unknown type, missing credential)."""


class MalformedPayloadError(SyncError):
    """An external API returned a payload missing an expected field."""


class SyncInProgressError(SyncError):
    """A sync pass for the same external source is already running."""

    def __init__(self, source_id: int):
        super().__init__(f"Sync already in progress for external source {source_id}")
        self.source_id = source_id
