"""Engine error types."""

from uuid import UUID


class EngineError(Exception):
    """Base class for engine errors."""


class CollectionUnavailableError(EngineError):
    """A record collection could not be fetched from the store."""

    def __init__(self, collection: str, cause: Exception | None = None):
        super().__init__(f"Collection '{collection}' is unavailable: {cause}")
        self.collection = collection
        self.cause = cause


class WriteBackError(EngineError):
    """Persisting a derived transition failed."""

    def __init__(self, video_id: UUID, cause: Exception):
        super().__init__(f"Write-back failed for video {video_id}: {cause}")
        self.video_id = video_id
        self.cause = cause
