from typing import Optional


class LexideckError(Exception):
    """Base exception for lexideck errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class StorageError(LexideckError):
    """Base exception for key-value storage errors."""

    pass


class StorageConnectionError(StorageError):
    """Raised for errors connecting to the storage backend."""

    pass


class SchemaInitializationError(StorageError):
    """Raised for errors during schema setup."""

    pass


class MarshallingError(StorageError):
    """Indicates an error converting between card models and the persisted
    JSON format."""

    pass


class EnrichmentError(LexideckError):
    """Raised inside the dictionary and translation clients when a remote
    response cannot be used."""

    pass


class ExerciseFileError(LexideckError):
    """Raised when a lesson exercise file cannot be read or validated."""

    pass
