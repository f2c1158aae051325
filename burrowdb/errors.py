"""Exception types raised by the storage engine."""


class DatabaseError(Exception):
    """Base class for every error the engine raises."""

    default_message = "Database error!"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class FileExistsDatabaseError(DatabaseError):
    """A file that should be created already exists."""

    default_message = "File already exists!"


class FileNotExistsError(DatabaseError):
    """A file that should be opened does not exist."""

    default_message = "File does not exists!"


class FileCannotRWError(DatabaseError):
    """A file cannot be both read and written."""

    default_message = "File cannot read or write!"


class BadXIDFileError(DatabaseError):
    """The transaction id file is malformed."""

    default_message = "Bad XID file!"


class InvalidFileAccessError(DatabaseError):
    """Reading or writing a backing file failed."""

    default_message = "Invalid file access!"


class MemoryTooSmallError(DatabaseError):
    """The memory granted to a cache is below the allowed minimum."""

    default_message = "Memory too small!"


class CacheFullError(DatabaseError):
    """The cache holds its maximum number of resources."""

    default_message = "Cache is full!"


class BadLogFileError(DatabaseError):
    """The log file is malformed."""

    default_message = "Bad log file!"