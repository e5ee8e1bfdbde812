"""Store exceptions.

Bad input (blank user IDs or topics, non-positive limits) raises
``ValueError``; the classes here cover the database itself.
"""


class StoreError(Exception):
    """Base class for database failures."""


class ConnectionError(StoreError):  # noqa: A001
    """The store was used before ``connect()`` or after ``close()``."""

    def __init__(self, message: str = "Database not connected") -> None:
        super().__init__(message)


class MigrationError(StoreError):
    """A schema migration could not be applied or rolled back.

    Attributes:
        version: Version of the failing migration.
    """

    def __init__(self, version: int, message: str) -> None:
        self.version = version
        super().__init__(f"Migration {version} failed: {message}")
