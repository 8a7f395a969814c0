"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError. RecordNotFoundError
is the only one the notification service lets escape to its callers.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialized or reached."""

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a deployment (or other primary record) does not exist.

    Optional lookups such as products return None instead.
    """

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type.capitalize()} not found: {resource_id}")


class DataIntegrityError(PersistenceError):
    """Raised when a write violates a database constraint."""

    pass
