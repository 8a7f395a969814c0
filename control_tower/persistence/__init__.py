"""Persistence layer: SQLAlchemy sessions and repositories.

Implements the collaborator contracts the notification service depends on:
deployment lookup/listing, notification-state write-back, product lookup,
user lookup by name and role, and audit log appends.

Example usage:
    >>> from control_tower.persistence import init_database, repository_scope
    >>> init_database("sqlite:///./data/control_tower.db")
    >>> with repository_scope() as repos:
    ...     deployment = repos.deployments.get_or_raise("d-1")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    AuditLogRepository,
    DeploymentRepository,
    ProductRepository,
    Repositories,
    UserRepository,
    repository_scope,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "DeploymentRepository",
    "ProductRepository",
    "UserRepository",
    "AuditLogRepository",
    "Repositories",
    "repository_scope",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
