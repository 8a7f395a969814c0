"""Shared fixtures: log context isolation and an in-memory database."""

import pytest

from control_tower.domain.models import Deployment, Product, User
from control_tower.logging.context import clear_log_context
from control_tower.persistence import close_database, init_database, repository_scope


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def db():
    """Fresh in-memory database for each test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def seed(db):
    """Insert domain objects into the test database.

    Example:
        >>> seed(make_deployment(), make_product(), make_user("u1", "Jane", "jane@x.com"))
    """

    def _seed(*objects):
        with repository_scope() as repos:
            for obj in objects:
                if isinstance(obj, Deployment):
                    repos.deployments.add(obj)
                elif isinstance(obj, Product):
                    repos.products.add(obj)
                elif isinstance(obj, User):
                    repos.users.add(obj)
                else:
                    raise TypeError(f"Cannot seed {type(obj).__name__}")

    return _seed
