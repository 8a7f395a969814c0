"""Data access layer (repositories) for persistence operations.

Repositories wrap a SQLAlchemy session and return domain models rather than
ORM models. They flush but never commit; the session owner decides when the
transaction ends (see get_session() and repository_scope()).
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Generator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from control_tower.domain.models import AuditEntry, Deployment, DeploymentStatus, Product, User

from .database import get_session
from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import AuditLogModel, DeploymentModel, ProductModel, UserModel

logger = logging.getLogger(__name__)


class DeploymentRepository:
    """Repository for deployment reads and notification bookkeeping."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, deployment_id: str) -> Optional[Deployment]:
        """Retrieve a deployment by id, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(DeploymentModel, deployment_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving deployment {deployment_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve deployment: {e}") from e

    def get_or_raise(self, deployment_id: str) -> Deployment:
        """Retrieve a deployment by id.

        Raises:
            RecordNotFoundError: If the deployment does not exist
            PersistenceError: If database error occurs
        """
        deployment = self.get(deployment_id)
        if deployment is None:
            raise RecordNotFoundError("deployment", deployment_id)
        return deployment

    def list_ids(self) -> List[str]:
        """Return every deployment id, soonest delivery date first.

        Only ids are read so that a single malformed row cannot fail the
        whole listing; callers load each deployment with get_or_raise().
        """
        try:
            stmt = select(DeploymentModel.id).order_by(
                DeploymentModel.next_delivery_date.asc(), DeploymentModel.id.asc()
            )
            return list(self.session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing deployments: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list deployments: {e}") from e

    def mark_notification_sent(
        self, deployment_id: str, reminder_key: str, sent_on: date
    ) -> Deployment:
        """Record that a reminder class was sent for a deployment on a given day.

        Only the one key is replaced; other reminder classes keep their dates.

        Raises:
            RecordNotFoundError: If the deployment does not exist
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(DeploymentModel, deployment_id)
            if model is None:
                raise RecordNotFoundError("deployment", deployment_id)

            # Reassign rather than mutate so the JSON column is marked dirty
            model.last_notification_sent = {
                **(model.last_notification_sent or {}),
                reminder_key: sent_on.isoformat(),
            }
            self.session.flush()
            return model.to_domain()

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                f"Error recording notification for deployment {deployment_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to record notification state: {e}") from e

    def update_status(self, deployment_id: str, status: DeploymentStatus) -> Deployment:
        """Set a deployment's status and return the updated record.

        Raises:
            RecordNotFoundError: If the deployment does not exist
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(DeploymentModel, deployment_id)
            if model is None:
                raise RecordNotFoundError("deployment", deployment_id)
            model.status = DeploymentStatus(status).value
            self.session.flush()
            return model.to_domain()

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                f"Error updating status for deployment {deployment_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to update deployment status: {e}") from e

    def add(self, deployment: Deployment) -> Deployment:
        """Insert a new deployment.

        Raises:
            DataIntegrityError: If the id already exists
            PersistenceError: If database error occurs
        """
        return _insert(self.session, DeploymentModel.from_domain(deployment), "deployment")


class ProductRepository:
    """Repository for product lookups."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, product_id: Optional[str]) -> Optional[Product]:
        """Retrieve a product by id, or None if absent or id is empty."""
        if not product_id:
            return None
        try:
            model = self.session.get(ProductModel, product_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving product {product_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve product: {e}") from e

    def add(self, product: Product) -> Product:
        return _insert(self.session, ProductModel.from_domain(product), "product")


class UserRepository:
    """Repository for the user lookups used by recipient resolution."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_name(self, name: str) -> List[User]:
        """Return users whose name equals ``name`` exactly (case-sensitive)."""
        return self._find(select(UserModel).where(UserModel.name == name), name)

    def find_by_role(self, role: str) -> List[User]:
        """Return every user holding ``role``."""
        return self._find(select(UserModel).where(UserModel.role == role), role)

    def _find(self, stmt, label: str) -> List[User]:
        try:
            models = self.session.execute(stmt.order_by(UserModel.id.asc())).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error looking up users for '{label}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up users: {e}") from e

    def add(self, user: User) -> User:
        return _insert(self.session, UserModel.from_domain(user), "user")


class AuditLogRepository:
    """Repository for appending and reading audit log entries."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, entry: AuditEntry) -> AuditEntry:
        """Append an audit entry.

        Raises:
            PersistenceError: If database error occurs
        """
        return _insert(self.session, AuditLogModel.from_domain(entry), "audit entry")

    def list_for_resource(self, resource_type: str, resource_id: str) -> List[AuditEntry]:
        """Return audit entries for one resource, newest first."""
        try:
            stmt = (
                select(AuditLogModel)
                .where(
                    AuditLogModel.resource_type == resource_type,
                    AuditLogModel.resource_id == resource_id,
                )
                .order_by(AuditLogModel.timestamp.desc(), AuditLogModel.id.desc())
            )
            models = self.session.execute(stmt).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(
                f"Error retrieving audit log for {resource_type}/{resource_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to retrieve audit log: {e}") from e


def _insert(session: Session, model, label: str):
    try:
        session.add(model)
        session.flush()
        return model.to_domain()
    except IntegrityError as e:
        logger.error(f"Integrity error inserting {label}: {e}", exc_info=True)
        raise DataIntegrityError(f"Failed to insert {label} due to constraint violation: {e}") from e
    except SQLAlchemyError as e:
        logger.error(f"Error inserting {label}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to insert {label}: {e}") from e


@dataclass
class Repositories:
    """The collaborator repositories the notification service needs, on one session."""

    deployments: DeploymentRepository
    products: ProductRepository
    users: UserRepository
    audit: AuditLogRepository

    @classmethod
    def from_session(cls, session: Session) -> "Repositories":
        return cls(
            deployments=DeploymentRepository(session),
            products=ProductRepository(session),
            users=UserRepository(session),
            audit=AuditLogRepository(session),
        )


@contextmanager
def repository_scope() -> Generator[Repositories, None, None]:
    """Open a session, yield its repositories, commit on exit.

    Example:
        >>> with repository_scope() as repos:
        ...     deployment = repos.deployments.get_or_raise("d-1")
    """
    with get_session() as session:
        yield Repositories.from_session(session)
