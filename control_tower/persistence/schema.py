"""Database schema definition and ORM models.

The dashboard backend owns these tables; the notifier reads deployments,
products and users, writes ``last_notification_sent`` back onto deployments,
and appends to ``audit_logs``. JSON-shaped fields are stored in JSON columns
using the dashboard's camelCase keys.
"""

import logging
from datetime import date, datetime

from sqlalchemy import JSON, Column, Date, DateTime, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from control_tower.domain.models import (
    AlertConfig,
    AuditEntry,
    Deployment,
    Product,
    ProductAlertConfig,
    User,
)
from control_tower.utils.timestamps import ensure_utc

logger = logging.getLogger(__name__)

Base = declarative_base()


class DeploymentModel(Base):
    """ORM model for the deployments table."""

    __tablename__ = "deployments"

    id = Column(String(64), primary_key=True, nullable=False)
    product_id = Column(String(64), nullable=True)
    client_id = Column(String(64), nullable=True)
    product_name = Column(String(200), nullable=False, default="")
    client_name = Column(String(200), nullable=True)
    client_names = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="Not Started")
    deployment_type = Column(String(50), nullable=True)
    environment = Column(String(50), nullable=True)
    next_delivery_date = Column(Date, nullable=True)
    feature_name = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    owner_name = Column(String(100), nullable=True)
    delivery_person = Column(String(100), nullable=True)
    notification_emails = Column(JSON, nullable=False, default=list)
    alert_config = Column(JSON, nullable=True)
    last_notification_sent = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_deployments_status", "status"),
        Index("idx_deployments_delivery_date", "next_delivery_date"),
    )

    def to_domain(self) -> Deployment:
        """Convert to a Deployment, applying AlertConfig defaults."""
        return Deployment(
            id=self.id,
            product_id=self.product_id,
            client_id=self.client_id,
            product_name=self.product_name or "",
            client_name=self.client_name,
            client_names=list(self.client_names or []),
            status=self.status,
            deployment_type=self.deployment_type,
            environment=self.environment,
            next_delivery_date=self.next_delivery_date,
            feature_name=self.feature_name,
            notes=self.notes,
            owner_name=self.owner_name,
            delivery_person=self.delivery_person,
            notification_emails=list(self.notification_emails or []),
            alert_config=AlertConfig.model_validate(self.alert_config or {}),
            last_notification_sent=dict(self.last_notification_sent or {}),
        )

    @classmethod
    def from_domain(cls, deployment: Deployment) -> "DeploymentModel":
        return cls(
            id=deployment.id,
            product_id=deployment.product_id,
            client_id=deployment.client_id,
            product_name=deployment.product_name,
            client_name=deployment.client_name,
            client_names=list(deployment.client_names),
            status=deployment.status.value,
            deployment_type=deployment.deployment_type,
            environment=deployment.environment,
            next_delivery_date=deployment.next_delivery_date,
            feature_name=deployment.feature_name,
            notes=deployment.notes,
            owner_name=deployment.owner_name,
            delivery_person=deployment.delivery_person,
            notification_emails=list(deployment.notification_emails),
            alert_config=deployment.alert_config.model_dump(by_alias=True),
            last_notification_sent=dict(deployment.last_notification_sent),
        )


class ProductModel(Base):
    """ORM model for the products table."""

    __tablename__ = "products"

    id = Column(String(64), primary_key=True, nullable=False)
    name = Column(String(200), nullable=False)
    product_owner = Column(String(100), nullable=True)
    engineering_owner = Column(String(100), nullable=True)
    delivery_lead = Column(String(100), nullable=True)
    alert_config = Column(JSON, nullable=True)

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            product_owner=self.product_owner,
            engineering_owner=self.engineering_owner,
            delivery_lead=self.delivery_lead,
            alert_config=ProductAlertConfig.model_validate(self.alert_config or {}),
        )

    @classmethod
    def from_domain(cls, product: Product) -> "ProductModel":
        return cls(
            id=product.id,
            name=product.name,
            product_owner=product.product_owner,
            engineering_owner=product.engineering_owner,
            delivery_lead=product.delivery_lead,
            alert_config=product.alert_config.model_dump(by_alias=True),
        )


class UserModel(Base):
    """ORM model for the users table (only the columns the notifier needs)."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="user")

    __table_args__ = (
        Index("idx_users_name", "name"),
        Index("idx_users_role", "role"),
    )

    def to_domain(self) -> User:
        return User(id=self.id, name=self.name, email=self.email, role=self.role)

    @classmethod
    def from_domain(cls, user: User) -> "UserModel":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class AuditLogModel(Base):
    """ORM model for the audit_logs table."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=True)
    user_name = Column(String(100), nullable=True)
    user_email = Column(String(255), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(64), nullable=True)
    resource_name = Column(String(200), nullable=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_audit_resource", "resource_type", "resource_id"),
        Index("idx_audit_timestamp", "timestamp"),
    )

    def to_domain(self) -> AuditEntry:
        return AuditEntry(
            id=self.id,
            user_id=self.user_id,
            user_name=self.user_name,
            user_email=self.user_email,
            action=self.action,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            resource_name=self.resource_name,
            metadata=dict(self.details or {}),
            timestamp=ensure_utc(self.timestamp),
        )

    @classmethod
    def from_domain(cls, entry: AuditEntry) -> "AuditLogModel":
        return cls(
            user_id=entry.user_id,
            user_name=entry.user_name,
            user_email=entry.user_email,
            action=entry.action,
            resource_type=entry.resource_type,
            resource_id=entry.resource_id,
            resource_name=entry.resource_name,
            details=_json_safe(entry.metadata),
            timestamp=ensure_utc(entry.timestamp),
        )


def _json_safe(value):
    """Convert dates and datetimes nested in audit metadata to ISO strings."""
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
