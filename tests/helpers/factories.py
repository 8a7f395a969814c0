"""Builders for domain objects used throughout the tests."""

from datetime import date

from control_tower.domain.models import Deployment, Product, User

TODAY = date(2025, 11, 10)


def make_deployment(**overrides) -> Deployment:
    """Build a deployment with sensible defaults; keyword overrides win."""
    data = {
        "id": "dep-1",
        "product_id": "prod-1",
        "client_id": "client-1",
        "product_name": "Atlas",
        "client_name": "Acme Corp",
        "status": "In Progress",
        "deployment_type": "onboarding",
        "environment": "production",
        "next_delivery_date": TODAY,
        "owner_name": None,
        "delivery_person": None,
        "notification_emails": [],
    }
    data.update(overrides)
    return Deployment(**data)


def make_product(**overrides) -> Product:
    data = {
        "id": "prod-1",
        "name": "Atlas",
        "product_owner": None,
        "engineering_owner": None,
        "delivery_lead": None,
    }
    data.update(overrides)
    return Product(**data)


def make_user(user_id: str, name: str, email: str = None, role: str = "user") -> User:
    return User(id=user_id, name=name, email=email, role=role)
