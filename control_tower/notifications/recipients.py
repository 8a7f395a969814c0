"""Recipient resolution for reminders and alerts.

Recipients come from explicit address lists and from free-text names
(product owner, engineering owner, delivery lead, deployment owner,
delivery person) matched to users by exact name. On the daily reminder
path every holder of the broadcast role is added as well.

The result is deduplicated by exact string match and never contains empty
entries. A failing name lookup contributes nothing and is logged.
"""

import logging
from typing import Iterable, List, Optional, Protocol

from control_tower.domain.models import AlertConfig, Deployment, Product, User
from control_tower.logging import get_logger

logger = get_logger(__name__, component="recipients")

DEFAULT_BROADCAST_ROLE = "general_manager"


class UserDirectory(Protocol):
    """User lookups recipient resolution depends on (see UserRepository)."""

    def find_by_name(self, name: str) -> List[User]: ...

    def find_by_role(self, role: str) -> List[User]: ...


class _RecipientSet:
    """Insertion-ordered set of non-empty addresses."""

    def __init__(self):
        self._addresses = {}

    def add(self, address: Optional[str]) -> None:
        if address:
            self._addresses.setdefault(address, None)

    def update(self, addresses: Iterable[Optional[str]]) -> None:
        for address in addresses:
            self.add(address)

    def to_list(self) -> List[str]:
        return list(self._addresses)


class RecipientResolver:
    """Computes the deduplicated recipient list for a deployment."""

    def __init__(
        self,
        broadcast_role: str = DEFAULT_BROADCAST_ROLE,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.broadcast_role = broadcast_role
        self.logger = logger_instance or logger

    def resolve(
        self,
        users: UserDirectory,
        deployment: Deployment,
        product: Optional[Product],
        alert_config: Optional[AlertConfig] = None,
        include_broadcast: bool = False,
    ) -> List[str]:
        """Resolve recipients for a deployment.

        Args:
            users: User lookup collaborator
            deployment: Deployment being notified about
            product: Related product, or None if it could not be loaded
            alert_config: Routing toggles (defaults to the deployment's own)
            include_broadcast: Add every broadcast-role user (daily path only)

        Returns:
            Deduplicated list of email addresses
        """
        config = alert_config or deployment.alert_config
        recipients = _RecipientSet()

        recipients.update(deployment.notification_emails)
        recipients.update(config.additional_emails)

        if product is not None:
            if config.notify_product_owners:
                recipients.add(self._email_for(users, product.product_owner, "product_owner"))
            if config.notify_engineering_owners:
                recipients.add(
                    self._email_for(users, product.engineering_owner, "engineering_owner")
                )
            if config.notify_delivery_lead:
                recipients.add(self._email_for(users, product.delivery_lead, "delivery_lead"))

        recipients.add(self._email_for(users, deployment.owner_name, "owner"))
        recipients.add(self._email_for(users, deployment.delivery_person, "delivery_person"))

        if include_broadcast and self.broadcast_role:
            recipients.update(self._broadcast_emails(users))

        resolved = recipients.to_list()
        self.logger.debug(
            f"Resolved {len(resolved)} recipient(s) for deployment {deployment.id}",
            extra={
                "event": "recipients.resolved",
                "deployment_id": deployment.id,
                "recipient_count": len(resolved),
                "include_broadcast": include_broadcast,
            },
        )
        return resolved

    def _email_for(self, users: UserDirectory, name: Optional[str], source: str) -> Optional[str]:
        """Email of the first user named ``name`` that has one."""
        if not name:
            return None
        try:
            matches = users.find_by_name(name)
        except Exception as e:
            self.logger.warning(
                f"User lookup failed for {source} '{name}': {e}",
                extra={"event": "recipients.lookup_failed", "source": source},
            )
            return None

        for user in matches:
            if user.email:
                return user.email

        self.logger.debug(
            f"No user with an email found for {source} '{name}'",
            extra={"event": "recipients.no_match", "source": source},
        )
        return None

    def _broadcast_emails(self, users: UserDirectory) -> List[str]:
        try:
            holders = users.find_by_role(self.broadcast_role)
        except Exception as e:
            self.logger.warning(
                f"Broadcast role lookup failed for '{self.broadcast_role}': {e}",
                extra={"event": "recipients.lookup_failed", "source": "broadcast_role"},
            )
            return []
        return [user.email for user in holders if user.email]
