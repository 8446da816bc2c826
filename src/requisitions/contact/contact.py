"""StaffContact aggregate: the directory used to resolve notification recipients.

Each record ties a user to a role and optionally to a branch. Staff with no
branch (managers, packagers or dispatchers working for the whole
organisation) are notified for every branch. Email and messaging delivery
are individually opt-in.
"""

from datetime import UTC, datetime

from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from requisitions.contact.events import (
    ContactChannelsUpdated,
    StaffContactDeactivated,
    StaffContactRegistered,
)
from requisitions.domain import requisitions
from requisitions.order.lifecycle import Role


@requisitions.aggregate
class StaffContact:
    user_id: Identifier(required=True, unique=True)
    name: String(max_length=255)
    role: String(choices=Role, required=True)
    branch_id: Identifier()  # Null for organisation-wide staff

    email: String(max_length=254)
    phone: String(max_length=30)
    email_enabled: Boolean(default=True)
    messaging_enabled: Boolean(default=False)

    is_active: Boolean(default=True)

    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(
        cls,
        user_id,
        role,
        name=None,
        branch_id=None,
        email=None,
        phone=None,
        email_enabled=True,
        messaging_enabled=False,
    ):
        if role == Role.SYSTEM.value:
            raise ValidationError({"role": ["The system actor has no contact record"]})
        if email and "@" not in email:
            raise ValidationError({"email": ["Email address is not valid"]})

        now = datetime.now(UTC)
        contact = cls(
            user_id=user_id,
            name=name,
            role=role,
            branch_id=branch_id,
            email=email,
            phone=phone,
            email_enabled=email_enabled,
            messaging_enabled=messaging_enabled,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        contact.raise_(
            StaffContactRegistered(
                contact_id=str(contact.id),
                user_id=str(user_id),
                role=role,
                branch_id=str(branch_id) if branch_id else None,
                registered_at=now,
            )
        )
        return contact

    def update_channels(self, email=None, phone=None, email_enabled=None, messaging_enabled=None):
        """Update addresses and opt-ins. Pass None to keep a value unchanged."""
        if all(v is None for v in (email, phone, email_enabled, messaging_enabled)):
            raise ValidationError({"channels": ["At least one channel setting must be provided"]})
        if not self.is_active:
            raise InvalidStateError("Cannot update channels of a deactivated contact")
        if email is not None and "@" not in email:
            raise ValidationError({"email": ["Email address is not valid"]})

        now = datetime.now(UTC)
        if email is not None:
            self.email = email
        if phone is not None:
            self.phone = phone
        if email_enabled is not None:
            self.email_enabled = email_enabled
        if messaging_enabled is not None:
            self.messaging_enabled = messaging_enabled
        self.updated_at = now

        self.raise_(
            ContactChannelsUpdated(
                contact_id=str(self.id),
                user_id=str(self.user_id),
                email_enabled=self.email_enabled,
                messaging_enabled=self.messaging_enabled,
                updated_at=now,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise InvalidStateError("Contact is already deactivated")

        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now

        self.raise_(
            StaffContactDeactivated(
                contact_id=str(self.id),
                user_id=str(self.user_id),
                deactivated_at=now,
            )
        )

    @property
    def email_address(self) -> str | None:
        return self.email if self.email and self.email_enabled else None

    @property
    def messaging_address(self) -> str | None:
        return self.phone if self.phone and self.messaging_enabled else None
