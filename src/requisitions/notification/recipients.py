"""Recipient resolution for the notification fan-out.

Requesters are notified directly. Managers, packagers and dispatchers are
the ones recorded on the order once they have acted; before that, every
active directory contact with the role for the order's branch (or for the
whole organisation) is notified.
"""

from typing import NamedTuple

from protean.utils.globals import current_domain

from requisitions.contact.contact import StaffContact
from requisitions.contact.management import contact_for_user
from requisitions.notification.notification import RecipientRole
from requisitions.order.lifecycle import Role

_DIRECTORY_ROLE = {
    RecipientRole.MANAGER: Role.MANAGER,
    RecipientRole.PACKAGER: Role.PACKAGER,
    RecipientRole.DISPATCHER: Role.DISPATCHER,
}

_ASSIGNED_FIELD = {
    RecipientRole.REQUESTER: "requester_id",
    RecipientRole.MANAGER: "manager_id",
    RecipientRole.PACKAGER: "packager_id",
    RecipientRole.DISPATCHER: "dispatcher_id",
}


class Recipient(NamedTuple):
    user_id: str
    role: RecipientRole
    email: str | None = None
    phone: str | None = None


def _from_contact(user_id, role: RecipientRole, contact: StaffContact | None) -> Recipient:
    if contact is None or not contact.is_active:
        return Recipient(user_id=str(user_id), role=role)
    return Recipient(
        user_id=str(user_id),
        role=role,
        email=contact.email_address,
        phone=contact.messaging_address,
    )


def _branch_staff(role: Role, branch_id) -> list[StaffContact]:
    contacts = (
        current_domain.repository_for(StaffContact)
        ._dao.query.filter(role=role.value, is_active=True)
        .limit(None)
        .all()
        .items
    )
    return sorted(
        (c for c in contacts if c.branch_id is None or str(c.branch_id) == str(branch_id)),
        key=lambda c: str(c.user_id),
    )


def resolve_recipients(order, roles: list[RecipientRole]) -> list[Recipient]:
    """Recipients for the given roles, each user at most once."""
    recipients: list[Recipient] = []
    seen: set[str] = set()

    for role in roles:
        assigned = getattr(order, _ASSIGNED_FIELD[role])
        if assigned:
            candidates = [_from_contact(assigned, role, contact_for_user(assigned))]
        else:
            candidates = [_from_contact(c.user_id, role, c) for c in _branch_staff(_DIRECTORY_ROLE[role], order.branch_id)]

        for recipient in candidates:
            if recipient.user_id not in seen:
                seen.add(recipient.user_id)
                recipients.append(recipient)

    return recipients
