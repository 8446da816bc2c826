"""Staff directory commands + handlers: register, update channels, deactivate."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from requisitions.contact.contact import StaffContact
from requisitions.domain import requisitions


@requisitions.command(part_of="StaffContact")
class RegisterStaffContact:
    """Add a user to the staff directory."""

    user_id: Identifier(required=True)
    name: String(max_length=255)
    role: String(required=True, max_length=50)
    branch_id: Identifier()
    email: String(max_length=254)
    phone: String(max_length=30)
    email_enabled: Boolean(default=True)
    messaging_enabled: Boolean(default=False)


@requisitions.command(part_of="StaffContact")
class UpdateContactChannels:
    """Change a contact's addresses or channel opt-ins."""

    user_id: Identifier(required=True)
    email: String(max_length=254)
    phone: String(max_length=30)
    email_enabled: Boolean()
    messaging_enabled: Boolean()


@requisitions.command(part_of="StaffContact")
class DeactivateStaffContact:
    user_id: Identifier(required=True)


def contact_for_user(user_id) -> StaffContact | None:
    contacts = current_domain.repository_for(StaffContact)._dao.query.filter(user_id=str(user_id)).all().items
    return contacts[0] if contacts else None


def _existing_contact(user_id) -> StaffContact:
    contact = contact_for_user(user_id)
    if contact is None:
        raise ObjectNotFoundError(f"No staff contact for user {user_id}")
    return contact


@requisitions.command_handler(part_of=StaffContact)
class StaffDirectoryHandler:
    @handle(RegisterStaffContact)
    def register_contact(self, command: RegisterStaffContact):
        if contact_for_user(command.user_id) is not None:
            raise ValidationError({"user_id": [f"User {command.user_id} is already registered"]})

        contact = StaffContact.register(
            user_id=command.user_id,
            role=command.role,
            name=command.name,
            branch_id=command.branch_id,
            email=command.email,
            phone=command.phone,
            email_enabled=command.email_enabled,
            messaging_enabled=command.messaging_enabled,
        )
        current_domain.repository_for(StaffContact).add(contact)
        return str(contact.id)

    @handle(UpdateContactChannels)
    def update_channels(self, command: UpdateContactChannels):
        contact = _existing_contact(command.user_id)
        contact.update_channels(
            email=command.email,
            phone=command.phone,
            email_enabled=command.email_enabled,
            messaging_enabled=command.messaging_enabled,
        )
        current_domain.repository_for(StaffContact).add(contact)

    @handle(DeactivateStaffContact)
    def deactivate_contact(self, command: DeactivateStaffContact):
        contact = _existing_contact(command.user_id)
        contact.deactivate()
        current_domain.repository_for(StaffContact).add(contact)
