"""Staff directory events."""

from protean.fields import Boolean, DateTime, Identifier, String

from requisitions.domain import requisitions


@requisitions.event(part_of="StaffContact")
class StaffContactRegistered:
    __version__ = 1

    contact_id = Identifier(required=True)
    user_id = Identifier(required=True)
    role = String(required=True, max_length=50)
    branch_id = Identifier()
    registered_at = DateTime(required=True)


@requisitions.event(part_of="StaffContact")
class ContactChannelsUpdated:
    __version__ = 1

    contact_id = Identifier(required=True)
    user_id = Identifier(required=True)
    email_enabled = Boolean(required=True)
    messaging_enabled = Boolean(required=True)
    updated_at = DateTime(required=True)


@requisitions.event(part_of="StaffContact")
class StaffContactDeactivated:
    __version__ = 1

    contact_id = Identifier(required=True)
    user_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
