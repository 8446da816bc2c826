import pytest
from protean import current_domain
from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError

from requisitions.contact.contact import StaffContact
from requisitions.contact.management import (
    DeactivateStaffContact,
    RegisterStaffContact,
    UpdateContactChannels,
    contact_for_user,
)


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _register(user_id="manager-1", role="MANAGER", **kwargs):
    return _process(RegisterStaffContact(user_id=user_id, role=role, **kwargs))


class TestRegisterStaffContact:
    def test_registers_contact(self):
        contact_id = _register(branch_id="branch-1", email="manager-1@example.com", name="Asha")

        contact = current_domain.repository_for(StaffContact).get(contact_id)
        assert contact.user_id == "manager-1"
        assert contact.role == "MANAGER"
        assert contact.branch_id == "branch-1"
        assert contact.is_active is True
        assert contact.email_address == "manager-1@example.com"
        assert contact.messaging_address is None

    def test_user_registered_once(self):
        _register()

        with pytest.raises(ValidationError) as exc:
            _register(role="ADMIN")

        assert "user_id" in exc.value.messages

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            _register(role="JANITOR")

    def test_lookup_by_user(self):
        _register()

        assert contact_for_user("manager-1").role == "MANAGER"
        assert contact_for_user("nobody") is None


class TestUpdateContactChannels:
    def test_enables_messaging(self):
        _register(phone="+15550000001")

        _process(UpdateContactChannels(user_id="manager-1", messaging_enabled=True))

        assert contact_for_user("manager-1").messaging_address == "+15550000001"

    def test_changes_email_keeping_other_settings(self):
        _register(email="old@example.com", phone="+15550000001", messaging_enabled=True)

        _process(UpdateContactChannels(user_id="manager-1", email="new@example.com"))

        contact = contact_for_user("manager-1")
        assert contact.email_address == "new@example.com"
        assert contact.messaging_address == "+15550000001"

    def test_unknown_user(self):
        with pytest.raises(ObjectNotFoundError):
            _process(UpdateContactChannels(user_id="nobody", email_enabled=False))

    def test_requires_a_setting(self):
        _register()

        with pytest.raises(ValidationError):
            _process(UpdateContactChannels(user_id="manager-1"))


class TestDeactivateStaffContact:
    def test_deactivates(self):
        _register()

        _process(DeactivateStaffContact(user_id="manager-1"))

        assert contact_for_user("manager-1").is_active is False

    def test_deactivated_contact_cannot_be_updated(self):
        _register()
        _process(DeactivateStaffContact(user_id="manager-1"))

        with pytest.raises(InvalidStateError):
            _process(UpdateContactChannels(user_id="manager-1", email_enabled=False))

    def test_unknown_user(self):
        with pytest.raises(ObjectNotFoundError):
            _process(DeactivateStaffContact(user_id="nobody"))
