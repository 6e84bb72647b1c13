from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from iam_sync.core.models import (
    Account,
    ActivationStatus,
    Contact,
    EmployeeStatus,
    merge_from,
    needs_update,
)

PHONE = Contact("phone", "+41 21 000 00 00")
MAIL = Contact("mail", "bob@home.example.com")


def test_account_is_immutable():
    account = Account(id="1", username="bob")
    with pytest.raises(FrozenInstanceError):
        account.username = "robert"


@pytest.mark.parametrize(
    "status, active",
    [
        (EmployeeStatus.ACTIVE, True),
        (EmployeeStatus.DEFAULT, True),
        (EmployeeStatus.LEAVE_OF_ABSENCE, False),
        (EmployeeStatus.TERMINATED, False),
    ],
)
def test_is_active_checks_active_bit(status, active):
    assert Account(status=status).is_active is active


def test_directory_link_and_display_name():
    assert Account(sid="S-1").is_directory_linked
    assert not Account(sid="").is_directory_linked
    assert Account(first_name="Bob", last_name="Jones").display_name == "Bob Jones"
    assert Account(username="bjones").display_name == "bjones"


def test_contact_string_form_keeps_colons_in_value():
    contact = Contact.from_string("phone:+41:21")
    assert contact == Contact("phone", "+41:21")
    assert contact.to_string() == "phone:+41:21"


class TestNeedsUpdate:
    def test_identical_accounts(self):
        account = Account(first_name="Bob", email="bob@example.com", contacts=frozenset({PHONE}))
        assert not needs_update(account, account)

    def test_extra_local_contacts_are_ignored(self):
        local = Account(contacts=frozenset({PHONE, MAIL}))
        assert not needs_update(local, Account(contacts=frozenset({PHONE})))

    def test_new_candidate_contact(self):
        local = Account(contacts=frozenset({PHONE}))
        assert needs_update(local, Account(contacts=frozenset({PHONE, MAIL})))

    @pytest.mark.parametrize(
        "field, value",
        [
            ("first_name", "Robert"),
            ("email", "robert@example.com"),
            ("sid", "S-2"),
            ("activation_status", ActivationStatus.PENDING),
            ("status", EmployeeStatus.TERMINATED),
            ("location", "Geneva"),
        ],
    )
    def test_directory_field_change(self, field, value):
        assert needs_update(Account(), Account(**{field: value}))

    def test_local_only_fields_are_ignored(self):
        assert not needs_update(Account(id="1", username="bob", is_visitor=True), Account())


class TestMergeFrom:
    def test_copies_directory_fields_and_keeps_identity(self):
        started = datetime(2023, 5, 1, tzinfo=timezone.utc)
        target = Account(id="1", username="bob", email="bob@example.com", is_visitor=True, work_from=started)
        source = Account(
            id="ignored",
            username="ignored",
            email="robert@example.com",
            sid="S-2",
            first_name="Robert",
            last_name="Jones",
            title="Engineer",
            location="Lausanne",
            contacts=frozenset({MAIL}),
            activation_status=ActivationStatus.ACTIVATED,
            status=EmployeeStatus.LEAVE_OF_ABSENCE,
        )

        merged = merge_from(target, source)

        assert (merged.id, merged.username, merged.is_visitor, merged.work_from) == ("1", "bob", True, started)
        assert merged.email == "robert@example.com"
        assert merged.sid == "S-2"
        assert merged.first_name == "Robert"
        assert merged.last_name == "Jones"
        assert merged.title == "Engineer"
        assert merged.location == "Lausanne"
        assert merged.contacts == frozenset({MAIL})
        assert merged.activation_status == ActivationStatus.ACTIVATED
        assert merged.status == EmployeeStatus.LEAVE_OF_ABSENCE
        assert target.email == "bob@example.com"

    def test_owner_keeps_status(self):
        owner = Account(id="1", is_owner=True)
        merged = merge_from(owner, Account(status=EmployeeStatus.TERMINATED, title="CEO"))
        assert merged.status == EmployeeStatus.ACTIVE
        assert merged.title == "CEO"
        assert merged.is_owner
