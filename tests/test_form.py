"""
Unit tests for the contact form buffer.

Tests pre-population from a contact, validation, and reshaping the flat
form into a Contact for create and update requests.
"""

from keap_contacts.crm.contact import Address, Contact, EmailAddress, PhoneNumber
from keap_contacts.crm.form import ContactForm


def make_contact(**overrides):
    values = {
        "id": 42,
        "given_name": "Jane",
        "family_name": "Doe",
        "email_addresses": [EmailAddress("jane@example.com", "EMAIL1")],
        "phone_numbers": [PhoneNumber("555-0100", "PHONE1")],
        "addresses": [
            Address(
                line1="1 Main St",
                locality="Springfield",
                region="IL",
                zip_code="60001",
                field="BILLING",
            )
        ],
    }
    values.update(overrides)
    return Contact(**values)


class TestFromContact:
    """Tests for ContactForm.from_contact()."""

    def test_populates_primary_entries(self):
        """Test form fields mirror the primary entries."""
        form = ContactForm.from_contact(make_contact())

        assert form == ContactForm(
            given_name="Jane",
            family_name="Doe",
            email="jane@example.com",
            phone="555-0100",
            address="1 Main St",
            city="Springfield",
            state="IL",
            zip="60001",
        )

    def test_contact_without_entries(self):
        """Test a contact with no email, phone or address gives empty fields."""
        form = ContactForm.from_contact(Contact(id=1, given_name="Solo"))

        assert form.given_name == "Solo"
        assert form.family_name == ""
        assert form.email == ""
        assert form.phone == ""
        assert form.address == ""
        assert form.zip == ""

    def test_uses_tagged_entry_not_first(self):
        """Test the EMAIL1 entry is edited even when it is not first."""
        contact = make_contact(
            email_addresses=[
                EmailAddress("other@example.com", "EMAIL2"),
                EmailAddress("main@example.com", "EMAIL1"),
            ]
        )
        assert ContactForm.from_contact(contact).email == "main@example.com"


class TestValidate:
    """Tests for ContactForm.validate()."""

    def test_valid_form(self):
        """Test a form with both names passes."""
        assert ContactForm(given_name="A", family_name="B").validate() == []

    def test_missing_names(self):
        """Test empty and whitespace-only names are reported."""
        assert ContactForm(given_name="  ").validate() == ["given_name", "family_name"]

    def test_other_fields_not_validated(self):
        """Test email format is not checked."""
        form = ContactForm(given_name="A", family_name="B", email="not-an-email")
        assert form.validate() == []


class TestToContactForAdd:
    """Tests for ContactForm.to_contact() without a base contact."""

    def test_email_only(self):
        """Test only the filled-in email produces an entry."""
        contact = ContactForm(
            given_name="A", family_name="B", email="a@b.com"
        ).to_contact()
        body = contact.to_api_format()

        assert body["email_addresses"] == [{"email": "a@b.com", "field": "EMAIL1"}]
        assert "phone_numbers" not in body
        assert "addresses" not in body
        assert contact.id is None

    def test_all_fields(self):
        """Test phone and address entries are tagged and addressed to the US."""
        contact = ContactForm(
            given_name="A",
            family_name="B",
            phone="555-0100",
            address="1 Main St",
            city="Springfield",
            state="IL",
            zip="60001",
        ).to_contact()

        assert contact.phone_numbers == [PhoneNumber("555-0100", "PHONE1")]
        assert contact.addresses[0].to_api_format() == {
            "line1": "1 Main St",
            "locality": "Springfield",
            "region": "IL",
            "zip_code": "60001",
            "country_code": "US",
            "field": "BILLING",
        }

    def test_city_without_street_has_no_address(self):
        """Test an address entry needs the street line."""
        contact = ContactForm(given_name="A", family_name="B", city="X").to_contact()
        assert contact.addresses == []


class TestToContactForEdit:
    """Tests for ContactForm.to_contact() with a base contact."""

    def test_unchanged_resubmit_reproduces_address(self):
        """Test editing without changes gives back the same address entry."""
        original = make_contact()
        form = ContactForm.from_contact(original)

        resubmitted = form.to_contact(base=original)

        assert resubmitted.addresses == original.addresses
        assert resubmitted.email_addresses == original.email_addresses
        assert resubmitted.phone_numbers == original.phone_numbers
        assert resubmitted.id == 42

    def test_keeps_untouched_address_keys(self):
        """Test line2 and country code survive an edit."""
        original = make_contact(
            addresses=[Address(line1="1 Main St", line2="Apt 4", country_code="CA")]
        )
        form = ContactForm.from_contact(original)
        form.city = "Toronto"

        address = form.to_contact(base=original).addresses[0]

        assert address.line2 == "Apt 4"
        assert address.country_code == "CA"
        assert address.locality == "Toronto"

    def test_secondary_entries_are_kept(self):
        """Test entries the form does not edit are carried over."""
        original = make_contact(
            email_addresses=[
                EmailAddress("main@example.com", "EMAIL1"),
                EmailAddress("other@example.com", "EMAIL2"),
            ]
        )
        form = ContactForm.from_contact(original)
        form.email = "new@example.com"

        emails = form.to_contact(base=original).email_addresses

        assert emails == [
            EmailAddress("new@example.com", "EMAIL1"),
            EmailAddress("other@example.com", "EMAIL2"),
        ]

    def test_clearing_field_removes_only_primary(self):
        """Test an emptied phone removes the primary entry only."""
        original = make_contact(
            phone_numbers=[PhoneNumber("111", "PHONE1"), PhoneNumber("222", "PHONE2")]
        )
        form = ContactForm.from_contact(original)
        form.phone = ""

        assert form.to_contact(base=original).phone_numbers == [
            PhoneNumber("222", "PHONE2")
        ]

    def test_adding_entry_to_contact_without_one(self):
        """Test a new primary entry is appended when the base has none."""
        original = make_contact(email_addresses=[])
        form = ContactForm.from_contact(original)
        form.email = "fresh@example.com"

        assert form.to_contact(base=original).email_addresses == [
            EmailAddress("fresh@example.com", "EMAIL1")
        ]

    def test_untagged_server_entries_get_primary_tags(self):
        """Test entries returned without a field tag are sent as EMAIL1/PHONE1."""
        original = Contact.from_api_response(
            {
                "id": 7,
                "given_name": "A",
                "family_name": "B",
                "email_addresses": [{"email": "a@b.com"}],
                "phone_numbers": [{"number": "555"}],
                "addresses": [{"line1": "1 Main St"}],
            }
        )
        form = ContactForm.from_contact(original)

        body = form.to_contact(base=original).to_api_format(include_empty=True)

        assert body["email_addresses"] == [{"email": "a@b.com", "field": "EMAIL1"}]
        assert body["phone_numbers"] == [{"number": "555", "field": "PHONE1"}]
        assert body["addresses"][0]["field"] == "BILLING"

    def test_base_is_not_modified(self):
        """Test to_contact works on copies."""
        original = make_contact()
        form = ContactForm.from_contact(original)
        form.address = "2 Elm St"

        form.to_contact(base=original)

        assert original.addresses[0].line1 == "1 Main St"


class TestClear:
    """Tests for clearing the form."""

    def test_clear_empties_all_fields(self):
        """Test clear() resets every field."""
        form = ContactForm.from_contact(make_contact())
        form.clear()
        assert form.is_empty()
        assert form == ContactForm()
