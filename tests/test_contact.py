"""Contact field normalisation."""

import pytest

from leasedesk.core import ValidationError
from leasedesk.services.contact import (
    normalize_email,
    normalize_name,
    normalize_phone,
    split_contact_name,
    validate_contact,
)


class TestNormalizeName:

    def test_trims_and_collapses_whitespace(self):
        assert normalize_name("  Mary   Ann  Lee ") == "Mary Ann Lee"

    def test_blank_is_none(self):
        assert normalize_name("   ") is None
        assert normalize_name(None) is None

    @pytest.mark.parametrize("name", ["A", "x" * 101])
    def test_length_bounds(self, name):
        with pytest.raises(ValidationError) as exc_info:
            normalize_name(name)
        assert exc_info.value.details == {"field": "contact_name"}


class TestNormalizeEmail:

    def test_lowercases(self):
        assert normalize_email(" Jane.Doe@Mail.COM ") == "jane.doe@mail.com"

    @pytest.mark.parametrize("email", ["not-an-email", "a@", "@mail.com", "a b@mail.com"])
    def test_rejects_malformed(self, email):
        with pytest.raises(ValidationError):
            normalize_email(email)


class TestNormalizePhone:

    def test_local_number_uses_default_region(self):
        assert normalize_phone("0900000099", "VN") == "+84900000099"

    def test_international_number(self):
        assert normalize_phone("+1 650 253 0000", "VN") == "+16502530000"

    @pytest.mark.parametrize("phone", ["abc", "12"])
    def test_rejects_garbage(self, phone):
        with pytest.raises(ValidationError):
            normalize_phone(phone, "VN")


class TestValidateContact:

    def test_required_fields_for_guests(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_contact("Jane Doe", None, "0900000099", region="VN", required=True)
        assert exc_info.value.details["field"] == "contact_email"

    def test_optional_for_registered_users(self):
        contact = validate_contact(None, None, None, region="VN", required=False)
        assert contact.name is None and contact.email is None and contact.phone is None

    def test_present_fields_are_still_validated(self):
        with pytest.raises(ValidationError):
            validate_contact(None, "broken", None, region="VN", required=False)


class TestSplitContactName:

    def test_splits_on_first_space(self):
        assert split_contact_name("Mary Ann Lee") == ("Mary", "Ann Lee")

    def test_single_word_gets_default_last_name(self):
        assert split_contact_name("Cher") == ("Cher", "User")

    def test_defaults(self):
        assert split_contact_name(None) == ("Guest", "User")
