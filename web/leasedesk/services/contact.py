from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import phonenumbers
from email_validator import validate_email, EmailNotValidError

from leasedesk.core.exceptions import ValidationError


CONTACT_NAME_MIN = 2
CONTACT_NAME_MAX = 100

DEFAULT_FIRST_NAME = "Guest"
DEFAULT_LAST_NAME = "User"


@dataclass(frozen=True)
class ContactInfo:
    name: Optional[str]
    email: Optional[str]
    phone: Optional[str]


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Trim and length-check a contact name; empty input yields None."""
    if name is None or not name.strip():
        return None
    name = " ".join(name.split())
    if not CONTACT_NAME_MIN <= len(name) <= CONTACT_NAME_MAX:
        raise ValidationError(
            f"Contact name must be between {CONTACT_NAME_MIN} and {CONTACT_NAME_MAX} characters",
            field="contact_name",
        )
    return name


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Check email syntax (no DNS lookups) and return it lower-cased."""
    if email is None or not email.strip():
        return None
    try:
        validated = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(
            f"Contact email must be a valid email address: {exc}", field="contact_email"
        ) from exc
    return validated.normalized.lower()


def normalize_phone(phone: Optional[str], region: str) -> Optional[str]:
    """Validate and format a phone number.

    Numbers without a country code are read in *region*. Returns E.164.
    """
    if phone is None or not phone.strip():
        return None
    try:
        parsed = phonenumbers.parse(phone.strip(), region)
    except phonenumbers.NumberParseException as exc:
        raise ValidationError(
            "Contact phone must be a valid phone number", field="contact_phone"
        ) from exc

    if not phonenumbers.is_possible_number(parsed):
        raise ValidationError(
            "Contact phone must be a valid phone number", field="contact_phone"
        )

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def validate_contact(
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    *,
    region: str,
    required: bool,
) -> ContactInfo:
    """Normalise contact fields; with *required* all three must be present."""
    contact = ContactInfo(
        name=normalize_name(name),
        email=normalize_email(email),
        phone=normalize_phone(phone, region),
    )
    if required:
        if not contact.name:
            raise ValidationError("Contact name is required for guest requests", field="contact_name")
        if not contact.email:
            raise ValidationError("Contact email is required for guest requests", field="contact_email")
        if not contact.phone:
            raise ValidationError("Contact phone is required for guest requests", field="contact_phone")
    return contact


def split_contact_name(name: Optional[str]) -> Tuple[str, str]:
    """Split on the first space: "Mary Ann Lee" -> ("Mary", "Ann Lee")."""
    if not name or not name.strip():
        return DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME
    first, _, last = name.strip().partition(" ")
    return first or DEFAULT_FIRST_NAME, last.strip() or DEFAULT_LAST_NAME
