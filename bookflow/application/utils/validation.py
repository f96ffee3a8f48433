from __future__ import annotations

import re

from bookflow.application.exceptions import ValidationError
from bookflow.domain.entities.customer import CustomerInfo

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS_RE = re.compile(r"\D")

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 11


def normalize_phone(phone: str) -> str:
    """Strip everything but digits: '(11) 99999-9999' -> '11999999999'."""
    return _NON_DIGITS_RE.sub("", phone or "")


def is_valid_phone(phone: str) -> bool:
    digits = normalize_phone(phone)
    return PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email.strip()))


def validate_customer_info(info: CustomerInfo) -> list[ValidationError]:
    """Return every problem with the customer step fields, in form order."""
    errors: list[ValidationError] = []

    if not info.name or not info.name.strip():
        errors.append(ValidationError("name", "Name is required"))

    if not info.phone or not info.phone.strip():
        errors.append(ValidationError("phone", "Phone is required"))
    elif not is_valid_phone(info.phone):
        errors.append(ValidationError("phone", "Phone must have 10 or 11 digits"))

    if info.email and info.email.strip() and not is_valid_email(info.email):
        errors.append(ValidationError("email", "Invalid email format"))

    return errors
