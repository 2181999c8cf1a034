"""Input validation helpers shared by the stores and the API."""

import re
from typing import Union

from heypaytm.exceptions import InvalidPhoneNumber, InvalidTableNumber, ValidationError
from heypaytm.schemas import OrderStatusEnum

PHONE_DIGITS = 10


def clean_phone_number(phone: str) -> str:
    """Strip everything that is not a digit."""
    return re.sub(r"[^\d]", "", phone or "")


def validate_phone_number(phone: str) -> bool:
    """Check that the phone contains exactly 10 digits once cleaned."""
    return len(clean_phone_number(phone)) == PHONE_DIGITS


def format_phone_number(phone: str) -> str:
    """Cleaned phone truncated to its first 10 digits (for input fields)."""
    return clean_phone_number(phone)[:PHONE_DIGITS]


def normalize_phone_number(phone: str) -> str:
    """
    Clean and validate a phone number.

    Raises:
        InvalidPhoneNumber: If the cleaned value is not exactly 10 digits
    """
    cleaned = clean_phone_number(phone)
    if len(cleaned) != PHONE_DIGITS:
        raise InvalidPhoneNumber("Phone number must be exactly 10 digits")
    return cleaned


def validate_table_number(table_number: int, max_tables: int) -> int:
    if not isinstance(table_number, int) or isinstance(table_number, bool):
        raise InvalidTableNumber(f"Table number must be an integer, got {table_number!r}")
    if not 1 <= table_number <= max_tables:
        raise InvalidTableNumber(
            f"Table number must be between 1 and {max_tables}, got {table_number}"
        )
    return table_number


def parse_order_status(status: Union[OrderStatusEnum, str]) -> OrderStatusEnum:
    try:
        return OrderStatusEnum(status)
    except ValueError:
        valid = [s.value for s in OrderStatusEnum]
        raise ValidationError(f"Invalid status '{status}'. Must be one of: {valid}")
