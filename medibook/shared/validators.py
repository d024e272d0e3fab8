"""Shared validation utilities"""

import re
from typing import Optional

TIME_SLOT_PATTERN = re.compile(r"^(0[1-9]|1[0-2]):([0-5]\d) (AM|PM)$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Numbers written with a leading "+" keep their country code; bare 10 digit
    numbers are treated as North American.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    international = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if international:
        if not 8 <= len(digits) <= 15:
            raise ValueError("International phone numbers must have 8 to 15 digits")
        return f"+{digits}"

    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits or start with a country code")

    return f"+1{digits}"


def validate_time_slot(label: str) -> str:
    """
    Validate a time-slot label such as "09:30 AM".

    Single digit hours and lowercase meridiems are normalized
    ("9:30 am" -> "09:30 AM").

    Raises:
        ValueError: If the label is not a 12-hour clock time
    """
    if not label:
        raise ValueError("Time slot is required")

    candidate = label.strip().upper()
    if re.match(r"^\d:", candidate):
        candidate = f"0{candidate}"

    if not TIME_SLOT_PATTERN.match(candidate):
        raise ValueError(f"Invalid time slot '{label}', expected format like '09:30 AM'")

    return candidate


def validate_required_text(value: Optional[str], field: str) -> str:
    """Strip a required text field, rejecting blank values"""
    if value is None or not value.strip():
        raise ValueError(f"{field} is required")
    return value.strip()


def slot_minutes(label: str) -> int:
    """Minutes after midnight for a validated time-slot label, for chronological sorting"""
    hours, rest = label.split(":")
    minutes, meridiem = rest.split(" ")
    return (int(hours) % 12 + (12 if meridiem == "PM" else 0)) * 60 + int(minutes)
