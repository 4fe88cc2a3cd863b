"""Malaysian NRIC helpers.

An NRIC reads YYMMDD-PB-###G: birth date, place of birth code, and a
serial whose last digit is odd for males and even for females.
"""

import re
from datetime import date
from typing import NamedTuple, Optional

NRIC_PATTERN = re.compile(r"^\d{6}-\d{2}-\d{4}$")

# Two-digit years up to this value are read as 20xx
CENTURY_PIVOT = 30


class NRICDetails(NamedTuple):
    date_of_birth: date
    gender: str


def is_valid_nric(value: str) -> bool:
    return bool(NRIC_PATTERN.match(value or ""))


def format_nric(value: str) -> str:
    """Insert dashes into a run of digits: '900101101234' -> '900101-10-1234'."""
    digits = re.sub(r"\D", "", value or "")
    if len(digits) <= 6:
        return digits
    if len(digits) <= 8:
        return f"{digits[:6]}-{digits[6:]}"
    return f"{digits[:6]}-{digits[6:8]}-{digits[8:12]}"


def parse_nric(value: str) -> Optional[NRICDetails]:
    """Extract date of birth and gender, or None if the NRIC is malformed."""
    if not is_valid_nric(value):
        return None
    digits = value.replace("-", "")
    yy, mm, dd = int(digits[0:2]), int(digits[2:4]), int(digits[4:6])
    year = 2000 + yy if yy <= CENTURY_PIVOT else 1900 + yy
    try:
        born = date(year, mm, dd)
    except ValueError:
        return None
    gender = "male" if int(digits[-1]) % 2 else "female"
    return NRICDetails(date_of_birth=born, gender=gender)
