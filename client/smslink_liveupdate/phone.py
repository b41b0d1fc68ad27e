"""
Phone number normalization for the Live Update API

The remote service expects receiver numbers as plain digits, with the
international prefix spelled as "00" instead of "+".
"""

import re

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone_number(phone_number: str) -> str:
    """
    Convert a human-entered phone number into the digits-only wire format.

    Every "+" becomes "00", then everything that is not a decimal digit is
    dropped. No length or checksum validation is done, so the result may
    be empty.

    Args:
        phone_number: Phone number as typed by a user (e.g. "+40 7xx-yyy")

    Returns:
        str: Digits-only phone number (e.g. "00407...")
    """
    if phone_number is None:
        return ""
    phone_number = str(phone_number).replace("+", "00")
    return _NON_DIGITS.sub("", phone_number)
