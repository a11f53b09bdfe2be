"""
Argument validators shared by the identity components.
"""

import re
from typing import Any

MAX_UID_LENGTH = 128

_EMAIL_RE = re.compile(r"^[^@]+@[^@]+$")
_PHONE_STRIP_RE = re.compile(r"[\s()\-.]")
_PHONE_BODY_RE = re.compile(r"^\+[\da-zA-Z]+$")


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def is_uid(value: Any) -> bool:
    return is_non_empty_string(value) and len(value) <= MAX_UID_LENGTH


def is_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.match(value))


def is_phone_number(value: Any) -> bool:
    """E.164 check: a leading '+' followed by at least one alphanumeric.

    Spaces, dots, dashes and parentheses are ignored so that formatted
    numbers such as "+1 (555) 123-4567" are accepted.
    """
    if not is_non_empty_string(value):
        return False
    return bool(_PHONE_BODY_RE.match(_PHONE_STRIP_RE.sub("", value)))


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a duration
    return isinstance(value, (int, float)) and not isinstance(value, bool)
