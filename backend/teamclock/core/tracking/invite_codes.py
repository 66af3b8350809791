"""Invite code generation and normalization."""

import re
import secrets
import string
from collections.abc import Callable

from teamclock.core.exceptions import ValidationFailedError

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(
    length: int = 6,
    choice: Callable[[str], str] = secrets.choice,
) -> str:
    """Random uppercase alphanumeric code, e.g. 'K3X9QA'."""
    return "".join(choice(INVITE_CODE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str, length: int = 6) -> str:
    """
    Canonical form of a user-typed code.

    Raises:
        ValidationFailedError: If the code is not `length` alphanumerics
    """
    normalized = (code or "").strip().upper()
    if not re.fullmatch(rf"[A-Z0-9]{{{length}}}", normalized):
        raise ValidationFailedError(
            f"Invite code must be {length} letters or digits",
            field="invite_code",
        )
    return normalized
