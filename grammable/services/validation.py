"""
Grammable — Attribute Validation
==================================

What:  Pre-persistence validation for grams and account sign-ups.
How:   Each function returns a dict of field → list of error messages.
       An empty dict means the attributes are valid.
Who:   GramService and AuthService call these before touching the database
       and raise ValidationError (422) when anything is returned.
"""

import re
from typing import Dict, List, Optional

# Same shape check as the usual "something@something" account rule
EMAIL_PATTERN = re.compile(r"\A[^@\s]+@[^@\s]+\Z")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72  # bcrypt only looks at the first 72 bytes

FieldErrors = Dict[str, List[str]]


def validate_gram(message: Optional[str]) -> FieldErrors:
    """
    Validate gram attributes.

    A message made only of whitespace counts as blank.

    >>> validate_gram("Hello!")
    {}
    >>> validate_gram("   ")
    {'message': ["can't be blank"]}
    """
    errors: FieldErrors = {}
    if message is None or not message.strip():
        errors.setdefault("message", []).append("can't be blank")
    return errors


def validate_registration(
    email: Optional[str],
    password: Optional[str],
    password_confirmation: Optional[str],
) -> FieldErrors:
    """Validate sign-up attributes. Uniqueness of the email is checked by AuthService."""
    errors: FieldErrors = {}

    if not email or not email.strip():
        errors.setdefault("email", []).append("can't be blank")
    elif not EMAIL_PATTERN.match(email.strip()):
        errors.setdefault("email", []).append("is invalid")

    if not password:
        errors.setdefault("password", []).append("can't be blank")
    else:
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.setdefault("password", []).append(
                f"is too short (minimum is {MIN_PASSWORD_LENGTH} characters)"
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
            errors.setdefault("password", []).append(
                f"is too long (maximum is {MAX_PASSWORD_LENGTH} bytes)"
            )

    if password_confirmation is not None and password_confirmation != password:
        errors.setdefault("password_confirmation", []).append("doesn't match Password")

    return errors
