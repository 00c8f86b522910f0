"""Signup and profile field validation."""

import re
from typing import Dict, Optional

import config
from core.exceptions import SignupValidationError
from schemas.user import Role, SignupRequest

STUDENT_ID_PATTERN = re.compile(r"^\d{2}-\d{4}$", re.ASCII)

SIGNUP_REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "student_id",
    "password",
    "confirm_password",
)

SIGNUP_ROLES = (Role.STUDENT.value, Role.CLASS_REPRESENTATIVE.value)


def is_valid_student_id(value: str) -> bool:
    # fullmatch: "$" alone accepts a trailing newline
    return bool(STUDENT_ID_PATTERN.fullmatch(value or ""))


def is_institutional_email(email: str, domain: Optional[str] = None) -> bool:
    domain = (domain or config.INSTITUTION_EMAIL_DOMAIN).lower()
    return (email or "").strip().lower().endswith(domain)


def student_id_error() -> str:
    return "Student ID must be in format: XX-XXXX (e.g., 23-3302)"


def collect_signup_errors(form: SignupRequest) -> Dict[str, str]:
    """Return a mapping of field name to error message; empty when valid."""
    errors: Dict[str, str] = {}

    for name in SIGNUP_REQUIRED_FIELDS:
        if not str(getattr(form, name) or "").strip():
            errors[name] = "This field is required"

    if "email" not in errors and not is_institutional_email(form.email):
        errors["email"] = (
            f"Only {config.INSTITUTION_EMAIL_DOMAIN} email addresses are allowed"
        )

    if "student_id" not in errors and not is_valid_student_id(form.student_id):
        errors["student_id"] = student_id_error()

    if (
        "password" not in errors
        and "confirm_password" not in errors
        and form.password != form.confirm_password
    ):
        errors["confirm_password"] = "Passwords do not match"

    if form.role not in SIGNUP_ROLES:
        errors["role"] = "Role must be 'student' or 'class-representative'"

    return errors


def validate_signup(form: SignupRequest) -> None:
    """Validate a signup form.

    Raises:
        SignupValidationError: With every invalid field.
    """
    errors = collect_signup_errors(form)
    if errors:
        raise SignupValidationError(errors)
