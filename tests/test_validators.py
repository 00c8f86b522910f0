import pytest

from core.exceptions import SignupValidationError
from schemas.user import SignupRequest
from utils.validators import (
    collect_signup_errors,
    is_institutional_email,
    is_valid_student_id,
    validate_signup,
)


def _form(**overrides):
    data = {
        "first_name": "Maria",
        "last_name": "Santos",
        "email": "maria.santos@plv.edu.ph",
        "student_id": "23-3302",
        "password": "Secret123!",
        "confirm_password": "Secret123!",
        "role": "student",
    }
    data.update(overrides)
    return SignupRequest(**data)


@pytest.mark.parametrize("value", ["23-3302", "00-0000", "99-9999"])
def test_student_id_accepts_two_dash_four_digits(value):
    assert is_valid_student_id(value)


@pytest.mark.parametrize(
    "value",
    [
        "233302",
        "2-3302",
        "23-330",
        "23-33022",
        "ab-cdef",
        "23-3302\n",
        " 23-3302",
        "23-3302 ",
        "",
        "２３-３３０２",
    ],
)
def test_student_id_rejects_other_shapes(value):
    assert not is_valid_student_id(value)


def test_institutional_email_is_case_insensitive():
    assert is_institutional_email("Someone@PLV.edu.ph")
    assert not is_institutional_email("someone@gmail.com")
    assert is_institutional_email("a@school.test", domain="@school.test")


def test_valid_form_has_no_errors():
    assert collect_signup_errors(_form()) == {}
    validate_signup(_form())


def test_missing_fields_are_each_reported():
    errors = collect_signup_errors(_form(first_name="", student_id="   "))
    assert errors["first_name"] == "This field is required"
    assert errors["student_id"] == "This field is required"


def test_foreign_email_domain_is_rejected():
    errors = collect_signup_errors(_form(email="maria@gmail.com"))
    assert "@plv.edu.ph" in errors["email"]


def test_malformed_student_id_is_rejected():
    errors = collect_signup_errors(_form(student_id="233302"))
    assert "XX-XXXX" in errors["student_id"]


def test_padded_student_id_is_rejected():
    for value in (" 23-3302", "23-3302 ", " 23-3302 "):
        errors = collect_signup_errors(_form(student_id=value))
        assert "XX-XXXX" in errors["student_id"]


def test_password_mismatch_is_reported_on_confirmation():
    errors = collect_signup_errors(_form(confirm_password="Other123!"))
    assert errors == {"confirm_password": "Passwords do not match"}


def test_admin_role_cannot_be_chosen_at_signup():
    errors = collect_signup_errors(_form(role="admin"))
    assert "role" in errors


def test_validate_signup_raises_with_all_fields():
    with pytest.raises(SignupValidationError) as exc_info:
        validate_signup(_form(email="x@gmail.com", student_id="1"))
    assert set(exc_info.value.fields) == {"email", "student_id"}
