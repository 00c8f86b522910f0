import pytest

from core.exceptions import UserAlreadyExistsError, UserNotFoundError, ValidationError
from schemas.user import ProfileUpdateRequest


def test_passwords_are_hashed(user_manager, make_user):
    user = make_user(password="Secret123!")

    assert user.password_hash != "Secret123!"
    assert user_manager.verify_password("Secret123!", user.password_hash)
    assert not user_manager.verify_password("wrong", user.password_hash)


def test_verify_password_with_garbage_hash(user_manager):
    assert not user_manager.verify_password("Secret123!", "not-a-bcrypt-hash")


def test_emails_are_unique_regardless_of_case(make_user):
    make_user(email="ana@plv.edu.ph")
    with pytest.raises(UserAlreadyExistsError):
        make_user(email="ANA@plv.edu.ph")


def test_lookup_by_email_and_id(user_manager, make_user):
    user = make_user(email="ben@plv.edu.ph")

    assert user_manager.get_user_by_email(" BEN@plv.edu.ph ") == user
    assert user_manager.get_user_by_id(user.user_id) == user
    with pytest.raises(UserNotFoundError):
        user_manager.get_user_by_id("user-missing")


def test_update_profile(user_manager, student):
    updated = user_manager.update_profile(
        student, ProfileUpdateRequest(first_name=" Carla ", student_id="24-0001")
    )

    assert updated.first_name == "Carla"
    assert updated.student_id == "24-0001"
    assert updated.last_name == student.last_name
    assert user_manager.get_user_by_id(student.user_id) == updated


def test_update_profile_rejects_bad_values(user_manager, student):
    with pytest.raises(ValidationError):
        user_manager.update_profile(student, ProfileUpdateRequest(student_id="2400001"))
    with pytest.raises(ValidationError):
        user_manager.update_profile(student, ProfileUpdateRequest(last_name="  "))


def test_update_profile_rejects_padded_student_id(user_manager, student):
    with pytest.raises(ValidationError):
        user_manager.update_profile(student, ProfileUpdateRequest(student_id=" 24-0001 "))
    assert user_manager.get_user_by_id(student.user_id).student_id == student.student_id


def test_role_request_approval(user_manager, student):
    requested = user_manager.request_class_representative(student)
    assert requested.requested_role == "class-representative"
    assert [u.user_id for u in user_manager.list_role_requests()] == [student.user_id]

    approved = user_manager.decide_role_request(student.user_id, approve=True)

    assert approved.role == "class-representative"
    assert approved.requested_role is None
    assert user_manager.list_role_requests() == []


def test_role_request_rejection_keeps_student(user_manager, student):
    user_manager.request_class_representative(student)

    rejected = user_manager.decide_role_request(student.user_id, approve=False)

    assert rejected.role == "student"
    assert rejected.requested_role is None


def test_deciding_without_request_fails(user_manager, student):
    with pytest.raises(ValidationError):
        user_manager.decide_role_request(student.user_id, approve=True)
    with pytest.raises(UserNotFoundError):
        user_manager.decide_role_request("user-missing", approve=True)


def test_only_students_can_request_role(user_manager, admin):
    with pytest.raises(ValidationError):
        user_manager.request_class_representative(admin)


def test_ensure_admin_is_idempotent(user_manager):
    first = user_manager.ensure_admin("root@plv.edu.ph", "Secret123!")
    second = user_manager.ensure_admin("root@plv.edu.ph", "Other123!")

    assert first.role == "admin"
    assert first.verified
    assert second == first
    assert len(user_manager.list_users()) == 1
