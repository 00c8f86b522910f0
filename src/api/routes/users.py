"""User routes.

Self-service profile edits and class representative requests, plus the admin
endpoints that list users and decide those requests.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user
from core.dependencies import UserManagerDep
from core.exceptions import UserNotFoundError, ValidationError
from schemas.user import ProfileUpdateRequest, PublicUser, Role, User

router = APIRouter(prefix="/api/users", tags=["User"])


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != Role.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can manage users.",
        )
    return current_user


@router.patch("/me", response_model=PublicUser, summary="Edit my profile")
def update_my_profile(
    req: ProfileUpdateRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> PublicUser:
    try:
        user = user_manager.update_profile(current_user, req)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return PublicUser.from_user(user)


@router.post(
    "/me/role-request",
    response_model=PublicUser,
    summary="Request the class representative role",
)
def request_class_representative(
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> PublicUser:
    try:
        user = user_manager.request_class_representative(current_user)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return PublicUser.from_user(user)


@router.get("", response_model=List[PublicUser], summary="List users")
def list_users(
    user_manager: UserManagerDep,
    admin: User = Depends(require_admin),
) -> List[PublicUser]:
    return [PublicUser.from_user(u) for u in user_manager.list_users()]


@router.get(
    "/role-requests",
    response_model=List[PublicUser],
    summary="Pending class representative requests",
)
def list_role_requests(
    user_manager: UserManagerDep,
    admin: User = Depends(require_admin),
) -> List[PublicUser]:
    return [PublicUser.from_user(u) for u in user_manager.list_role_requests()]


def _decide(user_manager, user_id: str, approve: bool) -> PublicUser:
    try:
        user = user_manager.decide_role_request(user_id, approve)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id '{user_id}' not found.",
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return PublicUser.from_user(user)


@router.post(
    "/{user_id}/role-request/approve",
    response_model=PublicUser,
    summary="Approve a class representative request",
)
def approve_role_request(
    user_id: str,
    user_manager: UserManagerDep,
    admin: User = Depends(require_admin),
) -> PublicUser:
    return _decide(user_manager, user_id, approve=True)


@router.post(
    "/{user_id}/role-request/reject",
    response_model=PublicUser,
    summary="Reject a class representative request",
)
def reject_role_request(
    user_id: str,
    user_manager: UserManagerDep,
    admin: User = Depends(require_admin),
) -> PublicUser:
    return _decide(user_manager, user_id, approve=False)
