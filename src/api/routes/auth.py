"""Authentication routes.

This module handles HTTP endpoints for signup, email verification, login,
logout, the current session and password reset.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.dependencies import AuthBackendDep
from core.exceptions import (
    AuthError,
    DeliveryError,
    EmailNotVerifiedError,
    SignupValidationError,
    UserAlreadyExistsError,
    VerificationError,
)
from schemas.session import SessionContext
from schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PendingVerification,
    PublicUser,
    ResendCodeRequest,
    SignupRequest,
    User,
    VerifyEmailRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# HTTP Bearer token security
security = HTTPBearer()


def validation_failed(exc: SignupValidationError) -> HTTPException:
    """Field-level validation errors as a 422 response."""
    return HTTPException(
        status_code=422,
        detail={"message": "Please fill in all required fields correctly", "fields": exc.fields},
    )


def delivery_failed(exc: DeliveryError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(exc),
    )


def get_session_context(
    auth: AuthBackendDep,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SessionContext:
    """Resolve the bearer token into the caller's session.

    Raises:
        HTTPException: If the token is invalid, expired or logged out.
    """
    context = auth.current_session(credentials.credentials)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return context


def get_current_user(
    context: SessionContext = Depends(get_session_context),
) -> User:
    """Get current authenticated user."""
    return context.user


@router.post(
    "/signup",
    response_model=PendingVerification,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
def signup(req: SignupRequest, auth: AuthBackendDep) -> PendingVerification:
    """Register a new student account and email a verification code.

    Choosing the class representative role records a request that an admin
    has to approve; the account itself starts as a student.

    Raises:
        HTTPException: 422 on invalid fields, 409 if the email is taken,
            502 if the code could not be sent.
    """
    try:
        return auth.register_account(req)
    except SignupValidationError as e:
        logger.info("Signup rejected: %s", e)
        raise validation_failed(e)
    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except DeliveryError as e:
        raise delivery_failed(e)


@router.post("/verify", response_model=PublicUser, summary="Verify email")
def verify_email(req: VerifyEmailRequest, auth: AuthBackendDep) -> PublicUser:
    try:
        user = auth.verify_email(req.email, req.code)
    except VerificationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return PublicUser.from_user(user)


@router.post(
    "/resend-code",
    response_model=PendingVerification,
    summary="Send a new verification code",
)
def resend_code(req: ResendCodeRequest, auth: AuthBackendDep) -> PendingVerification:
    try:
        return auth.resend_verification(req.email)
    except VerificationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DeliveryError as e:
        raise delivery_failed(e)


@router.post("/login", response_model=LoginResponse, summary="Log in")
def login(req: LoginRequest, auth: AuthBackendDep) -> LoginResponse:
    """Login with email and password.

    Returns:
        LoginResponse with user information and a bearer token.

    Raises:
        HTTPException: 401 on bad credentials, 403 if the email is not
            verified yet.
    """
    try:
        result = auth.authenticate(req.email, req.password)
    except EmailNotVerifiedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return LoginResponse(
        user=PublicUser.from_user(result.user),
        token=result.token,
        expires_at=result.session.expires_at,
    )


@router.post("/logout", summary="Log out")
def logout(
    auth: AuthBackendDep,
    context: SessionContext = Depends(get_session_context),
) -> dict:
    """End the current session. The token stops working immediately."""
    auth.logout(context.session.session_id)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse, summary="Current user")
def get_current_user_info(
    context: SessionContext = Depends(get_session_context),
) -> CurrentUserResponse:
    return CurrentUserResponse(
        user=PublicUser.from_user(context.user),
        session_id=context.session.session_id,
    )


@router.post("/password-reset/request", summary="Email a password reset code")
def request_password_reset(req: PasswordResetRequest, auth: AuthBackendDep) -> dict:
    """Send a reset code if the email belongs to a verified account.

    The response is the same whether or not the account exists.
    """
    try:
        auth.request_password_reset(req.email)
    except DeliveryError as e:
        raise delivery_failed(e)
    return {
        "success": True,
        "message": "If the account exists, a reset code has been sent",
    }


@router.post("/password-reset/confirm", summary="Set a new password")
def confirm_password_reset(req: PasswordResetConfirm, auth: AuthBackendDep) -> dict:
    try:
        auth.reset_password(req)
    except SignupValidationError as e:
        raise validation_failed(e)
    except VerificationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "message": "Password updated. You can now log in."}
