"""Authentication endpoints."""

from typing import Any

from fastapi import APIRouter, status

from site_accounts.core.exceptions import ValidationError
from site_accounts.dependencies import AccountStoreDep
from site_accounts.schemas.auth import (
    FederatedLoginRequest,
    LoginRequest,
    PasswordResetRequest,
    RegisterRequest,
)
from site_accounts.schemas.users import AccountResponse
from site_accounts.services.registration_form import (
    RegistrationFeedback,
    RegistrationForm,
    validate_registration,
)

router = APIRouter()


def _form(request: RegisterRequest) -> RegistrationForm:
    return RegistrationForm(
        account_name=request.account_name,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
    )


@router.post(
    "/register/validate",
    response_model=RegistrationFeedback,
    status_code=status.HTTP_200_OK,
    summary="Validate registration form fields",
)
async def validate_register_form(request: RegisterRequest) -> RegistrationFeedback:
    """
    Check every registration field without creating anything.

    Args:
        request: Registration form input

    Returns:
        Per-field feedback and overall validity
    """
    return validate_registration(_form(request))


@router.post(
    "/register",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(request: RegisterRequest, store: AccountStoreDep) -> dict[str, Any]:
    """
    Validate the registration form, then create the account and log it in.

    Args:
        request: Registration form input
        store: Account store

    Returns:
        The new account

    Raises:
        ValidationError: If any form field is invalid
        DuplicateEmailError: If the email is already registered
    """
    feedback = validate_registration(_form(request))
    if not feedback.valid:
        raise ValidationError("Registration form is invalid", details=feedback.errors())

    return await store.register(
        request.email.strip(),
        request.password,
        request.account_name.strip(),
        request.extra_fields,
    )


@router.post(
    "/login",
    response_model=AccountResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in with email and password",
)
async def login(request: LoginRequest, store: AccountStoreDep) -> dict[str, Any]:
    """Log in and return the account."""
    return await store.login(request.email, request.password)


@router.post(
    "/federated",
    response_model=AccountResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in with Google",
)
async def federated_login(request: FederatedLoginRequest, store: AccountStoreDep) -> dict[str, Any]:
    """Log in through the third-party provider and return the account."""
    return await store.login_with_federated_provider(request.id_token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
)
async def logout(store: AccountStoreDep) -> None:
    """Clear the current session."""
    await store.logout()


@router.post(
    "/password-reset",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a password reset email",
)
async def password_reset(request: PasswordResetRequest, store: AccountStoreDep) -> dict[str, str]:
    """Ask the account backend to send a reset email."""
    await store.reset_password(request.email)
    return {"message": "Password reset email sent"}
