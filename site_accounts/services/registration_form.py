"""Field validation for the registration page form."""

import re

from pydantic import BaseModel, Field

from site_accounts.core.security import utf16_length

ACCOUNT_NAME_MIN_LENGTH = 3
ACCOUNT_NAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6

ACCOUNT_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_]+")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

PERSONAL_SITE_URL = "https://deepseek.ilovexxh.com/{account_name}/"


class FieldFeedback(BaseModel):
    """Outcome of validating one form field."""

    valid: bool
    message: str


class RegistrationForm(BaseModel):
    """Raw registration form input."""

    account_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class RegistrationFeedback(BaseModel):
    """Feedback for every field of the registration form."""

    account_name: FieldFeedback
    email: FieldFeedback
    password: FieldFeedback
    confirm_password: FieldFeedback
    valid: bool = Field(..., description="True when every field is valid")

    def errors(self) -> dict[str, str]:
        """Messages of the invalid fields, keyed by field name."""
        fields = {
            "account_name": self.account_name,
            "email": self.email,
            "password": self.password,
            "confirm_password": self.confirm_password,
        }
        return {name: feedback.message for name, feedback in fields.items() if not feedback.valid}


def _invalid(message: str) -> FieldFeedback:
    return FieldFeedback(valid=False, message=message)


def validate_account_name(account_name: str) -> FieldFeedback:
    """Account names are 3-20 letters, digits or underscores."""
    if not account_name:
        return _invalid("Please enter an account name")

    if not ACCOUNT_NAME_MIN_LENGTH <= utf16_length(account_name) <= ACCOUNT_NAME_MAX_LENGTH:
        return _invalid(
            f"Account name must be {ACCOUNT_NAME_MIN_LENGTH}-{ACCOUNT_NAME_MAX_LENGTH} characters long"
        )

    if not ACCOUNT_NAME_PATTERN.fullmatch(account_name):
        return _invalid("Account name may only contain letters, digits and underscores")

    url = PERSONAL_SITE_URL.format(account_name=account_name)
    return FieldFeedback(
        valid=True,
        message=f"Account name looks good! Your pages will be served from {url}<file name>",
    )


def validate_email(email: str) -> FieldFeedback:
    if not email:
        return _invalid("Please enter an email")

    if not EMAIL_PATTERN.fullmatch(email):
        return _invalid("Please enter a valid email address")

    return FieldFeedback(valid=True, message="Email looks good")


def validate_password(password: str) -> FieldFeedback:
    if not password:
        return _invalid("Please enter a password")

    if utf16_length(password) < PASSWORD_MIN_LENGTH:
        return _invalid(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    return FieldFeedback(valid=True, message="Password looks good")


def validate_confirm_password(confirm_password: str, password: str) -> FieldFeedback:
    if not confirm_password:
        return _invalid("Please confirm your password")

    if confirm_password != password:
        return _invalid("The two passwords do not match")

    return FieldFeedback(valid=True, message="Passwords match")


def validate_registration(form: RegistrationForm) -> RegistrationFeedback:
    """
    Validate every field of the registration form.

    Account name and email are trimmed first; passwords are taken as typed.

    Args:
        form: Raw form input

    Returns:
        Per-field feedback and overall validity
    """
    account_name = validate_account_name(form.account_name.strip())
    email = validate_email(form.email.strip())
    password = validate_password(form.password)
    confirm_password = validate_confirm_password(form.confirm_password, form.password)

    return RegistrationFeedback(
        account_name=account_name,
        email=email,
        password=password,
        confirm_password=confirm_password,
        valid=all(f.valid for f in (account_name, email, password, confirm_password)),
    )
