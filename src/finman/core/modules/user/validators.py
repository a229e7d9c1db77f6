from finman.errors import ValidationError
from finman.utils import is_email

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> None:
    if not is_email(email):
        raise ValidationError("Please add a valid email")


def validate_name(name: str) -> None:
    if not name.strip():
        raise ValidationError("Please add a name")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name cannot be more than {MAX_NAME_LENGTH} characters")


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 6 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
