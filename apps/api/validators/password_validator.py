"""
Password validation utilities
"""

from typing import Tuple
from errors import ValidationError


class PasswordValidator:
    """Validates password length requirements"""

    MIN_LENGTH = 8
    MAX_BYTES = 72

    @staticmethod
    def validate(password: str) -> Tuple[bool, str]:
        """
        Validate password against the length requirements

        Returns:
            (is_valid, error_message)
        """
        if not password:
            return False, "Password is required"

        if len(password) < PasswordValidator.MIN_LENGTH:
            return False, f"Password must be at least {PasswordValidator.MIN_LENGTH} characters long"

        # bcrypt refuses anything longer
        if len(password.encode("utf-8")) > PasswordValidator.MAX_BYTES:
            return False, f"Password must not exceed {PasswordValidator.MAX_BYTES} bytes"

        return True, ""


def validate_password(password: str) -> None:
    """
    Validate password and raise exception if invalid

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    is_valid, error_message = PasswordValidator.validate(password)
    if not is_valid:
        raise ValidationError(error_message)
