import re

from authority.core.exceptions import PasswordPolicyError


class PasswordPolicyValidator:
    """Validates passwords against a defined security policy.

    The policy requires passwords to meet a minimum length, and include a mix of
    uppercase letters, lowercase letters, numbers, and special characters.
    """

    def __init__(
        self,
        min_length: int = 8,
        max_length: int = 128,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_digit: bool = True,
        require_special_char: bool = True,
    ):
        self.min_length = min_length
        self.max_length = max_length
        self.require_uppercase = require_uppercase
        self.require_lowercase = require_lowercase
        self.require_digit = require_digit
        self.require_special_char = require_special_char

    @classmethod
    def from_settings(cls, settings) -> "PasswordPolicyValidator":
        return cls(
            min_length=settings.PASSWORD_MIN_LENGTH,
            max_length=settings.PASSWORD_MAX_LENGTH,
            require_uppercase=settings.PASSWORD_REQUIRE_UPPERCASE,
            require_lowercase=settings.PASSWORD_REQUIRE_LOWERCASE,
            require_digit=settings.PASSWORD_REQUIRE_DIGIT,
            require_special_char=settings.PASSWORD_REQUIRE_SPECIAL_CHAR,
        )

    def validate(self, password: str) -> None:
        """Validates the given password against the policy.

        Args:
            password (str): The password to validate.

        Raises:
            PasswordPolicyError: If the password does not meet the policy requirements.
        """
        if not password or len(password) < self.min_length:
            raise PasswordPolicyError(
                f"Password must be at least {self.min_length} characters long",
                code="password_too_short",
            )

        if len(password) > self.max_length:
            raise PasswordPolicyError(
                f"Password must be at most {self.max_length} characters long",
                code="password_too_long",
            )

        if self.require_uppercase and not re.search(r"[A-Z]", password):
            raise PasswordPolicyError(
                "Password must contain an uppercase letter", code="password_no_uppercase"
            )

        if self.require_lowercase and not re.search(r"[a-z]", password):
            raise PasswordPolicyError(
                "Password must contain a lowercase letter", code="password_no_lowercase"
            )

        if self.require_digit and not re.search(r"\d", password):
            raise PasswordPolicyError("Password must contain a digit", code="password_no_digit")

        if self.require_special_char and not re.search(r"[^A-Za-z0-9\s]", password):
            raise PasswordPolicyError(
                "Password must contain a special character", code="password_no_special_char"
            )
