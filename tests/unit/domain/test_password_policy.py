import pytest

from authority.core.exceptions import PasswordPolicyError
from authority.domain.services.auth.password_policy import PasswordPolicyValidator


class TestPasswordPolicyValidator:
    @pytest.fixture
    def policy(self):
        return PasswordPolicyValidator()

    def test_accepts_strong_password(self, policy):
        policy.validate("Str0ngP@ssw0rd")

    @pytest.mark.parametrize(
        "password,code",
        [
            ("", "password_too_short"),
            ("Sh0rt!", "password_too_short"),
            ("alllowercase1!", "password_no_uppercase"),
            ("ALLUPPERCASE1!", "password_no_lowercase"),
            ("NoDigitsHere!", "password_no_digit"),
            ("NoSpecial123", "password_no_special_char"),
        ],
    )
    def test_rejects_weak_passwords(self, policy, password, code):
        with pytest.raises(PasswordPolicyError) as exc_info:
            policy.validate(password)
        assert exc_info.value.code == code

    def test_rejects_overlong_password(self):
        policy = PasswordPolicyValidator(max_length=16)
        with pytest.raises(PasswordPolicyError) as exc_info:
            policy.validate("Aa1!" * 5)
        assert exc_info.value.code == "password_too_long"

    def test_whitespace_is_not_a_special_character(self, policy):
        with pytest.raises(PasswordPolicyError):
            policy.validate("No Special 123")

    def test_relaxed_policy_from_settings(self, test_settings):
        test_settings.PASSWORD_REQUIRE_SPECIAL_CHAR = False
        test_settings.PASSWORD_REQUIRE_UPPERCASE = False
        policy = PasswordPolicyValidator.from_settings(test_settings)
        policy.validate("plainpassword1")
