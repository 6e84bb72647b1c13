import pytest

from iam_sync.core import password_policy
from iam_sync.core.errors import ErrorKind, IdentityError
from iam_sync.core.models import PasswordSettings

STRICT = PasswordSettings(min_length=8, require_digits=True, require_upper_case=True, require_special_symbols=True)


class TestUnmetRules:
    def test_lists_every_failure_in_policy_order(self):
        assert password_policy.unmet_rules("abc", STRICT) == [
            "at least 8 characters",
            "an upper-case letter",
            "a digit",
            "a special symbol",
        ]

    def test_compliant_password_has_no_failures(self):
        assert password_policy.unmet_rules("Abcdefg1!", STRICT) == []

    @pytest.mark.parametrize(
        "password, expected",
        [
            ("abcdefghÄ1!", []),            # Ä is an upper-case letter
            ("Abcdefgh٣!", []),             # Arabic-Indic three is a decimal digit
            ("Abcdefg1_", ["a special symbol"]),  # connector punctuation is a word character
            ("Abcdefg1é", ["a special symbol"]),
            ("Abcdefg1 ", []),
        ],
    )
    def test_character_classes_follow_unicode_categories(self, password, expected):
        assert password_policy.unmet_rules(password, STRICT) == expected


class TestValidate:
    def test_empty_password_is_invalid(self):
        assert password_policy.validate("", PasswordSettings()) is False
        assert password_policy.validate(None, PasswordSettings()) is False

    def test_default_policy_only_checks_length(self):
        assert password_policy.validate("abcdef", PasswordSettings()) is True
        assert password_policy.validate("abcde", PasswordSettings()) is False


class TestCheckOrFail:
    @pytest.mark.parametrize("password", ["", None])
    def test_empty_password(self, password):
        with pytest.raises(IdentityError) as exc:
            password_policy.check_or_fail(password, STRICT)
        assert exc.value.kind == ErrorKind.EMPTY_CREDENTIAL

    def test_violation_lists_unmet_rules(self):
        settings = PasswordSettings(min_length=8, require_digits=True)
        with pytest.raises(IdentityError) as exc:
            password_policy.check_or_fail("short", settings)
        assert exc.value.kind == ErrorKind.POLICY_VIOLATION
        assert exc.value.detail == "Password does not meet the policy, it needs at least 8 characters, a digit"

    def test_compliant_password_passes(self):
        password_policy.check_or_fail("Abcdefg1!", STRICT)


def test_describe_policy():
    settings = PasswordSettings(min_length=10, require_digits=True, require_special_symbols=True)
    assert password_policy.describe_policy(settings) == (
        "Password must contain at least 10 characters, a digit, a special symbol"
    )


class TestGenerate:
    @pytest.mark.parametrize("digits", [False, True])
    @pytest.mark.parametrize("upper", [False, True])
    @pytest.mark.parametrize("special", [False, True])
    def test_generated_password_satisfies_policy(self, digits, upper, special):
        settings = PasswordSettings(
            min_length=7, require_digits=digits, require_upper_case=upper, require_special_symbols=special
        )
        password = password_policy.generate(settings)
        assert password_policy.validate(password, settings)
        assert len(password) == 7 + digits + upper + special

    def test_required_classes_are_appended_in_order(self):
        password = password_policy.generate(STRICT)
        assert len(password) == 11
        assert all(c in password_policy.BASE_ALPHABET for c in password[:8])
        assert password[8] in password_policy.DIGIT_ALPHABET
        assert password[9] in password_policy.UPPER_ALPHABET
        assert password[10] in "@%&;"

    def test_passwords_differ_between_calls(self):
        settings = PasswordSettings(min_length=16)
        assert password_policy.generate(settings) != password_policy.generate(settings)


def test_min_length_must_be_positive():
    with pytest.raises(ValueError, match="min_length must be at least 1"):
        PasswordSettings(min_length=0)
