from datetime import timedelta

import pytest

from authority.domain.entities.account import Account, AuthProvider
from authority.domain.entities.email_verification_ticket import EmailVerificationTicket
from authority.domain.entities.refresh_session import RefreshSession
from authority.domain.events.lifecycle_events import UserEventType, UserLifecycleEvent
from authority.domain.value_objects.social_profile import SocialProfile
from authority.domain.value_objects.verification import VerificationOutcome, VerificationResult
from authority.utils.security import mask_email, token_prefix, utc_now


class TestAuthProvider:
    @pytest.mark.parametrize("tag", ["google", "GOOGLE", " Google "])
    def test_from_tag_is_case_insensitive(self, tag):
        assert AuthProvider.from_tag(tag) == AuthProvider.GOOGLE

    @pytest.mark.parametrize("tag", ["", "myspace", None])
    def test_from_tag_rejects_unknown(self, tag):
        with pytest.raises(ValueError):
            AuthProvider.from_tag(tag)


class TestSocialProfile:
    def test_email_is_normalized(self):
        profile = SocialProfile(AuthProvider.GOOGLE, "1", "  Alice@Example.COM ")
        assert profile.email == "alice@example.com"

    @pytest.mark.parametrize(
        "external_id,email", [("", "a@example.com"), ("1", ""), ("1", "nope"), ("1", 42)]
    )
    def test_incomplete_profile(self, external_id, email):
        with pytest.raises(ValueError):
            SocialProfile(AuthProvider.FACEBOOK, external_id, email)


class TestEntities:
    def test_normalize_email(self):
        assert Account.normalize_email(" Bob@Example.com ") == "bob@example.com"

    def test_set_password_hash_clears_reset_token(self):
        account = Account(
            email="a@example.com",
            password_reset_token_hash="abc",
            password_reset_expires_at=utc_now(),
        )
        account.set_password_hash("new-hash")
        assert account.password_hash == "new-hash"
        assert account.password_changed_at is not None
        assert account.password_reset_token_hash is None
        assert account.password_reset_expires_at is None

    def test_session_expiry_boundary(self):
        now = utc_now()
        session = RefreshSession(token_hash="h", account_id=1, issued_at=now, expires_at=now)
        assert session.is_expired(now)
        assert not session.is_active(now)
        assert session.is_active(now - timedelta(seconds=1))

    def test_ticket_states(self):
        now = utc_now()
        ticket = EmailVerificationTicket(token="t", account_id=1, token_expiry=now + timedelta(hours=1))
        assert ticket.is_pending(now)
        ticket.verified_at = now
        assert ticket.is_verified
        assert not ticket.is_pending(now)


class TestLifecycleEvent:
    def test_json_uses_camel_case(self):
        account = Account(id=3, email="c@example.com")
        event = UserLifecycleEvent.from_account(account, UserEventType.USER_CREATED)
        body = event.to_json()
        assert '"userId":3' in body
        assert '"eventType":"USER_CREATED"' in body
        assert '"provider":"LOCAL"' in body


class TestVerificationResult:
    def test_already_verified_flag(self):
        assert VerificationResult(VerificationOutcome.ALREADY_VERIFIED, "a@example.com").already_verified
        assert not VerificationResult(VerificationOutcome.VERIFIED, "a@example.com").already_verified


class TestLogHelpers:
    def test_mask_email(self):
        assert mask_email("alice@example.com") == "al***@example.com"
        assert mask_email("broken") == "***"

    def test_token_prefix(self):
        assert token_prefix("abcdefghijkl") == "abcdefgh..."
        assert token_prefix("") == ""
