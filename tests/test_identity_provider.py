"""
Identity provider tests: JWT verification and the in-memory provider.
"""

from datetime import timedelta

import pytest

from test_fixtures import make_auth_user, make_token, TEST_AUDIENCE
from adapters.identity_provider import (
    AuthStatePublisher,
    InMemoryIdentityProvider,
    InvalidTokenError,
    SupabaseJWTVerifier,
    TokenVerifier,
)
from app.config import settings
from app.exceptions import UnauthorizedError


@pytest.fixture
def verifier():
    return SupabaseJWTVerifier(settings.supabase_jwt_secret, audience=TEST_AUDIENCE)


# =============================================================================
# JWT VERIFIER
# =============================================================================


def test_valid_token_resolves_user(verifier):
    user = make_auth_user()

    resolved = verifier.verify_token(make_token(user))

    assert resolved.uid == user.uid
    assert resolved.email == user.email
    assert resolved.display_name == "Sarah Martinez"
    assert resolved.email_verified is True


def test_expired_token_is_rejected(verifier):
    token = make_token(make_auth_user(), expires_in=timedelta(minutes=-5))

    with pytest.raises(InvalidTokenError) as exc:
        verifier.verify_token(token)

    assert exc.value.message == "Token has expired"
    assert exc.value.http_status == 401


def test_leeway_accepts_recently_expired_token():
    lenient = SupabaseJWTVerifier(settings.supabase_jwt_secret, audience=TEST_AUDIENCE, leeway=120)
    token = make_token(make_auth_user(), expires_in=timedelta(seconds=-30))

    assert lenient.verify_token(token).uid


def test_wrong_audience_is_rejected(verifier):
    token = make_token(make_auth_user(), audience="anon")

    with pytest.raises(InvalidTokenError) as exc:
        verifier.verify_token(token)

    assert exc.value.message.startswith("Invalid token")


def test_wrong_signature_is_rejected(verifier):
    token = make_token(make_auth_user(), secret="some-other-project-secret-abcdefghijkl")

    with pytest.raises(InvalidTokenError):
        verifier.verify_token(token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_token_is_rejected(verifier, token):
    with pytest.raises(InvalidTokenError):
        verifier.verify_token(token)


def test_invalid_token_is_an_unauthorized_error():
    assert issubclass(InvalidTokenError, UnauthorizedError)


def test_verifier_requires_secret():
    with pytest.raises(ValueError):
        SupabaseJWTVerifier("")


def test_verifier_only_verifies(verifier):
    assert isinstance(verifier, TokenVerifier)
    assert not isinstance(verifier, AuthStatePublisher)
    assert not hasattr(verifier, "subscribe")
    assert not hasattr(verifier, "subscribe_id_token")


def test_in_memory_provider_implements_both_ports():
    provider = InMemoryIdentityProvider()

    assert isinstance(provider, TokenVerifier)
    assert isinstance(provider, AuthStatePublisher)


# =============================================================================
# IN-MEMORY PROVIDER
# =============================================================================


def test_subscriber_is_called_with_current_user():
    user = make_auth_user()
    provider = InMemoryIdentityProvider(initial_user=user, initial_token="t-1")
    seen = []

    provider.subscribe(seen.append)

    assert seen == [user]


def test_refresh_only_reaches_id_token_subscribers():
    user = make_auth_user()
    provider = InMemoryIdentityProvider(initial_user=user, initial_token="t-1")
    auth_seen, token_seen = [], []
    provider.subscribe(auth_seen.append)
    provider.subscribe_id_token(token_seen.append)

    provider.refresh_token("t-2")

    assert auth_seen == [user]
    assert token_seen == [user, user]
    assert provider.get_id_token(user) == "t-2"


def test_refresh_without_user_fails():
    provider = InMemoryIdentityProvider()

    with pytest.raises(UnauthorizedError):
        provider.refresh_token("t-1")


def test_unsubscribe_stops_notifications():
    provider = InMemoryIdentityProvider()
    seen = []
    unsubscribe = provider.subscribe(seen.append)
    unsubscribe()

    provider.sign_in(make_auth_user(), "t-1")

    assert seen == [None]
    assert provider.listener_count == 0


def test_verify_token_matches_current_session():
    user = make_auth_user()
    provider = InMemoryIdentityProvider()
    provider.sign_in(user, "t-1")

    assert provider.verify_token("t-1") == user
    with pytest.raises(InvalidTokenError):
        provider.verify_token("t-0")

    provider.sign_out()
    with pytest.raises(InvalidTokenError):
        provider.verify_token("t-1")


def test_get_id_token_for_other_user_fails():
    provider = InMemoryIdentityProvider(initial_user=make_auth_user(), initial_token="t-1")

    with pytest.raises(InvalidTokenError):
        provider.get_id_token(make_auth_user())
