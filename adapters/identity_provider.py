"""Identity provider adapters.

Two ports:

- ``AuthStatePublisher`` pushes auth-state and id-token changes
  (``subscribe``, ``subscribe_id_token``) and issues id tokens. The
  synchronizers in ``services.auth_state`` consume it.
- ``TokenVerifier`` resolves bearer tokens presented to the API
  (``verify_token``). ``api.dependencies`` consumes it.

``InMemoryIdentityProvider`` implements both and backs local development and
tests. ``SupabaseJWTVerifier`` only verifies real access tokens.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging
import threading

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as JWTError

from app.config import settings
from app.exceptions import UnauthorizedError
from domain.schemas.auth_schemas import AuthUser

logger = logging.getLogger("nutricoach.identity")

AuthCallback = Callable[[Optional[AuthUser]], None]
Unsubscribe = Callable[[], None]


class InvalidTokenError(UnauthorizedError):
    """Raised when a bearer token is malformed, expired or not recognised."""

    default_message = "Invalid token"


class TokenVerifier(ABC):
    """Resolves bearer tokens presented to the API."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthUser:
        """Resolve a bearer token to a user or raise InvalidTokenError"""


class AuthStatePublisher(ABC):
    """Client-side identity session: pushes auth changes and issues id tokens."""

    @abstractmethod
    def subscribe(self, callback: AuthCallback) -> Unsubscribe:
        """Register for sign-in/sign-out notifications; returns the deregistration function"""

    @abstractmethod
    def subscribe_id_token(self, callback: AuthCallback) -> Unsubscribe:
        """Register for sign-in, sign-out and token-refresh notifications"""

    @abstractmethod
    def get_id_token(self, user: AuthUser) -> str:
        """Current id token of a signed-in user"""


class _ListenerSet:
    """Callbacks registered with a provider, notified in registration order"""

    def __init__(self):
        self._callbacks: List[AuthCallback] = []
        self._lock = threading.Lock()

    def add(self, callback: AuthCallback) -> Unsubscribe:
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, user: Optional[AuthUser]) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback(user)

    def __len__(self) -> int:
        return len(self._callbacks)


class InMemoryIdentityProvider(AuthStatePublisher, TokenVerifier):
    """Process-local identity provider with the push semantics of a client SDK.

    A new subscriber is called right away with the current user (or None),
    mirroring how hosted auth SDKs report the restored session on startup.
    """

    def __init__(self, initial_user: Optional[AuthUser] = None, initial_token: Optional[str] = None):
        self._user = initial_user
        self._token = initial_token
        self._auth_listeners = _ListenerSet()
        self._token_listeners = _ListenerSet()

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._user

    @property
    def listener_count(self) -> int:
        return len(self._auth_listeners) + len(self._token_listeners)

    def subscribe(self, callback: AuthCallback) -> Unsubscribe:
        unsubscribe = self._auth_listeners.add(callback)
        callback(self._user)
        return unsubscribe

    def subscribe_id_token(self, callback: AuthCallback) -> Unsubscribe:
        unsubscribe = self._token_listeners.add(callback)
        callback(self._user)
        return unsubscribe

    def sign_in(self, user: AuthUser, token: str) -> None:
        self._user = user
        self._token = token
        logger.info(f"identity_signed_in uid={user.uid}")
        self._auth_listeners.notify(user)
        self._token_listeners.notify(user)

    def sign_out(self) -> None:
        previous = self._user
        self._user = None
        self._token = None
        logger.info(f"identity_signed_out uid={previous.uid if previous else None}")
        self._auth_listeners.notify(None)
        self._token_listeners.notify(None)

    def refresh_token(self, token: str) -> None:
        """Rotate the id token; only id-token subscribers hear about it"""
        if self._user is None:
            raise UnauthorizedError("Cannot refresh a token without a signed-in user")
        self._token = token
        self._token_listeners.notify(self._user)

    def get_id_token(self, user: AuthUser) -> str:
        if self._user is None or self._token is None or self._user.uid != user.uid:
            raise InvalidTokenError("User is not signed in")
        return self._token

    def verify_token(self, token: str) -> AuthUser:
        if not token or self._user is None or token != self._token:
            raise InvalidTokenError("Token not recognised")
        return self._user


class SupabaseJWTVerifier(TokenVerifier):
    """Verifies HS256 access tokens signed with the project's JWT secret."""

    ALGORITHMS = ["HS256"]

    def __init__(self, secret: str, audience: Optional[str] = "authenticated", leeway: int = 0):
        if not secret:
            raise ValueError("JWT secret is required")
        self.secret = secret
        self.audience = audience
        self.leeway = leeway

    def verify_token(self, token: str) -> AuthUser:
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=self.ALGORITHMS,
                audience=self.audience,
                leeway=self.leeway,
                options={"require": ["sub", "exp"], "verify_aud": self.audience is not None},
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        return AuthUser.from_claims(claims)


_verifier: Optional[TokenVerifier] = None


def get_verifier() -> TokenVerifier:
    """Lazily build the process-wide token verifier from settings."""
    global _verifier
    if _verifier is None:
        _verifier = SupabaseJWTVerifier(
            settings.supabase_jwt_secret, audience=settings.supabase_jwt_audience
        )
    return _verifier
