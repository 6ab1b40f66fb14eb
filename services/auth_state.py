"""
Auth-state synchronization.

``AuthStateSynchronizer`` mirrors the identity provider's current user into
locally observable state and republishes each change to any number of
read-only listeners. ``SessionSynchronizer`` keeps the session cookie in step
with the provider's id token.
"""

from dataclasses import dataclass
from typing import Callable, List, MutableMapping, Optional
import logging
import threading

from adapters.identity_provider import AuthStatePublisher, Unsubscribe
from app.config import settings
from domain.schemas.auth_schemas import AuthUser

logger = logging.getLogger("nutricoach.auth_state")


@dataclass(frozen=True)
class AuthState:
    """Snapshot of the synchronizer: current user plus readiness flag"""

    user: Optional[AuthUser] = None
    is_ready: bool = False

    @property
    def is_loading(self) -> bool:
        return not self.is_ready


StateListener = Callable[[AuthState], None]


class AuthStateSynchronizer:
    """
    Single-producer, multi-consumer mirror of the provider's auth state.

    Lifecycle:
        - ``activate()`` registers one callback with the provider and starts a
          fresh subscription lifetime (no user, not ready).
        - The first notification, with a user or with None, marks the state
          ready. Readiness never reverts within the lifetime.
        - ``deactivate()`` deregisters the callback. Notifications that arrive
          afterwards, including late ones from an earlier lifetime, are
          dropped, so the last snapshot stays frozen.

    Usage:
        with AuthStateSynchronizer(provider) as sync:
            sync.add_listener(lambda state: render(state.user))
    """

    def __init__(self, provider: AuthStatePublisher):
        self._provider = provider
        self._lock = threading.Lock()
        self._state = AuthState()
        self._listeners: List[StateListener] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self._active = False
        self._generation = 0

    # ------------------ Observable state ------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[AuthUser]:
        return self._state.user

    @property
    def is_ready(self) -> bool:
        return self._state.is_ready

    @property
    def active(self) -> bool:
        return self._active

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Observe every state change; returns a function that stops observing"""
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    # ------------------ Lifecycle ------------------

    def activate(self) -> None:
        with self._lock:
            if self._active:
                return
            self._generation += 1
            generation = self._generation
            self._state = AuthState()
            self._active = True

        # The provider may call back synchronously from inside subscribe()
        unsubscribe = self._provider.subscribe(
            lambda user: self._on_auth_state_changed(generation, user)
        )

        with self._lock:
            if self._active and self._generation == generation:
                self._unsubscribe = unsubscribe
                logger.debug("auth_state_subscribed generation=%d", generation)
                return
        # deactivated while subscribing
        unsubscribe()

    def deactivate(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        logger.debug("auth_state_unsubscribed generation=%d", self._generation)

    def __enter__(self) -> "AuthStateSynchronizer":
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()

    # ------------------ Provider callback ------------------

    def _on_auth_state_changed(self, generation: int, user: Optional[AuthUser]) -> None:
        with self._lock:
            if not self._active or generation != self._generation:
                return
            self._state = AuthState(user=user, is_ready=True)
            state = self._state
            listeners = list(self._listeners)

        for listener in listeners:
            listener(state)


class SessionSynchronizer:
    """
    Keeps the session cookie in step with the provider's id token.

    With a signed-in user the cookie holds the user's current id token.
    Without one the cookie is removed. When the notified user differs from
    the user the page was rendered for, ``on_identity_switch`` is invoked so
    the caller can reload server-rendered state.
    """

    def __init__(
        self,
        provider: AuthStatePublisher,
        cookies: MutableMapping[str, str],
        initial_user: Optional[AuthUser],
        on_identity_switch: Callable[[Optional[AuthUser]], None],
        cookie_name: Optional[str] = None,
    ):
        self._provider = provider
        self._cookies = cookies
        self._initial_user = initial_user
        self._on_identity_switch = on_identity_switch
        self._cookie_name = cookie_name or settings.auth_cookie_name
        self._unsubscribe: Optional[Unsubscribe] = None
        self._active = False

    @property
    def initial_user(self) -> Optional[AuthUser]:
        return self._initial_user

    def activate(self) -> None:
        if self._active:
            return
        self._active = True
        unsubscribe = self._provider.subscribe_id_token(self._on_id_token_changed)
        if self._active:
            self._unsubscribe = unsubscribe
        else:
            unsubscribe()

    def deactivate(self) -> None:
        if not self._active:
            return
        self._active = False
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def __enter__(self) -> "SessionSynchronizer":
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()

    def _on_id_token_changed(self, user: Optional[AuthUser]) -> None:
        if not self._active:
            return

        if user is not None:
            self._cookies[self._cookie_name] = self._provider.get_id_token(user)
        else:
            self._cookies.pop(self._cookie_name, None)

        initial_uid = self._initial_user.uid if self._initial_user else None
        current_uid = user.uid if user else None
        if initial_uid == current_uid:
            return

        logger.info(
            "session_identity_switched from=%s to=%s", initial_uid, current_uid
        )
        self._on_identity_switch(user)
