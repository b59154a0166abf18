"""
Session context backed by the hosted identity provider (Supabase Auth).

Instead of ambient global auth state, callers hold a ``SessionContext`` and
subscribe to its transitions. The identity provider owns every protocol
detail; this module only tracks the resulting session and fans out
``AuthEvent`` notifications.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from supabase import Client, create_client

from .config import Settings
from .errors import AuthenticationFailed, ConfigurationError, InvalidArgument

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PUBLIC_VIEWS = ("login", "signup", "forgot", "reset")
OAUTH_PROVIDERS = ("google", "apple")


class AuthEvent(str, Enum):
    SIGNED_IN = "signed-in"
    SIGNED_OUT = "signed-out"
    RECOVERY_REQUESTED = "recovery-requested"
    USER_UPDATED = "user-updated"


# Provider event names -> our events. Others (TOKEN_REFRESHED,
# INITIAL_SESSION, ...) only refresh the stored session.
_PROVIDER_EVENTS = {
    "SIGNED_IN": AuthEvent.SIGNED_IN,
    "SIGNED_OUT": AuthEvent.SIGNED_OUT,
    "PASSWORD_RECOVERY": AuthEvent.RECOVERY_REQUESTED,
    "USER_UPDATED": AuthEvent.USER_UPDATED,
}

Listener = Callable[[AuthEvent, "SessionContext"], None]


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class SessionContext:
    def __init__(self, client: Client, redirect_url: str = "http://localhost:8000"):
        self.client = client
        self.redirect_url = redirect_url.rstrip("/")
        self.user: Any = None
        self.session: Any = None
        self.loading = True
        self._listeners: List[Listener] = []
        self._subscription: Any = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionContext":
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")
        client = create_client(settings.supabase_url, settings.supabase_anon_key)
        return cls(client, redirect_url=settings.auth_redirect_url)

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    # ------------------------------------------------------------------
    # Observer interface
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: AuthEvent) -> None:
        logger.info(f"[AUTH] Event: {event.value}")
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception as e:
                logger.error(f"[AUTH] Listener {listener!r} failed on {event.value}: {e}")

    def _set_signed_in(self, session: Any, user: Any = None) -> None:
        already = self.session is not None and _get(self.session, "access_token") == _get(session, "access_token")
        self.session = session
        self.user = user or _get(session, "user")
        if not already:
            self._emit(AuthEvent.SIGNED_IN)

    def _set_signed_out(self) -> None:
        was_signed_in = self.session is not None
        self.session = None
        self.user = None
        if was_signed_in:
            self._emit(AuthEvent.SIGNED_OUT)

    def handle_provider_event(self, event: str, session: Any) -> None:
        """Callback given to the identity provider's state-change hook."""
        mapped = _PROVIDER_EVENTS.get(event)
        logger.debug(f"[AUTH] Provider event {event} -> {mapped.value if mapped else 'refresh'}")

        if mapped is AuthEvent.SIGNED_IN and session is not None:
            self._set_signed_in(session)
        elif mapped is AuthEvent.SIGNED_OUT:
            self._set_signed_out()
        elif mapped is AuthEvent.RECOVERY_REQUESTED:
            if session is not None:
                self.session = session
                self.user = _get(session, "user")
            self._emit(AuthEvent.RECOVERY_REQUESTED)
        elif mapped is AuthEvent.USER_UPDATED:
            if session is not None:
                self.session = session
                self.user = _get(session, "user")
            self._emit(AuthEvent.USER_UPDATED)
        elif session is not None:
            self.session = session
            self.user = _get(session, "user", self.user)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize(self) -> bool:
        """Restore an existing session and start listening for changes.

        Returns whether a session was restored.
        """
        try:
            session = self.client.auth.get_session()
            if session is not None:
                self._set_signed_in(session)
            self._subscription = self.client.auth.on_auth_state_change(self.handle_provider_event)
        except Exception as e:
            logger.error(f"[AUTH] Auth initialization error: {e}")
            return False
        finally:
            self.loading = False
        return self.is_authenticated

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> bool:
        """Create an account. Returns True when email confirmation is pending."""
        options = {"data": {"full_name": full_name}} if full_name else {}
        response = self._call("Sign Up", self.client.auth.sign_up, {
            "email": email,
            "password": password,
            "options": options,
        })
        session = _get(response, "session")
        if session is not None:
            self._set_signed_in(session, _get(response, "user"))
            return False
        logger.info(f"[AUTH] Confirmation email sent to {email}")
        return _get(response, "user") is not None

    def sign_in(self, email: str, password: str) -> Any:
        response = self._call("Sign In", self.client.auth.sign_in_with_password, {
            "email": email,
            "password": password,
        })
        session = _get(response, "session")
        if session is None:
            raise AuthenticationFailed("Sign In Failed: no session returned")
        self._set_signed_in(session, _get(response, "user"))
        return self.user

    def sign_in_with_oauth(self, provider: str) -> str:
        """Start an OAuth sign-in; returns the URL the browser must visit."""
        if provider not in OAUTH_PROVIDERS:
            raise InvalidArgument(f"Unsupported sign-in provider '{provider}'")
        response = self._call(f"{provider.title()} Sign In", self.client.auth.sign_in_with_oauth, {
            "provider": provider,
            "options": {"redirect_to": self.redirect_url},
        })
        return _get(response, "url")

    def sign_out(self) -> None:
        self._call("Sign Out", self.client.auth.sign_out)
        self._set_signed_out()

    def reset_password(self, email: str) -> None:
        if not email:
            raise InvalidArgument("Email is required")
        self._call("Reset", self.client.auth.reset_password_for_email, email, {
            "redirect_to": f"{self.redirect_url}?reset=true",
        })
        logger.info(f"[AUTH] Password reset link sent to {email}")

    def update_password(self, password: str, confirm: Optional[str] = None) -> None:
        validate_new_password(password, password if confirm is None else confirm)
        response = self._call("Update", self.client.auth.update_user, {"password": password})
        self.user = _get(response, "user", self.user)
        self._emit(AuthEvent.USER_UPDATED)

    def update_profile(self, updates: Dict[str, Any]) -> Any:
        response = self._call("Update", self.client.auth.update_user, {"data": updates})
        self.user = _get(response, "user", self.user)
        self._emit(AuthEvent.USER_UPDATED)
        return self.user

    def close(self) -> None:
        if self._subscription is not None and hasattr(self._subscription, "unsubscribe"):
            self._subscription.unsubscribe()
        self._subscription = None
        self._listeners.clear()

    def _call(self, action: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception as e:
            logger.error(f"[AUTH] {action} failed: {e}")
            raise AuthenticationFailed(f"{action} Failed: {e}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def validate_new_password(password: str, confirm: str) -> None:
    if password != confirm:
        raise InvalidArgument("Passwords do not match.")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def display_name(user: Any) -> str:
    metadata = _get(user, "user_metadata") or {}
    full_name = metadata.get("full_name") if isinstance(metadata, dict) else None
    if full_name:
        return full_name
    email = _get(user, "email")
    if email:
        return email.split("@")[0]
    return "User"


def plan_name(user: Any) -> str:
    metadata = _get(user, "user_metadata") or {}
    return (metadata.get("plan") if isinstance(metadata, dict) else None) or "Free Plan"


def initials(name: Optional[str]) -> str:
    if not name or not name.strip():
        return "U"
    parts = name.strip().split()
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def requires_auth(view: str) -> bool:
    return view not in PUBLIC_VIEWS


def resolve_view(view: str, context: SessionContext) -> str:
    """Where navigation to *view* should actually land."""
    if requires_auth(view) and not context.is_authenticated:
        return "login"
    if not requires_auth(view) and context.is_authenticated:
        return "dashboard"
    return view
