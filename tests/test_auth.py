from types import SimpleNamespace

import pytest

from media_relay.auth import (
    AuthEvent,
    SessionContext,
    display_name,
    initials,
    requires_auth,
    resolve_view,
    validate_new_password,
)
from media_relay.errors import AuthenticationFailed, InvalidArgument


def make_session(token="tok-1", email="ada@example.com", full_name="Ada Lovelace"):
    user = SimpleNamespace(email=email, user_metadata={"full_name": full_name})
    return SimpleNamespace(access_token=token, user=user)


class FakeAuth:
    """Stands in for the identity provider's auth client."""

    def __init__(self, session=None, fail=None):
        self.session = session
        self.fail = fail or set()
        self.calls = []
        self.state_callback = None

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise RuntimeError(f"{name} refused")

    def get_session(self):
        self._record("get_session")
        return self.session

    def on_auth_state_change(self, callback):
        self._record("on_auth_state_change")
        self.state_callback = callback
        return SimpleNamespace(unsubscribe=lambda: None)

    def sign_up(self, credentials):
        self._record("sign_up", credentials)
        return SimpleNamespace(user=SimpleNamespace(email=credentials["email"], user_metadata={}), session=None)

    def sign_in_with_password(self, credentials):
        self._record("sign_in_with_password", credentials)
        session = make_session()
        return SimpleNamespace(user=session.user, session=session)

    def sign_in_with_oauth(self, credentials):
        self._record("sign_in_with_oauth", credentials)
        return SimpleNamespace(provider=credentials["provider"], url="https://idp/authorize?provider=" + credentials["provider"])

    def sign_out(self):
        self._record("sign_out")

    def reset_password_for_email(self, email, options):
        self._record("reset_password_for_email", email, options)

    def update_user(self, attributes):
        self._record("update_user", attributes)
        metadata = attributes.get("data", {"full_name": "Ada Lovelace"})
        return SimpleNamespace(user=SimpleNamespace(email="ada@example.com", user_metadata=metadata))


def make_context(**kwargs):
    auth = FakeAuth(**kwargs)
    context = SessionContext(SimpleNamespace(auth=auth), redirect_url="https://app.example.com/")
    events = []
    context.subscribe(lambda event, ctx: events.append(event))
    return context, auth, events


def test_initialize_restores_existing_session():
    context, auth, events = make_context(session=make_session())

    assert context.initialize() is True
    assert context.is_authenticated
    assert not context.loading
    assert events == [AuthEvent.SIGNED_IN]
    assert auth.state_callback is not None


def test_initialize_without_session():
    context, _, events = make_context()
    assert context.initialize() is False
    assert events == []


def test_initialize_failure_is_not_fatal():
    context, _, _ = make_context(fail={"get_session"})
    assert context.initialize() is False
    assert not context.loading


def test_sign_in_then_provider_echo_emits_once():
    context, auth, events = make_context()
    context.initialize()

    context.sign_in("ada@example.com", "secret1")
    # the provider reports the same session through its state hook
    auth.state_callback("SIGNED_IN", context.session)

    assert events == [AuthEvent.SIGNED_IN]
    assert display_name(context.user) == "Ada Lovelace"


def test_sign_out_emits_signed_out():
    context, _, events = make_context(session=make_session())
    context.initialize()
    context.sign_out()

    assert not context.is_authenticated
    assert context.user is None
    assert events == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]


def test_password_recovery_event():
    context, auth, events = make_context()
    context.initialize()
    auth.state_callback("PASSWORD_RECOVERY", make_session(token="recovery"))
    assert events == [AuthEvent.RECOVERY_REQUESTED]


def test_token_refresh_updates_session_silently():
    context, auth, events = make_context(session=make_session())
    context.initialize()
    auth.state_callback("TOKEN_REFRESHED", make_session(token="tok-2"))
    assert context.session.access_token == "tok-2"
    assert events == [AuthEvent.SIGNED_IN]


def test_sign_up_pending_confirmation():
    context, auth, events = make_context()
    assert context.sign_up("new@example.com", "secret1", "New User") is True
    name, args = auth.calls[-1]
    assert name == "sign_up"
    assert args[0]["options"] == {"data": {"full_name": "New User"}}
    assert events == []


def test_oauth_returns_redirect_url():
    context, auth, _ = make_context()
    url = context.sign_in_with_oauth("google")
    assert url.endswith("provider=google")
    assert auth.calls[-1][1][0]["options"] == {"redirect_to": "https://app.example.com"}
    with pytest.raises(InvalidArgument):
        context.sign_in_with_oauth("myspace")


def test_reset_password_uses_recovery_redirect():
    context, auth, _ = make_context()
    context.reset_password("ada@example.com")
    assert auth.calls[-1] == ("reset_password_for_email", ("ada@example.com", {"redirect_to": "https://app.example.com?reset=true"}))


def test_update_profile_replaces_user():
    context, _, events = make_context(session=make_session())
    context.initialize()
    user = context.update_profile({"full_name": "Countess Ada"})
    assert display_name(user) == "Countess Ada"
    assert events[-1] is AuthEvent.USER_UPDATED


def test_provider_failure_raises_authentication_failed():
    context, _, _ = make_context(fail={"sign_in_with_password"})
    with pytest.raises(AuthenticationFailed) as exc_info:
        context.sign_in("ada@example.com", "wrong")
    assert "sign_in_with_password refused" in exc_info.value.message
    assert not context.is_authenticated


def test_failing_listener_does_not_block_others():
    context, _, events = make_context()

    def broken(event, ctx):
        raise ValueError("listener bug")

    context.subscribe(broken)
    later = []
    context.subscribe(lambda event, ctx: later.append(event))
    context.sign_in("ada@example.com", "secret1")

    assert events == [AuthEvent.SIGNED_IN]
    assert later == [AuthEvent.SIGNED_IN]


def test_unsubscribe():
    context, _, _ = make_context()
    seen = []
    unsubscribe = context.subscribe(lambda event, ctx: seen.append(event))
    unsubscribe()
    context.sign_in("ada@example.com", "secret1")
    assert seen == []


def test_update_password_validates_before_calling_provider():
    context, auth, _ = make_context()
    with pytest.raises(InvalidArgument):
        context.update_password("abc", "abc")
    assert auth.calls == []


def test_password_validation():
    validate_new_password("secret1", "secret1")
    with pytest.raises(InvalidArgument, match="do not match"):
        validate_new_password("secret1", "secret2")
    with pytest.raises(InvalidArgument, match="at least 6"):
        validate_new_password("abc", "abc")


def test_display_helpers():
    assert initials("Ada Lovelace") == "AL"
    assert initials("ada") == "A"
    assert initials("") == "U"
    assert display_name(SimpleNamespace(email="bob@example.com", user_metadata={})) == "bob"
    assert display_name(None) == "User"


def test_view_resolution():
    context, _, _ = make_context()
    assert requires_auth("dashboard")
    assert not requires_auth("login")
    assert resolve_view("dashboard", context) == "login"
    context.sign_in("ada@example.com", "secret1")
    assert resolve_view("login", context) == "dashboard"
    assert resolve_view("projects", context) == "projects"
