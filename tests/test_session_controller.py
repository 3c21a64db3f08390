import asyncio
import logging

import pytest
from google.auth import exceptions as gauth_exc

from fakes import FakeFirestore, FakeIdentityProvider, FakeProfileStore, drain
from fitsaga_admin.core.errors import AuthError, DataError, ProfileError
from fitsaga_admin.core.session import PROFILE_NOT_SAVED_WARNING, AuthSessionController
from fitsaga_admin.repositories.profiles import ProfileStore
from fitsaga_admin.schemas.auth import SessionState
from fitsaga_admin.schemas.user import Profile


def build(admin_emails=()):
    identity = FakeIdentityProvider()
    profiles = FakeProfileStore()
    controller = AuthSessionController(identity, profiles, admin_emails=admin_emails)
    seen = []
    controller.subscribe(seen.append)
    return controller, identity, profiles, seen


async def started(admin_emails=()):
    controller, identity, profiles, seen = build(admin_emails)
    await controller.start()
    await drain()
    return controller, identity, profiles, seen


@pytest.mark.asyncio
async def test_initial_state_is_checking_then_signed_out():
    controller, identity, _, seen = build()
    assert controller.session.state == SessionState.CHECKING
    assert controller.session.is_loading

    await controller.start()
    # The first notification is delivered asynchronously.
    assert controller.session.state == SessionState.CHECKING
    await drain()

    assert controller.session.state == SessionState.SIGNED_OUT
    assert not controller.session.is_loading
    assert not controller.session.is_admin
    assert identity.listener_count == 1
    await controller.close()


@pytest.mark.asyncio
async def test_admin_sign_in():
    controller, identity, profiles, seen = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", email="admin@fitsaga.com", role="admin")

    returned = await controller.sign_in("admin@fitsaga.com", "secret123")
    # The transition has not been applied when the command returns.
    assert returned.state == SessionState.SIGNED_OUT
    await drain()

    session = controller.session
    assert session.state == SessionState.SIGNED_IN
    assert session.is_admin
    assert session.identity.uid == "u1"
    assert session.profile.role == "admin"
    assert [s.state for s in seen[-2:]] == [SessionState.CHECKING, SessionState.SIGNED_IN]
    await controller.close()


@pytest.mark.asyncio
async def test_non_admin_role_is_not_admin():
    controller, identity, profiles, _ = await started()
    identity.add_account("coach@fitsaga.com", "secret123", "u2")
    profiles.profiles["u2"] = Profile(uid="u2", email="coach@fitsaga.com", role="trainer")

    await controller.sign_in("coach@fitsaga.com", "secret123")
    await drain()

    assert controller.session.state == SessionState.SIGNED_IN
    assert not controller.session.is_admin
    await controller.close()


@pytest.mark.asyncio
async def test_missing_profile_bootstraps_least_privilege():
    controller, identity, profiles, seen = await started()
    identity.add_account("new@fitsaga.com", "secret123", "u3", display_name="Nina New")

    await controller.sign_in("new@fitsaga.com", "secret123")
    await drain()

    states = [s.state for s in seen]
    assert SessionState.SIGNED_IN_NO_PROFILE in states
    assert states.index(SessionState.SIGNED_IN_NO_PROFILE) < len(states) - 1
    session = controller.session
    assert session.state == SessionState.SIGNED_IN
    assert session.profile.role == "user"
    assert session.profile.name == "Nina New"
    assert session.profile.credits == 0
    assert session.profile.access_status == "green"
    assert not session.is_admin
    assert session.warning is None
    assert [uid for uid, _ in profiles.set_calls] == ["u3"]
    await controller.close()


@pytest.mark.asyncio
async def test_allow_listed_email_bootstraps_admin():
    controller, identity, profiles, _ = await started(admin_emails=["Owner@FitSaga.com"])
    identity.add_account("owner@fitsaga.com", "secret123", "u4")

    await controller.sign_in("owner@fitsaga.com", "secret123")
    await drain()

    assert controller.session.is_admin
    assert profiles.profiles["u4"].role == "admin"
    await controller.close()


@pytest.mark.asyncio
async def test_profile_save_failure_keeps_in_memory_profile_with_warning():
    controller, identity, profiles, _ = await started()
    identity.add_account("new@fitsaga.com", "secret123", "u5")
    profiles.set_error = ProfileError("permission")

    await controller.sign_in("new@fitsaga.com", "secret123")
    await drain()

    session = controller.session
    assert session.state == SessionState.SIGNED_IN
    assert session.profile.uid == "u5"
    assert session.warning == PROFILE_NOT_SAVED_WARNING
    assert "u5" not in profiles.profiles
    assert len(profiles.set_calls) == 1
    await controller.close()


@pytest.mark.asyncio
async def test_profile_read_failure_is_error_state():
    controller, identity, profiles, _ = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", role="admin")
    profiles.get_error = ProfileError("network")

    await controller.sign_in("admin@fitsaga.com", "secret123")
    await drain()

    session = controller.session
    assert session.state == SessionState.ERROR
    assert session.identity.uid == "u1"
    assert session.profile is None
    assert not session.is_admin
    assert not session.is_loading
    assert session.error == ProfileError("network").message
    # A read failure never creates a profile.
    assert profiles.set_calls == []
    await controller.close()


@pytest.mark.asyncio
async def test_invalid_credentials_raise_and_leave_session_unchanged():
    controller, identity, _, seen = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    published = len(seen)

    with pytest.raises(AuthError) as excinfo:
        await controller.sign_in("admin@fitsaga.com", "wrong-password")
    await drain()

    assert excinfo.value.kind == "invalid-credentials"
    assert controller.session.state == SessionState.SIGNED_OUT
    assert len(seen) == published
    await controller.close()


@pytest.mark.asyncio
async def test_sign_out_navigates_and_clears_session():
    controller, identity, profiles, _ = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", role="admin")
    await controller.sign_in("admin@fitsaga.com", "secret123")
    await drain()
    assert controller.session.is_admin

    targets = []
    await controller.sign_out(navigate=targets.append)
    await drain()

    assert targets == ["/auth/login"]
    assert controller.session.state == SessionState.SIGNED_OUT
    assert controller.session.identity is None
    assert not controller.session.is_admin
    await controller.close()


@pytest.mark.asyncio
async def test_sign_out_failure_does_not_navigate():
    controller, identity, _, _ = await started()
    identity.sign_out_error = AuthError("network")
    targets = []

    with pytest.raises(AuthError):
        await controller.sign_out(navigate=targets.append)

    assert targets == []
    await controller.close()


@pytest.mark.asyncio
async def test_overtaken_notification_never_publishes():
    controller, identity, profiles, seen = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", role="admin")

    gate = asyncio.Event()
    original_get = profiles.get

    async def slow_get(uid):
        await gate.wait()
        return await original_get(uid)

    profiles.get = slow_get

    await controller.sign_in("admin@fitsaga.com", "secret123")
    await drain()
    assert controller.session.state == SessionState.CHECKING

    await controller.sign_out()
    await drain()
    assert controller.session.state == SessionState.SIGNED_OUT

    gate.set()
    await drain()

    assert controller.session.state == SessionState.SIGNED_OUT
    assert SessionState.SIGNED_IN not in [s.state for s in seen]
    await controller.close()


@pytest.mark.asyncio
async def test_refresh_re_reads_profile():
    controller, identity, profiles, _ = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", role="admin")
    await controller.sign_in("admin@fitsaga.com", "secret123")
    await drain()
    assert controller.session.is_admin

    profiles.profiles["u1"] = Profile(uid="u1", role="user")
    await controller.refresh()
    await drain()

    assert controller.session.state == SessionState.SIGNED_IN
    assert not controller.session.is_admin
    await controller.close()


@pytest.mark.asyncio
async def test_next_settled_skips_loading_states():
    controller, identity, profiles, _ = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", role="admin")

    waiter = asyncio.ensure_future(controller.next_settled())
    await controller.sign_in("admin@fitsaga.com", "secret123")
    session = await asyncio.wait_for(waiter, timeout=1)

    assert session.state == SessionState.SIGNED_IN
    assert not session.is_loading
    await controller.close()


@pytest.mark.asyncio
async def test_failing_observer_does_not_block_others():
    controller, identity, _, seen = build()

    def broken(session):
        raise RuntimeError("boom")

    controller.subscribe(broken)
    await controller.start()
    await drain()

    assert seen[-1].state == SessionState.SIGNED_OUT
    await controller.close()


@pytest.mark.asyncio
async def test_close_stops_updates():
    controller, identity, profiles, seen = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.profiles["u1"] = Profile(uid="u1", role="admin")

    await controller.close()
    assert identity.listener_count == 0
    assert not controller.is_running
    published = len(seen)

    await identity.sign_in_with_password("admin@fitsaga.com", "secret123")
    await drain()

    assert len(seen) == published
    assert controller.session.state == SessionState.SIGNED_OUT


@pytest.mark.asyncio
async def test_start_is_idempotent():
    controller, identity, _, _ = build()
    await controller.start()
    await controller.start()
    await drain()

    assert identity.listener_count == 1
    await controller.close()


@pytest.mark.asyncio
async def test_unsubscribed_observer_is_not_called():
    controller, identity, _, _ = build()
    calls = []
    unsubscribe = controller.subscribe(calls.append)
    unsubscribe()

    await controller.start()
    await drain()

    assert calls == []
    await controller.close()


@pytest.mark.asyncio
async def test_unexpected_failure_falls_back_to_signed_out(caplog):
    controller, identity, profiles, seen = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.get_error = RuntimeError("store client exploded")

    with caplog.at_level(logging.ERROR, logger="fitsaga.session"):
        await controller.sign_in("admin@fitsaga.com", "secret123")
        await drain()

    session = controller.session
    assert session.state == SessionState.SIGNED_OUT
    assert session.identity is None
    assert not session.is_loading
    assert seen[-2].state == SessionState.CHECKING
    assert "falling back to signed out" in caplog.text
    await controller.close()


@pytest.mark.asyncio
async def test_malformed_profile_is_error_state():
    controller, identity, profiles, _ = await started()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    profiles.get_error = DataError("validation")

    await controller.sign_in("admin@fitsaga.com", "secret123")
    await drain()

    session = controller.session
    assert session.state == SessionState.ERROR
    assert session.identity.uid == "u1"
    assert session.error == DataError("validation").message
    assert not session.is_admin
    assert profiles.set_calls == []
    await controller.close()


@pytest.mark.asyncio
async def test_credential_transport_failure_keeps_identity():
    db = FakeFirestore()
    identity = FakeIdentityProvider()
    identity.add_account("admin@fitsaga.com", "secret123", "u1")
    controller = AuthSessionController(identity, ProfileStore(lambda: db))
    await controller.start()
    await drain()
    db.fail_with = gauth_exc.TransportError("connection reset while refreshing credentials")

    waiter = asyncio.ensure_future(controller.next_settled())
    await controller.sign_in("admin@fitsaga.com", "secret123")
    session = await asyncio.wait_for(waiter, timeout=1)

    assert session.state == SessionState.ERROR
    assert session.identity.uid == "u1"
    assert session.error == ProfileError("network").message
    assert "users" not in db.data
    await controller.close()
