# fitsaga_admin/core/identity.py
"""
Identity Provider Client.

Signs in against the Firebase Identity Toolkit REST API (e-mail + password), refreshes the
ID token through the Secure Token API and signs out (optionally revoking refresh tokens with
the Admin SDK, as `/auth/logout` used to do).

Every state change is announced on an asynchronous notification channel: `on_change(cb)`
registers a listener and returns an `unsubscribe` callable. Listeners are never called from
inside the command that caused the change; each delivery is scheduled on the running event
loop, so callers must not assume the session is updated when a command returns.
"""
import asyncio
import inspect
import logging
import time
from typing import Awaitable, Callable, List, Optional, Set, Union

import httpx
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from fitsaga_admin.core.errors import AuthError
from fitsaga_admin.schemas.principal import Identity

logger = logging.getLogger("fitsaga.identity")

FIREBASE_SIGNIN_ENDPOINT = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
FIREBASE_REFRESH_ENDPOINT = "https://securetoken.googleapis.com/v1/token"

# Identity Toolkit error codes that mean "wrong e-mail/password" rather than an outage.
INVALID_CREDENTIAL_CODES = {
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "INVALID_EMAIL",
    "MISSING_PASSWORD",
    "USER_DISABLED",
}
# Secure Token error codes that mean the refresh token is no longer usable.
DEAD_REFRESH_CODES = {
    "TOKEN_EXPIRED",
    "USER_DISABLED",
    "USER_NOT_FOUND",
    "INVALID_REFRESH_TOKEN",
    "INVALID_GRANT_TYPE",
    "MISSING_REFRESH_TOKEN",
}

IdentityListener = Callable[[Optional[Identity]], Union[None, Awaitable[None]]]


class IdentityChannel:
    """Listener registry + scheduled delivery of identity changes."""

    def __init__(self):
        self._listeners: List[IdentityListener] = []
        self._pending: Set[asyncio.Task] = set()
        self._current: Optional[Identity] = None

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._current

    def on_change(self, callback: IdentityListener) -> Callable[[], None]:
        """
        Register `callback(identity | None)`. Like Firebase's onAuthStateChanged, the
        current state is delivered once right after registration. Must be called with
        a running event loop.
        """
        self._listeners.append(callback)
        self._schedule(callback, self._current)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, identity: Optional[Identity]) -> None:
        self._current = identity
        for callback in list(self._listeners):
            self._schedule(callback, identity)

    def _schedule(self, callback: IdentityListener, identity: Optional[Identity]) -> None:
        loop = asyncio.get_running_loop()
        loop.call_soon(self._deliver, callback, identity)

    def _deliver(self, callback: IdentityListener, identity: Optional[Identity]) -> None:
        if callback not in self._listeners:
            return  # unsubscribed while the delivery was queued
        try:
            result = callback(identity)
        except Exception:
            logger.exception("Identity listener %r failed", callback)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Identity listener task failed", exc_info=task.exception())


def _error_code(resp: httpx.Response) -> str:
    try:
        message = resp.json().get("error", {}).get("message", "")
    except ValueError:
        return ""
    # e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account has been temporarily disabled"
    return str(message).split(" : ")[0].strip()


class FirebaseIdentityClient(IdentityChannel):
    """Firebase Authentication (password provider) behind the IdentityChannel interface."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        firebase_app=None,
        revoke_on_sign_out: bool = False,
    ):
        super().__init__()
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._firebase_app = firebase_app
        self._revoke_on_sign_out = revoke_on_sign_out
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: float = 0.0

    @property
    def id_token(self) -> Optional[str]:
        """ID token of the signed-in user; handed to the HTTP client that signed in."""
        return self._id_token

    @property
    def token_expires_at(self) -> float:
        return self._expires_at

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        if not self._api_key:
            raise AuthError("provider-unavailable", "Server misconfigured: missing FIREBASE_WEB_API_KEY")
        payload = {"email": email, "password": password, "returnSecureToken": True}
        try:
            resp = await self._client.post(FIREBASE_SIGNIN_ENDPOINT, params={"key": self._api_key}, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Sign-in request failed: %s", exc)
            raise AuthError("network") from exc

        if resp.status_code != 200:
            code = _error_code(resp)
            logger.warning("Firebase sign-in rejected: %s %s", resp.status_code, code or "<no code>")
            if resp.status_code == 400 and code in INVALID_CREDENTIAL_CODES:
                raise AuthError("invalid-credentials")
            raise AuthError("provider-unavailable")

        data = resp.json()
        self._store_tokens(data.get("idToken"), data.get("refreshToken"), data.get("expiresIn"))
        identity = Identity(
            uid=data["localId"],
            email=data.get("email") or email,
            display_name=data.get("displayName") or None,
            photo_url=data.get("profilePicture") or None,
        )
        logger.info("Signed in %s", identity.uid)
        self._emit(identity)
        return identity

    async def refresh(self) -> Optional[Identity]:
        """
        Exchange the refresh token for a new ID token. Announces the (unchanged) identity,
        or `None` when Firebase reports the refresh token is dead.
        """
        if self._current is None or not self._refresh_token:
            return None
        form = {"grant_type": "refresh_token", "refresh_token": self._refresh_token}
        try:
            resp = await self._client.post(FIREBASE_REFRESH_ENDPOINT, params={"key": self._api_key}, data=form)
        except httpx.HTTPError as exc:
            logger.warning("Token refresh failed: %s", exc)
            raise AuthError("network") from exc

        if resp.status_code != 200:
            code = _error_code(resp)
            if resp.status_code == 400 and code in DEAD_REFRESH_CODES:
                logger.info("Refresh token rejected (%s); signing out %s", code, self._current.uid)
                self._clear_tokens()
                self._emit(None)
                return None
            logger.warning("Token refresh rejected: %s %s", resp.status_code, code or "<no code>")
            raise AuthError("provider-unavailable")

        data = resp.json()
        self._store_tokens(data.get("id_token"), data.get("refresh_token"), data.get("expires_in"))
        self._emit(self._current)
        return self._current

    async def sign_out(self) -> None:
        identity = self._current
        if identity is not None and self._revoke_on_sign_out:
            try:
                await asyncio.to_thread(firebase_auth.revoke_refresh_tokens, identity.uid, app=self._firebase_app)
            except firebase_auth.UserNotFoundError:
                logger.info("User %s no longer exists; nothing to revoke", identity.uid)
            except firebase_exceptions.UnavailableError as exc:
                raise AuthError("provider-unavailable") from exc
            except (firebase_exceptions.FirebaseError, OSError) as exc:
                logger.warning("Revoking refresh tokens for %s failed: %s", identity.uid, exc)
                raise AuthError("network") from exc
        self._clear_tokens()
        self._emit(None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _store_tokens(self, id_token, refresh_token, expires_in) -> None:
        self._id_token = id_token
        self._refresh_token = refresh_token or self._refresh_token
        try:
            self._expires_at = time.time() + int(expires_in or 3600)
        except (TypeError, ValueError):
            self._expires_at = time.time() + 3600

    def _clear_tokens(self) -> None:
        self._id_token = None
        self._refresh_token = None
        self._expires_at = 0.0
