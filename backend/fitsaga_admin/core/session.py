# fitsaga_admin/core/session.py
"""
# Auth Session Controller

Single source of truth for "who is signed in and what may they do".

## States
- `signed_out`   : no identity. Reached after the first check and after every sign-out.
- `checking`     : transient, `is_loading=True`. Entered at process start and on every
                   identity notification.
- `signed_in`    : identity + profile; `is_admin` derives from `profile.role` only.
- `signed_in_no_profile` : identity without a profile document; bootstraps a least-privilege
                   profile, then moves to `signed_in`.
- `error`        : the profile could not be read; identity kept, no profile, never admin.

## Lifecycle
`start()` subscribes to the identity channel once per process, `close()` unsubscribes.
Both are called from the FastAPI startup/shutdown hooks.

## Rules
- Transitions come only from identity notifications and the `sign_in` / `sign_out` /
  `refresh` commands. No polling.
- A `Session` is frozen and published wholesale; observers always see a complete value.
- A notification that was overtaken by a newer one never publishes its result.
- New profiles get the `user` role. `admin` is granted only out of band: the
  `ADMIN_EMAILS` allow-list at bootstrap or an administrator changing the role.
"""
import asyncio
import logging
from typing import Callable, Iterable, List, Optional

from fitsaga_admin.core.errors import AuthError, DataError, ProfileError
from fitsaga_admin.schemas.auth import Session, SessionState
from fitsaga_admin.schemas.principal import Identity
from fitsaga_admin.schemas.user import ADMIN_ROLE, DEFAULT_ROLE, default_profile

logger = logging.getLogger("fitsaga.session")

SessionObserver = Callable[[Session], None]
Navigator = Callable[[str], None]

PROFILE_NOT_SAVED_WARNING = "Your profile could not be saved; it will be recreated on next sign-in."


class AuthSessionController:
    def __init__(
        self,
        identity_client,
        profile_store,
        *,
        admin_emails: Iterable[str] = (),
        sign_in_path: str = "/auth/login",
        navigate: Optional[Navigator] = None,
    ):
        self._identity = identity_client
        self._profiles = profile_store
        self._admin_emails = {e.strip().lower() for e in admin_emails if e and e.strip()}
        self._sign_in_path = sign_in_path
        self._navigate = navigate
        self._session = Session.checking()
        self._observers: List[SessionObserver] = []
        self._waiters: List[asyncio.Future] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._generation = 0
        self._closed = False

    # ----------------------------------------------------------------- state

    @property
    def session(self) -> Session:
        return self._session

    @property
    def identity_client(self):
        return self._identity

    @property
    def sign_in_path(self) -> str:
        return self._sign_in_path

    @property
    def id_token(self) -> Optional[str]:
        return getattr(self._identity, "id_token", None)

    @property
    def is_running(self) -> bool:
        return self._unsubscribe is not None

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Call `observer(session)` on every published session. Returns an unsubscribe callable."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def next_settled(self) -> Session:
        """Wait for the next published session that is not loading."""
        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        try:
            return await future
        finally:
            if future in self._waiters:
                self._waiters.remove(future)

    # ------------------------------------------------------------- lifecycle

    async def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._closed = False
        self._unsubscribe = self._identity.on_change(self._on_identity_change)
        logger.debug("Session controller subscribed to identity changes")

    async def close(self) -> None:
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for future in self._waiters:
            if not future.done():
                future.cancel()
        self._waiters.clear()
        logger.debug("Session controller unsubscribed")

    # -------------------------------------------------------------- commands

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Ask the identity provider to sign in. The returned value is the session at
        return time; the `signed_in` transition arrives through the notification.
        """
        try:
            await self._identity.sign_in_with_password(email, password)
        except AuthError as exc:
            logger.warning("Sign-in failed for %s: %s", email, exc.kind)
            raise
        return self._session

    async def sign_out(self, navigate: Optional[Navigator] = None) -> None:
        try:
            await self._identity.sign_out()
        except AuthError as exc:
            logger.error("Sign-out failed: %s", exc.kind)
            raise
        target = navigate or self._navigate
        if target is not None:
            target(self._sign_in_path)

    async def refresh(self) -> Session:
        """Refresh the identity token; the provider's notification re-reads the profile."""
        try:
            await self._identity.refresh()
        except AuthError as exc:
            logger.warning("Token refresh failed: %s", exc.kind)
            raise
        return self._session

    # ---------------------------------------------------------- notification

    async def _on_identity_change(self, identity: Optional[Identity]) -> None:
        if self._closed:
            return
        self._generation += 1
        generation = self._generation
        self._publish(Session.checking(identity), generation)
        try:
            session = await self._resolve(identity, generation)
        except Exception:
            logger.exception("Handling identity change failed; falling back to signed out")
            session = Session.signed_out()
        self._publish(session, generation)

    async def _resolve(self, identity: Optional[Identity], generation: int) -> Session:
        if identity is None:
            return Session.signed_out()

        try:
            profile = await self._profiles.get(identity.uid)
        except (ProfileError, DataError) as exc:
            logger.warning("Profile fetch for %s failed (%s): %s", identity.uid, exc.kind, exc.message)
            return Session(state=SessionState.ERROR, identity=identity, error=exc.message)

        if profile is not None:
            return Session(state=SessionState.SIGNED_IN, identity=identity, profile=profile)

        self._publish(
            Session(state=SessionState.SIGNED_IN_NO_PROFILE, identity=identity, is_loading=True),
            generation,
        )
        return await self._bootstrap(identity)

    async def _bootstrap(self, identity: Identity) -> Session:
        email = (identity.email or "").lower()
        role = ADMIN_ROLE if email and email in self._admin_emails else DEFAULT_ROLE
        profile = default_profile(identity, role=role)
        try:
            await self._profiles.set(identity.uid, profile)
        except ProfileError as exc:
            # Keep the in-memory default for this session; no silent retry.
            logger.warning("Could not persist default profile for %s (%s)", identity.uid, exc.kind)
            return Session(
                state=SessionState.SIGNED_IN,
                identity=identity,
                profile=profile,
                warning=PROFILE_NOT_SAVED_WARNING,
            )
        logger.info("Created default %s profile for %s", role, identity.uid)
        return Session(state=SessionState.SIGNED_IN, identity=identity, profile=profile)

    def _publish(self, session: Session, generation: int) -> None:
        if self._closed or generation != self._generation:
            return  # overtaken by a newer notification, or torn down
        self._session = session
        for observer in list(self._observers):
            try:
                observer(session)
            except Exception:
                logger.exception("Session observer %r failed", observer)
        if not session.is_loading:
            for future in self._waiters:
                if not future.done():
                    future.set_result(session)
