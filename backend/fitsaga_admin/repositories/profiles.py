"""
Profile Store Client: `users/{uid}` documents read on every sign-in event.

The Firestore Admin client is synchronous; calls run in a worker thread so the
session controller never blocks the event loop.
"""
import asyncio
import logging
from typing import Callable, Optional

from fitsaga_admin.core.errors import GOOGLE_ERRORS, ProfileError, classify_google_error
from fitsaga_admin.schemas.user import Profile, parse_profile

logger = logging.getLogger("fitsaga.profiles")

COL = "users"


class ProfileStore:
    def __init__(self, db_factory: Callable[[], object]):
        # Resolved lazily so the app starts without Firebase credentials.
        self._db_factory = db_factory

    def _ref(self, uid: str):
        return self._db_factory().collection(COL).document(uid)

    async def get(self, uid: str) -> Optional[Profile]:
        return await asyncio.to_thread(self._get_sync, uid)

    async def set(self, uid: str, profile: Profile) -> None:
        await asyncio.to_thread(self._set_sync, uid, profile)

    def _get_sync(self, uid: str) -> Optional[Profile]:
        try:
            snap = self._ref(uid).get()
        except GOOGLE_ERRORS as exc:
            logger.warning("Reading profile %s failed: %s", uid, exc)
            raise ProfileError(classify_google_error(exc)) from exc
        if not snap.exists:
            return None
        # Raises DataError('validation') for malformed documents.
        return parse_profile(uid, snap.to_dict())

    def _set_sync(self, uid: str, profile: Profile) -> None:
        try:
            self._ref(uid).set(profile.to_document())
        except GOOGLE_ERRORS as exc:
            logger.warning("Writing profile %s failed: %s", uid, exc)
            raise ProfileError(classify_google_error(exc)) from exc
