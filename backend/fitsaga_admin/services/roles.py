# fitsaga_admin/services/roles.py
"""
Explicit role elevation. The profile document is the source of truth for `isAdmin`;
the Firebase custom claims are kept in step so other backends can read the role from
the ID token.
"""
import logging

from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from fitsaga_admin.core.errors import DataError
from fitsaga_admin.repositories.documents import DocumentCollection
from fitsaga_admin.schemas.user import ADMIN_ROLE, Profile

logger = logging.getLogger("fitsaga.roles")


def sync_role_claim(uid: str, role: str, app=None) -> bool:
    """Mirror `role` into the user's custom claims. Returns False when the uid has no auth account."""
    try:
        firebase_auth.set_custom_user_claims(uid, {"role": role, "admin": role == ADMIN_ROLE}, app=app)
    except firebase_auth.UserNotFoundError:
        logger.info("No Firebase Auth account for %s; only the profile role was changed", uid)
        return False
    except firebase_exceptions.FirebaseError as exc:
        logger.warning("Setting custom claims for %s failed: %s", uid, exc)
        raise DataError("network", "Role saved, but the sign-in claims could not be updated") from exc
    return True


def change_role(users: DocumentCollection, uid: str, role: str, *, actor_uid: str, claim_sync=sync_role_claim) -> Profile:
    """
    Change a user's role on behalf of administrator `actor_uid`. An administrator
    cannot remove their own admin role (there would be nobody left to undo it).
    """
    if uid == actor_uid and role != ADMIN_ROLE:
        raise DataError("validation", "You cannot remove your own admin role")
    profile = users.update(uid, {"role": role})
    logger.info("Role of %s set to %s by %s", uid, role, actor_uid)
    claim_sync(uid, role)
    return profile
