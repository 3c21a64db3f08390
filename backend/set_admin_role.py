#!/usr/bin/env python3
"""
Grants (or revokes) the portal admin role for an existing Firebase user.

Out-of-band elevation: new profiles are always created with the `user` role, so the
first administrator is promoted with this script (or listed in ADMIN_EMAILS).
The user needs to sign out and sign in again for the change to take effect.
"""
import argparse
import logging
import sys

from dotenv import load_dotenv
from firebase_admin import auth

load_dotenv()

from fitsaga_admin.config import get_db, get_firebase_app  # noqa: E402
from fitsaga_admin.core.errors import DataError  # noqa: E402
from fitsaga_admin.repositories.documents import DocumentCollection  # noqa: E402
from fitsaga_admin.schemas.user import default_profile, parse_profile  # noqa: E402
from fitsaga_admin.schemas.principal import Identity  # noqa: E402
from fitsaga_admin.services.roles import sync_role_claim  # noqa: E402

logger = logging.getLogger("fitsaga.set_admin_role")


def set_role(user_email: str, role: str) -> bool:
    app = get_firebase_app()
    try:
        user = auth.get_user_by_email(user_email, app=app)
    except auth.UserNotFoundError:
        logger.error("User not found: %s", user_email)
        return False
    logger.info("User found: %s - %s", user.uid, user.email)

    users = DocumentCollection("users", get_db(), parse_profile, timestamps=False)
    try:
        users.update(user.uid, {"role": role})
    except DataError as exc:
        if exc.kind != "not-found":
            logger.error("Updating profile failed: %s", exc.message)
            return False
        # No profile yet: create it with the requested role.
        identity = Identity(uid=user.uid, email=user.email, display_name=user.display_name, photo_url=user.photo_url)
        try:
            users.create(default_profile(identity, role=role).to_document(), doc_id=user.uid)
        except DataError as create_exc:
            logger.error("Creating profile failed: %s", create_exc.message)
            return False

    try:
        sync_role_claim(user.uid, role, app=app)
    except DataError as exc:
        logger.error("%s", exc.message)
        return False
    logger.info("Role of %s set to %s", user_email, role)
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Set the FitSaga portal role of a Firebase user.")
    parser.add_argument("email", help="E-mail of the Firebase user")
    parser.add_argument("--role", choices=["user", "trainer", "admin"], default="admin")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    if not set_role(args.email, args.role):
        return 1
    print("The user will need to sign out and sign in again for the changes to take effect.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
