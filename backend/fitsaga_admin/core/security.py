"""
# `fitsaga_admin/core/security.py` - Session dependencies & route guard

FastAPI dependencies that expose the process-wide session controller to routers and apply
the route guard on every request.

## Credentials
`POST /auth/login` hands the signed-in client its Firebase ID token, both in the body and
as the httpOnly `fitsaga_session` cookie. Every later request must present it again,
either as `Authorization: Bearer <token>` or through the cookie. The controller's session
is only ever shown to a request whose verified token belongs to the same uid; any other
request sees a signed-out session.

## Dependencies

### `get_session_controller(request)`
Returns the controller created in the startup hook (`app.state.session_controller`).

### `get_current_session(...)`
The current `Session` snapshot as seen by this request. Read again on every request;
nothing is cached.

### `require_admin_session(...)`
Applies `can_enter`:
- loading   -> `503 Service Unavailable`, `Retry-After: 1`, body `{"detail": "Session loading"}`
- not admin -> `303 See Other`, `Location: <sign-in path>`
- admin     -> the session is returned to the endpoint

All feature routers use it as a router-level dependency.
"""
import logging
from functools import partial
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from fitsaga_admin.config import get_firebase_app, settings
from fitsaga_admin.core.guard import can_enter
from fitsaga_admin.core.session import AuthSessionController
from fitsaga_admin.schemas.auth import Session

logger = logging.getLogger("fitsaga.security")

SESSION_COOKIE = "fitsaga_session"

TokenVerifier = Callable[[str], Optional[str]]


def get_session_controller(request: Request) -> AuthSessionController:
    controller = getattr(request.app.state, "session_controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session service not started",
        )
    return controller


def _extract_bearer_token(request: Request) -> Optional[str]:
    """Authorization: Bearer <token>, falling back to the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header:
        parts = auth_header.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return request.cookies.get(SESSION_COOKIE) or None


def verify_firebase_token(id_token: str, app=None) -> Optional[str]:
    """Return the uid of a valid Firebase ID token, or None."""
    try:
        decoded = firebase_auth.verify_id_token(
            id_token,
            app=app,
            check_revoked=settings.revoke_tokens_on_sign_out,
        )
    except firebase_auth.ExpiredIdTokenError:
        logger.info("Rejected expired ID token")
        return None
    except firebase_auth.RevokedIdTokenError:
        logger.info("Rejected revoked ID token")
        return None
    except (ValueError, firebase_exceptions.FirebaseError) as exc:
        logger.warning("ID token verification failed: %s", exc)
        return None
    return decoded.get("uid")


def get_token_verifier() -> TokenVerifier:
    """Token check used by the request guard. Overridden in tests."""
    return partial(verify_firebase_token, app=get_firebase_app())


def get_current_session(
    request: Request,
    controller: AuthSessionController = Depends(get_session_controller),
    verify: TokenVerifier = Depends(get_token_verifier),
) -> Session:
    session = controller.session
    if session.identity is None:
        # Nobody is signed in (or the first notification is pending); nothing to disclose.
        return session
    token = _extract_bearer_token(request)
    if not token:
        return Session.signed_out()
    if verify(token) != session.identity.uid:
        logger.info("Request credential does not belong to the signed-in user")
        return Session.signed_out()
    return session


def require_admin_session(
    session: Session = Depends(get_current_session),
    controller: AuthSessionController = Depends(get_session_controller),
) -> Session:
    """
    Dependency to allow access only to an admin session.
    """
    decision = can_enter(session, controller.sign_in_path)
    if decision.action == "wait":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session loading",
            headers={"Retry-After": "1"},
        )
    if decision.action == "redirect":
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            detail="Admin access required",
            headers={"Location": decision.target},
        )
    return session


def author_fields(session: Session) -> dict:
    """Audit fields stamped on writes made from the portal."""
    identity = session.identity
    profile = session.profile
    name = (profile.name if profile and profile.name else None) or (identity.display_name if identity else None)
    return {
        "authorId": identity.uid if identity else None,
        "authorName": name or (identity.email if identity else None),
    }
