# fitsaga_admin/core/errors.py
"""
Error taxonomy shared by the session controller, the repositories and the routers.

Every error carries a `kind` (one of the class' `kinds`) and a user-visible `message`.
Routers turn them into HTTP responses with `raise_http`.
"""
from typing import Dict, NoReturn, Optional, Tuple

from fastapi import HTTPException, status
from google.api_core import exceptions as gexc
from google.auth import exceptions as gauth_exc


class PortalError(Exception):
    kinds: Tuple[str, ...] = ()
    default_messages: Dict[str, str] = {}

    def __init__(self, kind: str, message: Optional[str] = None):
        if kind not in self.kinds:
            raise ValueError(f"{type(self).__name__} has no kind {kind!r}")
        self.kind = kind
        self.message = message or self.default_messages.get(kind, kind)
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind!r}, {self.message!r})"


class AuthError(PortalError):
    kinds = ("invalid-credentials", "network", "provider-unavailable")
    default_messages = {
        "invalid-credentials": "Invalid email or password.",
        "network": "Could not reach the sign-in service. Check your connection.",
        "provider-unavailable": "The sign-in service is temporarily unavailable.",
    }


class ProfileError(PortalError):
    kinds = ("network", "permission", "not-found")
    default_messages = {
        "network": "Could not load your profile. Check your connection.",
        "permission": "You are not allowed to read this profile.",
        "not-found": "Profile not found.",
    }


class DataError(PortalError):
    kinds = ("network", "permission", "not-found", "validation")
    default_messages = {
        "network": "The data service could not be reached.",
        "permission": "You are not allowed to perform this operation.",
        "not-found": "Document not found.",
        "validation": "The document is malformed.",
    }


class UploadError(PortalError):
    kinds = ("network", "too-large", "unsupported-type")
    default_messages = {
        "network": "Upload failed.",
        "too-large": "The file is too large.",
        "unsupported-type": "Unsupported file type.",
    }


def classify_google_error(exc: BaseException) -> str:
    """Map a google-api-core / transport failure to network | permission | not-found."""
    if isinstance(exc, gexc.NotFound):
        return "not-found"
    if isinstance(exc, (gexc.PermissionDenied, gexc.Forbidden, gexc.Unauthenticated, gexc.Unauthorized)):
        return "permission"
    return "network"


# Exceptions raised by the Firestore / Storage clients that we translate at the boundary.
# Credential refresh and transport failures come from google-auth, socket errors are OSError.
GOOGLE_ERRORS = (gexc.GoogleAPIError, gauth_exc.GoogleAuthError, OSError)


_HTTP_STATUS = {
    "invalid-credentials": status.HTTP_401_UNAUTHORIZED,
    "provider-unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "network": status.HTTP_502_BAD_GATEWAY,
    "permission": status.HTTP_403_FORBIDDEN,
    "not-found": status.HTTP_404_NOT_FOUND,
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "too-large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "unsupported-type": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


def http_status_for(error: PortalError) -> int:
    if isinstance(error, AuthError) and error.kind == "network":
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return _HTTP_STATUS[error.kind]


def raise_http(error: PortalError) -> NoReturn:
    raise HTTPException(
        status_code=http_status_for(error),
        detail={"kind": error.kind, "message": error.message},
    ) from error
