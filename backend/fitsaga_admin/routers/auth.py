"""
# fitsaga_admin/routers/auth.py - Sign-in / sign-out

## Overview
Thin HTTP surface over the process-wide `AuthSessionController`. The controller owns the
session; these endpoints only issue commands and report the snapshot the caller may see.
A caller that does not present the signed-in user's ID token (bearer header or the
`fitsaga_session` cookie) is treated as signed out.

---

## Endpoints

### GET /auth/login
Sign-in entry point. The route guard redirects here. Returns the caller's session so the
client can tell "loading" from "signed out".

### POST /auth/login
Form-Data: `email`, `password` (min. 6 chars).
1. `controller.sign_in(...)` asks Firebase to authenticate.
2. The `signed_in` transition arrives asynchronously; the endpoint waits for the next settled
   session up to `SESSION_SETTLE_TIMEOUT` seconds.
3. `200` with `settled=true` when it arrived in time, otherwise `202` with the current snapshot.
The body carries `idToken` and the same token is set as an httpOnly cookie.
Errors: `401` invalid credentials, `503` network / provider unavailable.

### POST /auth/refresh
Refreshes the ID token and re-issues the cookie. The profile is re-read through the same
notification path.

### POST /auth/logout
Signs out (only for the signed-in caller), clears the cookie, then `303` redirect to the
sign-in entry point.

### GET /auth/session
Caller's session snapshot (`isAdmin`, `isLoading`, state, identity, profile, error/warning).
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import EmailStr

from fitsaga_admin.config import settings
from fitsaga_admin.core.errors import AuthError, raise_http
from fitsaga_admin.core.security import SESSION_COOKIE, get_current_session, get_session_controller
from fitsaga_admin.core.session import AuthSessionController
from fitsaga_admin.schemas.auth import LoginResponse, Session

logger = logging.getLogger("fitsaga.auth")

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_session_cookie(response: Response, id_token: Optional[str]) -> None:
    if not id_token:
        return
    response.set_cookie(
        SESSION_COOKIE,
        id_token,
        max_age=settings.session_cookie_max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.get("/login", response_model=Session, summary="Sign-in entry point")
def login_entry(session: Session = Depends(get_current_session)):
    return session


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={202: {"model": LoginResponse, "description": "Sign-in accepted, session not settled yet"}},
    summary="Sign in with e-mail + password",
)
async def login(
    response: Response,
    email: EmailStr = Form(..., description="E-mail"),
    password: str = Form(..., min_length=6, description="Password (>= 6 chars)"),
    controller: AuthSessionController = Depends(get_session_controller),
):
    # Register the waiter before yielding so the sign-in notification cannot be missed.
    settled = asyncio.ensure_future(controller.next_settled())
    try:
        await controller.sign_in(email, password)
    except AuthError as exc:
        settled.cancel()
        raise_http(exc)

    id_token = controller.id_token
    try:
        session = await asyncio.wait_for(settled, timeout=settings.session_settle_timeout)
    except asyncio.TimeoutError:
        logger.info("Session did not settle within %.1fs after sign-in", settings.session_settle_timeout)
        body = LoginResponse(settled=False, session=controller.session, id_token=id_token)
        accepted = JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=body.model_dump(mode="json", by_alias=True))
        _set_session_cookie(accepted, id_token)
        return accepted
    _set_session_cookie(response, id_token)
    return LoginResponse(settled=True, session=session, id_token=id_token)


@router.post("/refresh", response_model=Session, summary="Refresh the ID token")
async def refresh(
    response: Response,
    session: Session = Depends(get_current_session),
    controller: AuthSessionController = Depends(get_session_controller),
):
    if session.identity is None:
        return session
    try:
        refreshed = await controller.refresh()
    except AuthError as exc:
        raise_http(exc)
    _set_session_cookie(response, controller.id_token)
    return refreshed


@router.post("/logout", status_code=status.HTTP_303_SEE_OTHER, summary="Sign out")
async def logout(
    session: Session = Depends(get_current_session),
    controller: AuthSessionController = Depends(get_session_controller),
):
    """
    Signs out on the identity provider and redirects to the sign-in entry point.
    The session itself returns to `signed_out` through the provider notification.
    A caller without the signed-in user's credential is only redirected.
    """
    location = {}
    if session.identity is not None:
        try:
            await controller.sign_out(navigate=lambda target: location.setdefault("url", target))
        except AuthError as exc:
            raise_http(exc)
    else:
        logger.info("Sign-out requested without the signed-in user's credential")
    redirect = RedirectResponse(location.get("url", controller.sign_in_path), status_code=status.HTTP_303_SEE_OTHER)
    redirect.delete_cookie(SESSION_COOKIE)
    return redirect


@router.get("/session", response_model=Session, summary="Current session")
def current_session(session: Session = Depends(get_current_session)):
    return session
