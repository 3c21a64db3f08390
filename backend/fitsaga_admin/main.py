"""
# `fitsaga_admin/main.py` - Application entry point

## Overview
Builds the FastAPI application for the FitSaga admin portal: CORS, routers, and the
process-wide auth session.

---

## Routers
**Public:**
- `/auth` (sign-in entry point, login, logout, refresh, session snapshot)

**Admin (route guard on every request):**
- `/dashboard`
- `/activities`
- `/sessions`
- `/tutorials`
- `/forum`
- `/users`
- `/uploads`

---

## Session lifecycle
- `startup`: one `AuthSessionController` is created, stored on `app.state.session_controller`
  and subscribed to identity changes.
- `shutdown`: the controller unsubscribes and the identity client's HTTP pool is closed.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitsaga_admin.config import get_db, get_firebase_app, settings
from fitsaga_admin.core.identity import FirebaseIdentityClient
from fitsaga_admin.core.session import AuthSessionController
from fitsaga_admin.repositories.profiles import ProfileStore
from fitsaga_admin.routers import activities, auth, dashboard, forum, sessions, tutorials, uploads, users

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("fitsaga")

# Initialize FastAPI app
app = FastAPI(
    title="FitSaga Admin Portal API",
    description="Admin portal backend: activities, class sessions, tutorials, forum and users.",
    version="1.0.0",
    redirect_slashes=False,
)

# Configure CORS (allow front-end domain or all origins as specified)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public router
app.include_router(auth.router)

# Admin routers (guarded)
app.include_router(dashboard.router)
app.include_router(activities.router)
app.include_router(sessions.router)
app.include_router(tutorials.router)
app.include_router(forum.router)
app.include_router(users.router)
app.include_router(uploads.router)


def build_session_controller() -> AuthSessionController:
    # Revoking refresh tokens needs the Admin SDK, so only when a project is configured.
    revoke = settings.revoke_tokens_on_sign_out and bool(settings.firebase_project_id)
    identity_client = FirebaseIdentityClient(
        settings.firebase_web_api_key,
        timeout=settings.http_timeout,
        firebase_app=get_firebase_app() if revoke else None,
        revoke_on_sign_out=revoke,
    )
    return AuthSessionController(
        identity_client,
        ProfileStore(get_db),
        admin_emails=settings.admin_email_list,
        sign_in_path=settings.sign_in_path,
    )


@app.on_event("startup")
async def _start_session():
    if getattr(app.state, "session_controller", None) is None:
        app.state.session_controller = build_session_controller()
    await app.state.session_controller.start()
    logger.info("Session controller started")


@app.on_event("shutdown")
async def _stop_session():
    controller = getattr(app.state, "session_controller", None)
    if controller is None:
        return
    await controller.close()
    identity_client = getattr(controller, "identity_client", None)
    if identity_client is not None and hasattr(identity_client, "aclose"):
        await identity_client.aclose()


# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fitsaga_admin.main:app", host="0.0.0.0", port=8000, reload=True)
