"""
fitsaga_admin/config.py - Application configuration and lazy Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from the environment,
and exposes accessors for the Firebase Admin SDK (app, Firestore client, Storage bucket).
Firebase is initialized on first use so the package can be imported without credentials;
routers reach the clients through the `get_db` / `get_bucket` dependencies.
"""
from functools import lru_cache
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, firestore, storage
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', env='FIREBASE_CRED_FILE')
    firebase_project_id: str = Field('', env='FIREBASE_PROJECT_ID')
    firebase_storage_bucket: str = Field('', env='FIREBASE_STORAGE_BUCKET')
    firebase_web_api_key: str = Field('', env='FIREBASE_WEB_API_KEY')

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY_ID')
    firebase_private_key: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY')
    firebase_client_email: Optional[str] = Field(None, env='FIREBASE_CLIENT_EMAIL')
    firebase_client_id: Optional[str] = Field(None, env='FIREBASE_CLIENT_ID')
    firebase_auth_uri: Optional[str] = Field(None, env='FIREBASE_AUTH_URI')
    firebase_token_uri: Optional[str] = Field(None, env='FIREBASE_TOKEN_URI')
    firebase_auth_provider_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_AUTH_PROVIDER_X509_CERT_URL')
    firebase_client_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_CLIENT_X509_CERT_URL')

    debug: bool = Field(False, env='DEBUG')
    allowed_origins: str = Field('*', env='ALLOWED_ORIGINS')  # Comma-separated list or '*' for all

    # Session / access control
    sign_in_path: str = Field('/auth/login', env='SIGN_IN_PATH')
    admin_emails: str = Field('', env='ADMIN_EMAILS')  # Comma-separated allow-list for bootstrap elevation
    session_settle_timeout: float = Field(5.0, env='SESSION_SETTLE_TIMEOUT')
    session_cookie_secure: bool = Field(True, env='SESSION_COOKIE_SECURE')
    session_cookie_max_age: int = Field(3600, env='SESSION_COOKIE_MAX_AGE')  # Firebase ID tokens live one hour
    revoke_tokens_on_sign_out: bool = Field(True, env='REVOKE_TOKENS_ON_SIGN_OUT')
    http_timeout: float = Field(10.0, env='HTTP_TIMEOUT')

    # Uploads
    max_upload_bytes: int = Field(5 * 1024 * 1024, env='MAX_UPLOAD_BYTES')
    max_video_upload_bytes: int = Field(100 * 1024 * 1024, env='MAX_VIDEO_UPLOAD_BYTES')
    upload_url_expires_days: int = Field(3650, env='UPLOAD_URL_EXPIRES_DAYS')

    def model_post_init(self, __context):
        """Validate Firebase Web API Key format"""
        if self.firebase_web_api_key and not self.firebase_web_api_key.startswith('AIza'):
            raise ValueError("FIREBASE_WEB_API_KEY must be a valid Firebase Web API Key starting with 'AIza'")

    @property
    def admin_email_list(self) -> List[str]:
        return [e.strip().lower() for e in self.admin_emails.split(',') if e.strip()]

    @property
    def allowed_origin_list(self) -> List[str]:
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(',')]

    class Config:
        env_file = ".env"
        case_sensitive = False


# Load settings from environment (.env file, etc.)
settings = Settings()


def _service_account_credential():
    # Check if we have environment variables for Firebase credentials (Cloud Run)
    if all([
        settings.firebase_private_key_id,
        settings.firebase_private_key,
        settings.firebase_client_email,
        settings.firebase_client_id,
        settings.firebase_auth_uri,
        settings.firebase_token_uri,
        settings.firebase_auth_provider_x509_cert_url,
        settings.firebase_client_x509_cert_url
    ]):
        cred_dict = {
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "client_email": settings.firebase_client_email,
            "client_id": settings.firebase_client_id,
            "auth_uri": settings.firebase_auth_uri,
            "token_uri": settings.firebase_token_uri,
            "auth_provider_x509_cert_url": settings.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": settings.firebase_client_x509_cert_url
        }
        return credentials.Certificate(cred_dict)
    # Use service account file (local development)
    return credentials.Certificate(settings.firebase_cred_file)


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    """Initialize (or reuse) the default Firebase Admin app."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    return firebase_admin.initialize_app(_service_account_credential(), {
        'projectId': settings.firebase_project_id,
        'storageBucket': settings.firebase_storage_bucket
    })


def get_db():
    """Firestore client. Used as a FastAPI dependency so tests can override it."""
    return firestore.client(app=get_firebase_app())


def get_bucket():
    """Default Storage bucket. Used as a FastAPI dependency so tests can override it."""
    return storage.bucket(app=get_firebase_app())
