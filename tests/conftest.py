import pytest
from fastapi.testclient import TestClient

from fakes import FakeBucket, FakeFirestore, StubController, bearer, make_session, verify_test_token
from fitsaga_admin.config import get_bucket, get_db
from fitsaga_admin.core.security import get_token_verifier
from fitsaga_admin.main import app
from fitsaga_admin.routers.users import get_claim_sync


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def claim_calls():
    return []


@pytest.fixture
def controller():
    return StubController(make_session())


@pytest.fixture
def portal(db, bucket, controller, claim_calls):
    app.state.session_controller = controller
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_bucket] = lambda: bucket
    app.dependency_overrides[get_claim_sync] = lambda: lambda uid, role: claim_calls.append((uid, role)) or True
    app.dependency_overrides[get_token_verifier] = lambda: verify_test_token
    try:
        yield app
    finally:
        app.dependency_overrides.clear()
        app.state.session_controller = None


@pytest.fixture
def client(portal, controller):
    """Client holding the signed-in user's ID token."""
    uid = controller.session.identity.uid
    return TestClient(portal, headers=bearer(uid), follow_redirects=False)


@pytest.fixture
def anon(portal):
    """Client without any credential."""
    return TestClient(portal, follow_redirects=False)
