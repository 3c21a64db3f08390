import pytest
from google.api_core import exceptions as gexc

from fakes import FakeFirestore
from fitsaga_admin.core.errors import DataError
from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.activity import parse_activity


@pytest.fixture
def activities():
    return DocumentCollection("activities", FakeFirestore(), parse_activity)


def test_create_stamps_timestamps_and_parses(activities):
    created = activities.create({"name": "Yoga", "type": "yoga", "creditValue": 2})

    assert created.id
    assert created.name == "Yoga"
    assert created.credit_value == 2
    assert created.created_at is not None
    assert created.updated_at is not None


def test_list_filters_orders_and_limits(activities):
    activities.create({"name": "A", "type": "yoga", "createdAt": "2024-01-01T00:00:00Z"})
    activities.create({"name": "B", "type": "yoga", "createdAt": "2024-03-01T00:00:00Z"})
    activities.create({"name": "C", "type": "kingboxing", "createdAt": "2024-02-01T00:00:00Z"})

    query = DocumentQuery(filters=[("type", "==", "yoga")], order_by="createdAt", descending=True, limit=1)
    assert [a.name for a in activities.list(query)] == ["B"]
    assert activities.count() == 3


def test_get_missing_is_not_found(activities):
    with pytest.raises(DataError) as excinfo:
        activities.get("nope")
    assert excinfo.value.kind == "not-found"


def test_update_and_delete(activities):
    created = activities.create({"name": "Yoga"})
    updated = activities.update(created.id, {"name": "Hot yoga"})
    assert updated.name == "Hot yoga"

    activities.delete(created.id)
    with pytest.raises(DataError):
        activities.get(created.id)


def test_update_missing_is_not_found(activities):
    with pytest.raises(DataError) as excinfo:
        activities.update("nope", {"name": "x"})
    assert excinfo.value.kind == "not-found"


def test_malformed_document_is_validation_error():
    db = FakeFirestore()
    db.data["activities"] = {"a1": {"type": "yoga"}}  # no name
    with pytest.raises(DataError) as excinfo:
        DocumentCollection("activities", db, parse_activity).get("a1")
    assert excinfo.value.kind == "validation"


@pytest.mark.parametrize("error, kind", [
    (gexc.PermissionDenied("rules"), "permission"),
    (gexc.ServiceUnavailable("down"), "network"),
    (gexc.DeadlineExceeded("slow"), "network"),
    (ConnectionError("reset"), "network"),
])
def test_store_failures_are_translated(error, kind):
    db = FakeFirestore()
    db.fail_with = error
    with pytest.raises(DataError) as excinfo:
        DocumentCollection("activities", db, parse_activity).list()
    assert excinfo.value.kind == kind
