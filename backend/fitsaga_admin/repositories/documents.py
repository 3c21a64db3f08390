"""
Generic Firestore collection accessor used by the feature routers.

Documents are parsed into typed entities at this boundary (see `schemas.common.parse_document`),
and Firestore / transport failures are translated into `DataError`.
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from google.cloud import firestore as gcf  # Query.DESCENDING
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import BaseModel, Field

from fitsaga_admin.core.errors import GOOGLE_ERRORS, DataError, classify_google_error

logger = logging.getLogger("fitsaga.documents")

T = TypeVar("T")
Parser = Callable[[str, Optional[Dict[str, Any]]], T]


class DocumentQuery(BaseModel):
    """`where` filters + optional ordering and limit."""
    filters: List[Tuple[str, str, Any]] = Field(default_factory=list)
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = Field(None, ge=1)


@contextmanager
def translate_errors(collection: str, doc_id: Optional[str] = None) -> Iterator[None]:
    try:
        yield
    except GOOGLE_ERRORS as exc:
        kind = classify_google_error(exc)
        logger.warning("Firestore %s/%s failed (%s): %s", collection, doc_id or "*", kind, exc)
        raise DataError(kind) from exc


class DocumentCollection(Generic[T]):
    def __init__(self, name: str, db, parser: Parser, *, timestamps: bool = True):
        self.name = name
        self._db = db
        self._parse = parser
        self._timestamps = timestamps

    @property
    def ref(self):
        return self._db.collection(self.name)

    def list(self, query: Optional[DocumentQuery] = None) -> List[T]:
        query = query or DocumentQuery()
        q = self.ref
        for field, op, value in query.filters:
            q = q.where(filter=FieldFilter(field, op, value))
        if query.order_by:
            direction = gcf.Query.DESCENDING if query.descending else gcf.Query.ASCENDING
            q = q.order_by(query.order_by, direction=direction)
        if query.limit:
            q = q.limit(query.limit)
        with translate_errors(self.name):
            snaps = list(q.stream())
        return [self._parse(s.id, s.to_dict()) for s in snaps]

    def count(self) -> int:
        with translate_errors(self.name):
            return sum(1 for _ in self.ref.stream())

    def get(self, doc_id: str) -> T:
        with translate_errors(self.name, doc_id):
            snap = self.ref.document(doc_id).get()
        if not snap.exists:
            raise DataError("not-found", f"{self.name}/{doc_id} not found")
        return self._parse(snap.id, snap.to_dict())

    def create(self, doc: Dict[str, Any], doc_id: Optional[str] = None) -> T:
        doc_ref = self.ref.document(doc_id) if doc_id else self.ref.document()
        payload = dict(doc)
        if self._timestamps:
            payload.setdefault("createdAt", SERVER_TIMESTAMP)
            payload.setdefault("updatedAt", SERVER_TIMESTAMP)
        with translate_errors(self.name, doc_ref.id):
            doc_ref.set(payload)
        logger.info("Created %s/%s", self.name, doc_ref.id)
        return self.get(doc_ref.id)

    def update(self, doc_id: str, patch: Dict[str, Any]) -> T:
        doc_ref = self.ref.document(doc_id)
        with translate_errors(self.name, doc_id):
            if not doc_ref.get().exists:
                raise DataError("not-found", f"{self.name}/{doc_id} not found")
            payload = dict(patch)
            if self._timestamps:
                payload.setdefault("updatedAt", SERVER_TIMESTAMP)
            if payload:
                doc_ref.update(payload)
        return self.get(doc_id)

    def delete(self, doc_id: str) -> None:
        doc_ref = self.ref.document(doc_id)
        with translate_errors(self.name, doc_id):
            if not doc_ref.get().exists:
                raise DataError("not-found", f"{self.name}/{doc_id} not found")
            doc_ref.delete()
        logger.info("Deleted %s/%s", self.name, doc_id)
