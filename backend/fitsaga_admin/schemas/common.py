"""
fitsaga_admin/schemas/common.py
Shared base model and the boundary parse helper for Firestore documents.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from fitsaga_admin.core.errors import DataError
from fitsaga_admin.utils.timestamps import to_datetime

# Firestore Timestamp / {seconds, nanoseconds} / ISO string -> aware datetime
Timestamp = Annotated[datetime, BeforeValidator(to_datetime)]


class FirestoreModel(BaseModel):
    """Documents are stored with camelCase keys; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self, **exclude_flags) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, **exclude_flags)


M = TypeVar("M", bound=BaseModel)


def parse_document(model: Type[M], doc_id: str, data: Optional[Dict[str, Any]], id_field: str = "id") -> M:
    """Validate a raw Firestore dict into `model`, failing with DataError('validation')."""
    payload = dict(data or {})
    payload[id_field] = doc_id
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise DataError("validation", f"{model.__name__} '{doc_id}' is malformed ({fields})") from exc
