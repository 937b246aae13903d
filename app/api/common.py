"""
Shared pieces for the API schemas.
"""

import math
import uuid
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


def is_finite_document(value: Any) -> bool:
    """False if any float nested in value is NaN or infinite."""
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, dict):
        return all(is_finite_document(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return all(is_finite_document(v) for v in value)
    return True


class CamelModel(BaseModel):
    """Schema exchanged with the web client in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )

    @model_validator(mode="after")
    def reject_non_finite(self):
        # Free-form fields (Any, extras) bypass allow_inf_nan
        if not is_finite_document(self.model_dump()):
            raise ValueError("Numbers must be finite")
        return self

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready dict of the fields the client actually sent."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


def new_embedded_id() -> str:
    """Identifier for a document embedded on a project."""
    return uuid.uuid4().hex
