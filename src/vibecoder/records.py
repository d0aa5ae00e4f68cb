"""Boundary decoding for persisted records.

On-disk JSON is validated into pydantic records before any model is built,
so malformed input is rejected with a field-level message instead of
propagating loosely typed dicts into the models.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from vibecoder.errors import ValidationError

RecordT = TypeVar("RecordT", bound="Record")


class Record(BaseModel):
    """Base record with camelCase aliases accepted alongside field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def decode(record_type: type[RecordT], data: Any, what: str) -> RecordT:
    """Validate raw JSON data into a record.

    Raises:
        ValidationError: Listing every failing field.
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"Invalid {what} data", [f"expected an object, got {type(data).__name__}"]
        )
    try:
        return record_type.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(f"Invalid {what} data", errors) from e
