"""
ObjectId helpers shared by routers and adapters
"""
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from dinebook_service.exceptions import ValidationError


def is_object_id(value: Optional[str]) -> bool:
    return bool(value) and ObjectId.is_valid(value)


def validate_object_id(value: Optional[str], label: str = "") -> str:
    """Return the id unchanged or raise ValidationError("Invalid <label> ID")"""
    if not is_object_id(value):
        raise ValidationError(f"Invalid {label} ID" if label else "Invalid ID")
    return value


def to_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValidationError("Invalid ID format") from e


def to_object_ids(values: List[str]) -> List[ObjectId]:
    return [ObjectId(v) for v in values if ObjectId.is_valid(v)]
