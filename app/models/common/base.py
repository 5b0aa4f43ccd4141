"""Base entity class and JSON-ready conversion for domain values."""

from dataclasses import dataclass, fields, is_dataclass
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel


def dump(value: Any) -> Any:
    """Convert entities, schemas and containers of them to plain JSON-ready data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: dump(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {k: dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [dump(v) for v in value]
    if isinstance(value, PurePath):
        return str(value)
    return value


@dataclass
class BaseEntity:
    """Base class for all entities."""

    def to_dict(self) -> dict[str, Any]:
        """Convert entity to dictionary."""
        return dump(self)
