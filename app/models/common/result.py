"""Operation results handed to the presentation layer."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from app.models.common.base import dump
from ballot_client.errors import ApiError, ErrorKind

T = TypeVar("T")


@dataclass
class Ok(Generic[T]):
    """Successful operation."""

    data: T = None

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": True}
        if self.data is not None:
            result["data"] = dump(self.data)
        return result


@dataclass
class Err:
    """Failed operation with its error kind."""

    kind: ErrorKind
    message: str
    status: int = 0

    @property
    def success(self) -> bool:
        return False

    @classmethod
    def from_api(cls, exc: ApiError) -> "Err":
        return cls(exc.kind, exc.message, exc.status)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "errorCode": str(self.kind)}


Result = Ok[T] | Err
