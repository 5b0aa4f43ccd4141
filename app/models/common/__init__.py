"""Common models - base classes and operation results."""

from app.models.common.base import BaseEntity, dump
from app.models.common.result import Err, Ok, Result

__all__ = [
    "BaseEntity",
    "dump",
    "Ok",
    "Err",
    "Result",
]
