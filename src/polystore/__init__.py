from .exceptions import (
    NotFoundError,
    ParseError,
    PolystoreError,
    StoreIOError,
    ValidationError,
)
from .records import (
    AdminRecord,
    Record,
    ResourceRecord,
    StudentRecord,
    TeacherRecord,
)
from .store import AccessResult, RecordStore, SortField

__all__ = [
    "AccessResult",
    "AdminRecord",
    "NotFoundError",
    "ParseError",
    "PolystoreError",
    "Record",
    "RecordStore",
    "ResourceRecord",
    "SortField",
    "StoreIOError",
    "StudentRecord",
    "TeacherRecord",
    "ValidationError",
]
