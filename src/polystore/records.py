"""
Record and resource models held by a RecordStore.

Every model is a frozen, strict pydantic model: fields are validated when the
model is constructed and cannot be changed afterwards. String fields are
single whitespace-free tokens so that every model can be written to and read
back from the line-oriented text format.
"""
from typing import Annotated, Any, ClassVar
import pydantic
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from .exceptions import ValidationError


def _no_whitespace(value: str) -> str:
    # any character str.split would treat as a separator
    if any(c.isspace() for c in value):
        raise ValueError("must not contain whitespace")
    return value


Token = Annotated[str, StringConstraints(min_length=1), AfterValidator(_no_whitespace)]
Level = Annotated[int, Field(ge=0)]


def _describe_errors(exc: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or '<model>'}: {err['msg']}"
        for err in exc.errors()
    )


class StoreModel(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    # persisted type tag, first token of a line in the text format
    tag: ClassVar[str]

    def __init__(self, /, **data: Any):
        try:
            super().__init__(**data)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"invalid {self.tag}: {_describe_errors(e)}"
            ) from e

    @classmethod
    def field_names(cls) -> list[str]:
        """
        Field names in persisted order.
        """
        return list(cls.model_fields)


class Record(StoreModel):
    """
    A plain user: the shared identity contract of every record kind.
    """

    tag: ClassVar[str] = "User"

    name: Token
    id: Level
    privilege_level: Level

    def __str__(self) -> str:
        return (
            f"Name: {self.name}, ID: {self.id}, Access Level: {self.privilege_level}"
        )


class StudentRecord(Record):
    tag: ClassVar[str] = "Student"

    group: int

    def __str__(self) -> str:
        return f"{super().__str__()}, Group: {self.group} (Student)"


class TeacherRecord(Record):
    tag: ClassVar[str] = "Teacher"

    department: Token

    def __str__(self) -> str:
        return f"{super().__str__()}, Department: {self.department} (Teacher)"


class AdminRecord(Record):
    tag: ClassVar[str] = "Administrator"

    secret: Token

    def __str__(self) -> str:
        # the secret is persisted but never displayed
        return f"{super().__str__()} (Administrator)"


class ResourceRecord(StoreModel):
    """
    An access-gated resource, looked up by name.
    """

    tag: ClassVar[str] = "Resource"

    name: Token
    required_level: Level

    def __str__(self) -> str:
        return f"Resource: {self.name}, Required Access: {self.required_level}"

    def permits(self, record: Record) -> bool:
        return record.privilege_level >= self.required_level


RECORD_TYPES: dict[str, type[Record]] = {
    cls.tag: cls for cls in (Record, StudentRecord, TeacherRecord, AdminRecord)
}

MODEL_TYPES: dict[str, type[StoreModel]] = {
    **RECORD_TYPES,
    ResourceRecord.tag: ResourceRecord,
}
