import os
from enum import StrEnum
from typing import IO, Iterable
from structlog import get_logger

from .exceptions import NotFoundError, ParseError, StoreIOError
from .records import Record, ResourceRecord
from .textformat import iter_lines, loads

log = get_logger()

PathOrStream = str | os.PathLike | IO[str]


class SortField(StrEnum):
    """
    Record fields a store can be sorted by.
    """

    privilege_level = "privilege_level"
    id = "id"


class AccessResult(StrEnum):
    """
    Outcome of an access check.

    granted: the record's privilege level meets the resource's required level
    denied: the record's privilege level is below the required level
    not_found: the record or the resource does not exist
    """

    granted = "granted"
    denied = "denied"
    not_found = "not_found"


class RecordStore:
    """
    An ordered, in-memory collection of records and resources.

    Lookups are linear scans over the current order. Records are immutable, so
    returned records can be shared freely with callers.
    """

    def __init__(self, name: str = "store", *, strict: bool = False):
        self.name = name
        self.strict = strict
        self._records: list[Record] = []
        self._resources: list[ResourceRecord] = []

    def __repr__(self) -> str:
        return (
            f"RecordStore({self.name}, {len(self._records)} records, "
            f"{len(self._resources)} resources)"
        )

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records or self._resources)

    # section: insertion ######################################################

    def add_record(self, record: Record) -> None:
        """
        Add a record to the end of the store. Duplicate ids are allowed;
        lookups by id return the first match.
        """
        if not isinstance(record, Record):
            raise TypeError(f"expected a Record, got {type(record).__name__}")
        self._records.append(record)
        log.debug("add_record", store=self.name, tag=record.tag, id=record.id)

    def add_records(self, records: Iterable[Record]) -> None:
        for record in records:
            self.add_record(record)

    def add_resource(self, resource: ResourceRecord) -> None:
        if not isinstance(resource, ResourceRecord):
            raise TypeError(
                f"expected a ResourceRecord, got {type(resource).__name__}"
            )
        self._resources.append(resource)
        log.debug("add_resource", store=self.name, name=resource.name)

    def reset(self) -> None:
        """
        Reset the store to empty.
        """
        self._records = []
        self._resources = []

    # section: queries ########################################################

    def records(self) -> Iterable[Record]:
        yield from self._records

    def resources(self) -> Iterable[ResourceRecord]:
        yield from self._resources

    def find_by_id(self, id: int) -> Record | None:
        for record in self._records:
            if record.id == id:
                return record
        return None

    def get_record(self, id: int) -> Record:
        if (record := self.find_by_id(id)) is None:
            raise NotFoundError(f"record {id} not found in {self.name}")
        return record

    def find_by_name(self, name: str, *, partial: bool = False) -> list[Record]:
        """
        Return all records matching name, in the store's current order.

        Args:
            name: the name to look for
            partial: match records whose name contains name
        """
        if partial:
            return [r for r in self._records if name in r.name]
        return [r for r in self._records if r.name == name]

    def find_resource(self, name: str) -> ResourceRecord | None:
        for resource in self._resources:
            if resource.name == name:
                return resource
        return None

    def get_resource(self, name: str) -> ResourceRecord:
        if (resource := self.find_resource(name)) is None:
            raise NotFoundError(f"resource {name} not found in {self.name}")
        return resource

    def check_access(self, user_id: int, resource_name: str) -> bool:
        """
        Check whether a record may access a resource.

        Raises NotFoundError if either the record or the resource is missing,
        so that a missing target is never mistaken for a denial.
        """
        record = self.get_record(user_id)
        resource = self.get_resource(resource_name)
        return resource.permits(record)

    def access(self, user_id: int, resource_name: str) -> AccessResult:
        try:
            allowed = self.check_access(user_id, resource_name)
        except NotFoundError:
            return AccessResult.not_found
        return AccessResult.granted if allowed else AccessResult.denied

    # section: ordering #######################################################

    def sort_by_field(self, field: SortField | str) -> None:
        """
        Stable ascending sort of the records, in place.
        """
        field = SortField(field)
        self._records.sort(key=lambda r: getattr(r, field.value))
        log.info("sort_by_field", store=self.name, field=field.value)

    # section: persistence ####################################################

    def serialize(self, sink: PathOrStream) -> None:
        """
        Write all records, then all resources, one per line.

        Args:
            sink: a path or an open text stream
        """
        lines = [f"{line}\n" for line in iter_lines(self._records, self._resources)]
        try:
            if hasattr(sink, "write"):
                sink.writelines(lines)  # type: ignore
            else:
                with open(sink, "w", encoding="utf-8") as out:
                    out.writelines(lines)
        except OSError as e:
            raise StoreIOError(f"cannot write {self.name} to {sink}: {e}") from e
        log.info(
            "serialize",
            store=self.name,
            records=len(self._records),
            resources=len(self._resources),
        )

    def deserialize(self, source: PathOrStream, *, strict: bool | None = None) -> None:
        """
        Replace the store's contents with those read from source.

        The whole source is parsed before the store is touched; if parsing
        fails the store is left unchanged.

        Args:
            source: a path or an open text stream
            strict: raise ParseError on unknown tags (defaults to self.strict)
        """
        if strict is None:
            strict = self.strict
        try:
            if hasattr(source, "read"):
                text = source.read()  # type: ignore
            else:
                with open(source, encoding="utf-8") as f:
                    text = f.read()
        except OSError as e:
            raise StoreIOError(f"cannot read {self.name} from {source}: {e}") from e
        except UnicodeDecodeError as e:
            raise ParseError(f"{source} is not valid UTF-8: {e}") from e

        records, resources = loads(text, strict=strict)
        self._records = records
        self._resources = resources
        log.info(
            "deserialize",
            store=self.name,
            records=len(records),
            resources=len(resources),
            strict=strict,
        )
