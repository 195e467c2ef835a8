"""
Line-oriented text format for records and resources.

Each line is a type tag followed by the model's fields in declaration order,
separated by whitespace:

    User          <name> <id> <privilege_level>
    Student       <name> <id> <privilege_level> <group>
    Teacher       <name> <id> <privilege_level> <department>
    Administrator <name> <id> <privilege_level> <secret>
    Resource      <name> <required_level>

Records are written first, then resources, each in store order.
"""
import re
from typing import Iterable
from structlog import get_logger

from .exceptions import ParseError
from .records import MODEL_TYPES, Record, ResourceRecord, StoreModel

log = get_logger()

_INT_RE = re.compile(r"^[+-]?[0-9]+$")


def format_line(item: StoreModel) -> str:
    tokens = [item.tag]
    tokens.extend(str(getattr(item, name)) for name in item.field_names())
    return " ".join(tokens)


def _convert(cls: type[StoreModel], name: str, token: str, lineno: int | None):
    if cls.model_fields[name].annotation is int:
        if not _INT_RE.match(token):
            raise ParseError(
                f"{cls.tag} field {name} expects an integer, got {token!r}", lineno
            )
        return int(token)
    return token


def parse_line(
    line: str, *, lineno: int | None = None, strict: bool = False
) -> StoreModel | None:
    """
    Parse a single line into a record or resource.

    Returns None for blank lines, and for lines with an unknown tag unless
    strict is set, in which case ParseError is raised.

    Args:
        line: the line to parse
        lineno: line number used in error messages
        strict: raise on unknown tags instead of skipping them
    """
    tokens = line.split()
    if not tokens:
        return None
    tag, values = tokens[0], tokens[1:]
    try:
        cls = MODEL_TYPES[tag]
    except KeyError:
        if strict:
            raise ParseError(f"unknown tag {tag!r}", lineno)
        return None

    names = cls.field_names()
    if len(values) != len(names):
        raise ParseError(
            f"{tag} expects {len(names)} fields ({' '.join(names)}), got {len(values)}",
            lineno,
        )
    data = {
        name: _convert(cls, name, token, lineno) for name, token in zip(names, values)
    }
    # validation errors from the model propagate unchanged
    return cls(**data)


def iter_lines(
    records: Iterable[Record], resources: Iterable[ResourceRecord]
) -> Iterable[str]:
    for record in records:
        yield format_line(record)
    for resource in resources:
        yield format_line(resource)


def dumps(records: Iterable[Record], resources: Iterable[ResourceRecord]) -> str:
    return "".join(f"{line}\n" for line in iter_lines(records, resources))


def loads(
    text: str | Iterable[str], *, strict: bool = False
) -> tuple[list[Record], list[ResourceRecord]]:
    """
    Parse a whole document (or an iterable of lines) into records and resources,
    each in order of appearance.
    """
    lines = text.splitlines() if isinstance(text, str) else text
    records: list[Record] = []
    resources: list[ResourceRecord] = []
    for lineno, line in enumerate(lines, 1):
        item = parse_line(line, lineno=lineno, strict=strict)
        if item is None:
            if line.strip():
                log.warning("unknown tag skipped", lineno=lineno, tag=line.split()[0])
            continue
        if isinstance(item, ResourceRecord):
            resources.append(item)
        else:
            records.append(item)
    return records, resources
