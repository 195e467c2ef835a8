from pathlib import Path
import typer
from typing import NoReturn, Optional
from rich.console import Console
from rich.table import Table
from structlog import get_logger

from .config import Config, load_config
from .exceptions import PolystoreError
from .records import (
    AdminRecord,
    Record,
    ResourceRecord,
    StudentRecord,
    TeacherRecord,
)
from .store import RecordStore, SortField

app = typer.Typer()
log = get_logger()


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _open_store(ctx: typer.Context, *, missing_ok: bool = False) -> RecordStore:
    config: Config = ctx.obj
    store = RecordStore(Path(config.data_file).stem, strict=config.strict_load)
    if missing_ok and not Path(config.data_file).exists():
        return store
    try:
        store.deserialize(config.data_file)
    except PolystoreError as e:
        _fail(f"Error: {e}")
    return store


def _save_store(ctx: typer.Context, store: RecordStore) -> None:
    try:
        store.serialize(ctx.obj.data_file)
    except PolystoreError as e:
        _fail(f"Error: {e}")


def _echo_store(store: RecordStore) -> None:
    for record in store.records():
        typer.echo(str(record))


def _add(ctx: typer.Context, build) -> None:
    store = _open_store(ctx, missing_ok=True)
    try:
        item = build()
    except PolystoreError as e:
        _fail(f"Error: {e}")
    if isinstance(item, ResourceRecord):
        store.add_resource(item)
    else:
        store.add_record(item)
    _save_store(ctx, store)
    typer.secho(f"Added {item}", fg=typer.colors.GREEN)


@app.callback()
def main(
    ctx: typer.Context,
    data: Optional[str] = typer.Option(
        None, "--data", help="Path to the store's text file."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--lenient", help="Fail on unknown tags when loading."
    ),
) -> None:
    try:
        ctx.obj = load_config(data_file=data, log_level=log_level, strict_load=strict)
    except (ValueError, OSError) as e:
        _fail(f"Invalid configuration: {e}")


@app.command()
def show(ctx: typer.Context) -> None:
    store = _open_store(ctx)
    console = Console()

    table = Table(title="Records")
    table.add_column("Kind")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Level", justify="right")
    table.add_column("Details")
    for record in store.records():
        match record:
            case StudentRecord():
                details = f"group {record.group}"
            case TeacherRecord():
                details = record.department
            case _:
                details = ""
        table.add_row(
            record.tag,
            str(record.id),
            record.name,
            str(record.privilege_level),
            details,
        )
    console.print(table)

    table = Table(title="Resources")
    table.add_column("Name")
    table.add_column("Required Level", justify="right")
    for resource in store.resources():
        table.add_row(resource.name, str(resource.required_level))
    console.print(table)


@app.command("add-user")
def add_user(ctx: typer.Context, name: str, id: int, level: int) -> None:
    _add(ctx, lambda: Record(name=name, id=id, privilege_level=level))


@app.command("add-student")
def add_student(ctx: typer.Context, name: str, id: int, level: int, group: int) -> None:
    _add(
        ctx,
        lambda: StudentRecord(name=name, id=id, privilege_level=level, group=group),
    )


@app.command("add-teacher")
def add_teacher(
    ctx: typer.Context, name: str, id: int, level: int, department: str
) -> None:
    _add(
        ctx,
        lambda: TeacherRecord(
            name=name, id=id, privilege_level=level, department=department
        ),
    )


@app.command("add-admin")
def add_admin(ctx: typer.Context, name: str, id: int, level: int, secret: str) -> None:
    _add(
        ctx,
        lambda: AdminRecord(name=name, id=id, privilege_level=level, secret=secret),
    )


@app.command("add-resource")
def add_resource(ctx: typer.Context, name: str, level: int) -> None:
    _add(ctx, lambda: ResourceRecord(name=name, required_level=level))


@app.command()
def find(
    ctx: typer.Context,
    name: str,
    partial: bool = typer.Option(False, help="Match names containing NAME."),
) -> None:
    store = _open_store(ctx)
    found = store.find_by_name(name, partial=partial)
    if not found:
        typer.secho(f"No records named {name!r}", fg=typer.colors.YELLOW)
        return
    for record in found:
        typer.echo(str(record))


@app.command()
def check(ctx: typer.Context, user_id: int, resource: str) -> None:
    store = _open_store(ctx)
    try:
        allowed = store.check_access(user_id, resource)
    except PolystoreError as e:
        _fail(f"Error: {e}")
    typer.echo(
        f"User {user_id} access to {resource}: {'Granted' if allowed else 'Denied'}"
    )


@app.command()
def sort(
    ctx: typer.Context,
    by: SortField = typer.Option(SortField.privilege_level, "--by"),
) -> None:
    store = _open_store(ctx)
    store.sort_by_field(by)
    _save_store(ctx, store)
    _echo_store(store)


@app.command()
def demo(
    ctx: typer.Context,
    output: str = typer.Option(
        "system_data.txt", "--output", help="File the demo store is saved to."
    ),
) -> None:
    """
    Walk through adding, checking, searching, sorting, saving and reloading.
    """
    try:
        store = RecordStore("demo")
        store.add_record(
            StudentRecord(name="Nick", id=1, privilege_level=1, group=101)
        )
        store.add_record(
            TeacherRecord(name="Brown", id=2, privilege_level=3, department="CS")
        )
        store.add_record(
            AdminRecord(name="Smith", id=3, privilege_level=5, secret="admin123")
        )
        store.add_resource(ResourceRecord(name="Classroom101", required_level=1))
        store.add_resource(ResourceRecord(name="ComputerLab", required_level=3))
        store.add_resource(ResourceRecord(name="MainLibrary", required_level=2))
        store.add_resource(ResourceRecord(name="ServerRoom", required_level=5))

        typer.echo("=== All Users ===")
        _echo_store(store)
        typer.echo("\n=== All Resources ===")
        for resource in store.resources():
            typer.echo(str(resource))

        typer.echo("\n=== Access Checks ===")
        for user_id, resource in ((1, "ComputerLab"), (2, "ServerRoom")):
            allowed = store.check_access(user_id, resource)
            typer.echo(
                f"User {user_id} access to {resource}: "
                f"{'Granted' if allowed else 'Denied'}"
            )

        typer.echo("\n=== Search ===")
        if found := store.find_by_name("Nick"):
            typer.echo("Found users with name 'Nick':")
            for record in found:
                typer.echo(str(record))

        typer.echo("\n=== Sorted by Access Level ===")
        store.sort_by_field(SortField.privilege_level)
        _echo_store(store)

        typer.echo("\n=== File I/O ===")
        store.serialize(output)
        loaded = RecordStore("loaded", strict=ctx.obj.strict_load)
        loaded.deserialize(output)
        typer.echo("Loaded system:")
        _echo_store(loaded)
        for resource in loaded.resources():
            typer.echo(str(resource))
    except PolystoreError as e:
        log.error("demo failed", exception=str(e))
        _fail(f"Error: {e}")


if __name__ == "__main__":
    app()
