import pytest
from typer.testing import CliRunner
from polystore.cli import app
from testdata import SCHOOL_TEXT

"""
These run the CLI end to end against a data file in a temporary directory.
"""

runner = CliRunner()


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "school.txt"
    path.write_text(SCHOOL_TEXT)
    return str(path)


def invoke(data_file, *args):
    return runner.invoke(app, ["--data", data_file, *args])


def test_show(data_file):
    result = invoke(data_file, "show")
    assert result.exit_code == 0
    assert "Records" in result.output
    assert "Resources" in result.output
    assert "Administrator" in result.output
    assert "group 101" in result.output
    assert "Server" in result.output
    # secrets are not displayed
    assert "k1" not in result.output


def test_show_missing_file(tmp_path):
    result = invoke(str(tmp_path / "nope.txt"), "show")
    assert result.exit_code == 1
    assert "cannot read" in result.output


def test_show_strict_unknown_tag(data_file):
    with open(data_file, "a") as f:
        f.write("Monster Goblin 30 10 2\n")
    assert invoke(data_file, "show").exit_code == 0
    result = invoke(data_file, "--strict", "show")
    assert result.exit_code == 1
    assert "unknown tag 'Monster'" in result.output


def test_strict_from_env(data_file, monkeypatch):
    monkeypatch.setenv("POLYSTORE_STRICT_LOAD", "1")
    with open(data_file, "a") as f:
        f.write("Monster Goblin 30 10 2\n")
    assert invoke(data_file, "show").exit_code == 1
    assert invoke(data_file, "--lenient", "show").exit_code == 0


def test_bad_log_level(data_file):
    result = invoke(data_file, "--log-level", "loud", "show")
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_add_creates_file(tmp_path):
    path = tmp_path / "new.txt"
    data = str(path)
    assert invoke(data, "add-user", "Guest", "4", "0").exit_code == 0
    assert invoke(data, "add-student", "Nick", "1", "1", "101").exit_code == 0
    assert invoke(data, "add-teacher", "Brown", "2", "3", "CS").exit_code == 0
    assert invoke(data, "add-admin", "Smith", "3", "5", "k1").exit_code == 0
    result = invoke(data, "add-resource", "Lab", "3")
    assert result.exit_code == 0
    assert "Added Resource: Lab, Required Access: 3" in result.output
    assert path.read_text() == (
        "User Guest 4 0\n"
        "Student Nick 1 1 101\n"
        "Teacher Brown 2 3 CS\n"
        "Administrator Smith 3 5 k1\n"
        "Resource Lab 3\n"
    )


def test_add_invalid(data_file):
    result = invoke(data_file, "add-user", "Nick Teran", "9", "1")
    assert result.exit_code == 1
    assert "invalid User" in result.output
    with open(data_file) as f:
        assert f.read() == SCHOOL_TEXT


def test_find(data_file):
    result = invoke(data_file, "find", "Nick")
    assert result.exit_code == 0
    assert result.output == "Name: Nick, ID: 1, Access Level: 1, Group: 101 (Student)\n"


def test_find_partial(data_file):
    assert "No records named 'Ni'" in invoke(data_file, "find", "Ni").output
    result = invoke(data_file, "find", "Ni", "--partial")
    assert "Name: Nick" in result.output


@pytest.mark.parametrize(
    "user_id,resource,expected",
    [
        ("1", "Lab", "User 1 access to Lab: Denied\n"),
        ("2", "Lab", "User 2 access to Lab: Granted\n"),
        ("3", "Server", "User 3 access to Server: Granted\n"),
    ],
)
def test_check(data_file, user_id, resource, expected):
    result = invoke(data_file, "check", user_id, resource)
    assert result.exit_code == 0
    assert result.output == expected


def test_check_not_found(data_file):
    result = invoke(data_file, "check", "99", "Lab")
    assert result.exit_code == 1
    assert "record 99 not found" in result.output


def test_sort(data_file):
    result = invoke(data_file, "sort", "--by", "privilege_level")
    assert result.exit_code == 0
    assert result.output.splitlines()[0] == "Name: Guest, ID: 4, Access Level: 0"
    with open(data_file) as f:
        assert f.readline() == "User Guest 4 0\n"

    result = invoke(data_file, "sort", "--by", "id")
    assert result.exit_code == 0
    with open(data_file) as f:
        assert f.readline() == "Student Nick 1 1 101\n"


def test_demo(tmp_path, data_file):
    path = tmp_path / "demo.txt"
    result = invoke(data_file, "demo", "--output", str(path))
    assert result.exit_code == 0
    assert "=== All Users ===" in result.output
    assert "User 1 access to ComputerLab: Denied" in result.output
    assert "User 2 access to ServerRoom: Denied" in result.output
    assert "Found users with name 'Nick':" in result.output
    assert "Loaded system:" in result.output
    assert "Resource: ServerRoom, Required Access: 5" in result.output
    assert path.read_text().splitlines() == [
        "Student Nick 1 1 101",
        "Teacher Brown 2 3 CS",
        "Administrator Smith 3 5 admin123",
        "Resource Classroom101 1",
        "Resource ComputerLab 3",
        "Resource MainLibrary 2",
        "Resource ServerRoom 5",
    ]


def test_demo_unwritable(tmp_path, data_file):
    result = invoke(data_file, "demo", "--output", str(tmp_path / "missing" / "x.txt"))
    assert result.exit_code == 1
    assert "cannot write" in result.output


def test_demo_leaves_data_file_alone(tmp_path, data_file, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = invoke(data_file, "demo")
    assert result.exit_code == 0
    assert (tmp_path / "system_data.txt").exists()
    with open(data_file) as f:
        assert f.read() == SCHOOL_TEXT


def test_show_not_utf8(tmp_path):
    path = tmp_path / "corrupt.txt"
    path.write_bytes(b"User \xff\xfe 1 0\n")
    result = invoke(str(path), "show")
    assert result.exit_code == 1
    assert "not valid UTF-8" in result.output


def test_unopenable_log_file(data_file, tmp_path, monkeypatch):
    monkeypatch.setenv("POLYSTORE_LOG_FILE", str(tmp_path / "missing" / "store.log"))
    result = invoke(data_file, "show")
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
