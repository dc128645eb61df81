from pathlib import Path

from typer.testing import CliRunner

from dav_contacts.cli import app
from dav_contacts.store import ContactStore

runner = CliRunner()


def _invoke(tmp_path: Path, *args: str):
    return runner.invoke(app, [*args, "--data-dir", str(tmp_path)])


def test_add_show_delete(tmp_path: Path):
    result = _invoke(tmp_path, "add", "123", "--name", "John Doe",
                     "--email", "john@example.com", "--phone", "123456789")
    assert result.exit_code == 0, result.output
    assert "Added John Doe" in result.output

    result = _invoke(tmp_path, "show", "123")
    assert result.exit_code == 0
    assert result.output == (
        "BEGIN:VCARD\nVERSION:4.0\nFN:John Doe\nEMAIL:john@example.com\nTEL:123456789\nEND:VCARD\n"
    )

    result = _invoke(tmp_path, "delete", "123")
    assert result.exit_code == 0
    assert ContactStore.open(tmp_path / "contacts.json").list() == []


def test_add_duplicate_fails(tmp_path: Path):
    assert _invoke(tmp_path, "add", "1", "--name", "A").exit_code == 0
    result = _invoke(tmp_path, "add", "1", "--name", "B")
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_show_and_delete_missing(tmp_path: Path):
    assert _invoke(tmp_path, "show", "nope").exit_code == 1
    assert _invoke(tmp_path, "delete", "nope").exit_code == 1


def test_list(tmp_path: Path):
    result = _invoke(tmp_path, "list")
    assert result.exit_code == 0
    assert "No contacts yet" in result.output

    _invoke(tmp_path, "add", "1", "--name", "Ann")
    result = _invoke(tmp_path, "list")
    assert "Ann" in result.output
    assert "1 contact(s)" in result.output


def test_import_and_export(tmp_path: Path):
    data = tmp_path / "data"
    vcf = tmp_path / "in.vcf"
    vcf.write_text(
        "BEGIN:VCARD\nVERSION:3.0\nUID:u1\nFN:Uma\nEMAIL:uma@example.com\nEND:VCARD\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["import", str(vcf), "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    assert ContactStore.open(data / "contacts.json").get("u1").email == "uma@example.com"

    # second import skips the existing id
    result = runner.invoke(app, ["import", str(vcf), "--data-dir", str(data)])
    assert result.exit_code == 0
    assert "skipped" in result.output

    out = tmp_path / "out.vcf"
    result = runner.invoke(app, ["export", str(out), "--data-dir", str(data)])
    assert result.exit_code == 0
    assert "FN:Uma" in out.read_text(encoding="utf-8")


def test_search(tmp_path: Path):
    _invoke(tmp_path, "add", "1", "--name", "John Doe")
    _invoke(tmp_path, "add", "2", "--name", "Zed Zulu")
    result = _invoke(tmp_path, "search", "john")
    assert result.exit_code == 0
    assert "John Doe" in result.output
    assert "Zed Zulu" not in result.output

    assert _invoke(tmp_path, "search", "qqqqqq").exit_code == 1


def test_unusable_data_dir(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    result = runner.invoke(app, ["list", "--data-dir", str(blocker / "dav")])
    assert result.exit_code == 1
    assert "Cannot open contact store" in result.output
