from pathlib import Path

import pytest

from dav_contacts.config import default_data_dir, ensure_workspace, load_settings
from dav_contacts.model import StoreError


@pytest.mark.parametrize("platform, env, expected", [
    ("linux", {"XDG_DATA_HOME": "/x/data", "HOME": "/home/u"}, Path("/x/data/dav")),
    ("linux", {"HOME": "/home/u"}, Path("/home/u/.local/share/dav")),
    ("linux", {"XDG_DATA_HOME": "", "HOME": "/home/u"}, Path("/home/u/.local/share/dav")),
    ("darwin", {"HOME": "/Users/u", "XDG_DATA_HOME": "/ignored"}, Path("/Users/u/Library/Application Support/dav")),
    ("win32", {"APPDATA": "C:/Users/u/AppData/Roaming"}, Path("C:/Users/u/AppData/Roaming/dav/data")),
])
def test_default_data_dir(platform, env, expected):
    assert default_data_dir(platform, env) == expected


@pytest.mark.parametrize("platform", ["linux", "darwin", "win32"])
def test_default_data_dir_without_env(platform):
    with pytest.raises(StoreError):
        default_data_dir(platform, {})


def test_default_data_dir_reads_environment(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert default_data_dir("linux") == tmp_path / "dav"


def test_ensure_workspace_creates_conf(tmp_path: Path):
    base = tmp_path / "dav"
    paths, settings = ensure_workspace(base)

    assert base.is_dir()
    assert paths.contacts_file == base / "contacts.json"
    txt = paths.conf_file.read_text()
    assert 'host = "127.0.0.1"' in txt
    assert "port = 3000" in txt
    assert (settings.host, settings.port) == ("127.0.0.1", 3000)


def test_ensure_workspace_keeps_existing_conf(tmp_path: Path):
    (tmp_path / "dav.conf").write_text('host = "0.0.0.0"\nport = 8080\n')
    _, settings = ensure_workspace(tmp_path)
    assert (settings.host, settings.port) == ("0.0.0.0", 8080)


def test_ensure_workspace_unusable_dir(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(StoreError):
        ensure_workspace(blocker / "dav")


def test_malformed_conf_falls_back(tmp_path: Path, caplog):
    conf = tmp_path / "dav.conf"
    conf.write_text("port = = nope")
    settings = load_settings(conf)
    assert settings.port == 3000
    assert "Ignoring unreadable config" in caplog.text
