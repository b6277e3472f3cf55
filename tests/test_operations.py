"""Tests for init and add."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from wptsync.core.operations import add_files, destination_for, init_config
from wptsync.errors import ConfigError, FetchError
from wptsync.models.config import WptConfig


def test_destination_for() -> None:
    assert destination_for("encoding/textdecoder-arguments.any.js") == "encoding/textdecoder-arguments.js"
    assert destination_for("resources/testharness.js") == "resources/testharness.js"
    assert destination_for("url/any.js") == "url/any.js"


class TestInitConfig:
    """Tests for init_config."""

    def test_creates_config(self, tmp_path: Path, output) -> None:
        console, buffer = output
        client = MagicMock()
        client.latest_commit.return_value = "abc123"
        config_path = tmp_path / "wpt.json"

        config = init_config(config_path, client=client, console=console)

        assert config.commit == "abc123"
        assert json.loads(config_path.read_text()) == {"commit": "abc123", "target_dir": "wpt", "files": []}
        assert "with commit abc123" in buffer.getvalue()

    def test_existing_config_not_overwritten(self, tmp_path: Path, output) -> None:
        console, _ = output
        client = MagicMock()
        config_path = tmp_path / "wpt.json"
        config_path.write_text("{}")

        with pytest.raises(ConfigError, match="already exists"):
            init_config(config_path, client=client, console=console)

        client.latest_commit.assert_not_called()
        assert config_path.read_text() == "{}"

    def test_fetch_failure(self, tmp_path: Path, output) -> None:
        console, _ = output
        client = MagicMock()
        client.latest_commit.side_effect = FetchError("GitHub API returned 403 Forbidden", 403)
        config_path = tmp_path / "wpt.json"

        with pytest.raises(FetchError, match="fetch latest commit: GitHub API returned 403"):
            init_config(config_path, client=client, console=console)

        assert not config_path.exists()


class TestAddFiles:
    """Tests for add_files."""

    def test_adds_new_files(self, write_config, output) -> None:
        console, _ = output
        config_path = write_config({
            "commit": "abc",
            "target_dir": "wpt",
            "files": [{"src": "encoding/a.any.js", "dst": "encoding/a.js", "enabled": False}],
        })
        client = MagicMock()
        client.list_files.return_value = [
            "encoding/a.any.js",
            "encoding/b.any.js",
            "encoding/resources/helper.js",
        ]

        added = add_files(config_path, "/encoding/", client=client, console=console)

        assert [e.src for e in added] == ["encoding/b.any.js", "encoding/resources/helper.js"]
        assert client.list_files.call_args.args[:2] == ("abc", "encoding")

        config = WptConfig.load(config_path)
        assert [(f.src, f.dst) for f in config.files] == [
            ("encoding/a.any.js", "encoding/a.js"),
            ("encoding/b.any.js", "encoding/b.js"),
            ("encoding/resources/helper.js", "encoding/resources/helper.js"),
        ]
        # Existing entries keep their flags
        assert config.files[0].enabled is False

    def test_nothing_new(self, write_config, output) -> None:
        console, buffer = output
        config_path = write_config({
            "commit": "abc",
            "target_dir": "wpt",
            "files": [{"src": "url/a.js", "dst": "url/a.js"}],
        })
        before = config_path.read_text()
        client = MagicMock()
        client.list_files.return_value = ["url/a.js"]

        assert add_files(config_path, "url", client=client, console=console) == []
        assert config_path.read_text() == before
        assert "No new files to add" in buffer.getvalue()

    def test_no_files_found(self, write_config, output) -> None:
        console, buffer = output
        config_path = write_config({"commit": "abc", "target_dir": "wpt", "files": []})
        client = MagicMock()
        client.list_files.return_value = []

        assert add_files(config_path, "empty/", client=client, console=console) == []
        assert "No .js files found in empty" in buffer.getvalue()

    def test_listing_error(self, write_config, output) -> None:
        console, _ = output
        config_path = write_config({"commit": "abc", "target_dir": "wpt", "files": []})
        client = MagicMock()
        client.list_files.side_effect = FetchError("path 'nope' not found in repository", 404)

        with pytest.raises(FetchError, match="list files: path 'nope' not found"):
            add_files(config_path, "nope", client=client, console=console)

    def test_missing_config(self, tmp_path: Path, output) -> None:
        console, _ = output

        with pytest.raises(ConfigError):
            add_files(tmp_path / "wpt.json", "url", client=MagicMock(), console=console)
