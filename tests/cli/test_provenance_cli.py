"""Tests for the ccprov command line interface.

Covers:
- list (empty and populated)
- show known and unknown files
- record from remote and local URLs
- forget with and without a record, with confirmation
- rename keeping the origin
- reconcile summary after files vanished
- config export
"""

from __future__ import annotations

import importlib
import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

pytestmark = [pytest.mark.unit, pytest.mark.cli]

from ccprov.cli.main import cli
from ccprov.storage.provenance_codec import read_entries, write_entries
from ccprov.utils.exceptions import ProvenanceStoreError
from ccprov.utils.logging_config import get_logger

cli_main = importlib.import_module("ccprov.cli.main")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, download_dir, state_dir):
    def _invoke(*args, **kwargs):
        return runner.invoke(
            cli,
            ["--download-dir", str(download_dir), "--state-dir", str(state_dir), *args],
            **kwargs,
        )

    return _invoke


@pytest.fixture
def report(download_dir):
    path = download_dir / "report.pdf"
    path.write_bytes(b"%PDF")
    return path


def test_list_empty(invoke):
    result = invoke("list")
    assert result.exit_code == 0, result.output
    assert "No origins recorded" in result.output


def test_list_shows_entries(invoke, report, store_file):
    write_entries(store_file, {"report.pdf": "example.com"})

    result = invoke("list")

    assert result.exit_code == 0, result.output
    assert "Download Origins" in result.output
    assert "report.pdf" in result.output
    assert "example.com" in result.output


def test_record_then_show(invoke, report, store_file):
    result = invoke("record", "https://example.com/files/report.pdf", "report.pdf")
    assert result.exit_code == 0, result.output
    assert "Recorded example.com for report.pdf" in result.output
    assert read_entries(store_file) == {"report.pdf": "example.com"}

    result = invoke("show", "report.pdf")
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "example.com"


def test_record_keeps_first_origin(invoke, report, store_file):
    write_entries(store_file, {"report.pdf": "example.com"})

    result = invoke("record", "https://other.org/report.pdf", "report.pdf")

    assert result.exit_code == 0, result.output
    assert "already came from example.com" in result.output
    assert read_entries(store_file) == {"report.pdf": "example.com"}


def test_record_rejects_local_url(invoke, report):
    result = invoke("record", "file:///tmp/report.pdf", "report.pdf")
    assert result.exit_code != 0
    assert "Not a supported remote URL" in result.output


def test_record_rejects_missing_file(invoke):
    result = invoke("record", "https://example.com/x.bin", "x.bin")
    assert result.exit_code != 0
    assert "No such download: x.bin" in result.output


def test_record_rejects_paths(invoke, report):
    result = invoke("record", "https://example.com/report.pdf", "../report.pdf")
    assert result.exit_code != 0
    assert "Expected a file name" in result.output


def test_show_unknown_file(invoke):
    result = invoke("show", "nothing.bin")
    assert result.exit_code == 1
    assert "No origin recorded for nothing.bin" in result.output


def test_forget_deletes_file_and_record(invoke, report, store_file):
    write_entries(store_file, {"report.pdf": "example.com"})

    result = invoke("forget", "report.pdf", input="y\n")

    assert result.exit_code == 0, result.output
    assert "Deleted report.pdf" in result.output
    assert "Forgot origin of report.pdf" in result.output
    assert not report.exists()
    assert read_entries(store_file) == {}


def test_forget_aborted(invoke, report, store_file):
    write_entries(store_file, {"report.pdf": "example.com"})

    result = invoke("forget", "report.pdf", input="n\n")

    assert result.exit_code != 0
    assert report.exists()
    assert read_entries(store_file) == {"report.pdf": "example.com"}


def test_forget_unknown(invoke):
    result = invoke("forget", "ghost.bin", "--yes")
    assert result.exit_code == 0, result.output
    assert "Nothing known about ghost.bin" in result.output


def test_rename_transfers_origin(invoke, report, download_dir, store_file):
    write_entries(store_file, {"report.pdf": "example.com"})

    result = invoke("rename", "report.pdf", "report-final.pdf")

    assert result.exit_code == 0, result.output
    assert "Renamed report.pdf to report-final.pdf" in result.output
    assert "Origin: example.com" in result.output
    assert (download_dir / "report-final.pdf").exists()
    assert read_entries(store_file) == {"report-final.pdf": "example.com"}


def test_rename_refuses_to_overwrite(invoke, report, download_dir):
    (download_dir / "other.pdf").write_bytes(b"other")

    result = invoke("rename", "report.pdf", "other.pdf")

    assert result.exit_code != 0
    assert "already exists, try other.1.pdf" in result.output
    assert report.exists()


def test_rename_missing_download(invoke):
    result = invoke("rename", "ghost.pdf", "new.pdf")
    assert result.exit_code != 0
    assert "No such download: ghost.pdf" in result.output


def test_reconcile_reports_pruned_entries(invoke, report, store_file):
    write_entries(store_file, {"report.pdf": "example.com", "gone.zip": "old.net"})

    result = invoke("reconcile")

    assert result.exit_code == 0, result.output
    assert "Reconciliation" in result.output
    assert read_entries(store_file) == {"report.pdf": "example.com"}


def test_store_dir_inside_download_dir_is_rejected(runner, download_dir):
    result = runner.invoke(
        cli,
        ["--download-dir", str(download_dir), "--state-dir", str(download_dir), "list"],
    )
    assert result.exit_code != 0
    assert "state_dir must differ from download_dir" in result.output


def test_config_json(invoke, download_dir):
    result = invoke("config", "--format", "json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["provenance"]["download_dir"] == str(download_dir)


def test_verbose_sets_log_level(runner, download_dir, state_dir):
    result = runner.invoke(
        cli,
        ["-v", "--download-dir", str(download_dir), "--state-dir", str(state_dir), "config"],
    )
    assert result.exit_code == 0, result.output
    assert 'log_level = "INFO"' in result.output


def test_store_open_failure_is_logged(invoke):
    assert cli_main.logger is get_logger("ccprov.cli.main")
    with patch(
        "ccprov.storage.provenance.ProvenanceStore.from_config",
        side_effect=ProvenanceStoreError("cannot open"),
    ), patch.object(cli_main.logger, "error") as mock_error:
        result = invoke("list")

    assert result.exit_code != 0
    assert "cannot open" in result.output
    mock_error.assert_called_once()
