"""Tests for kong2tyk.kong.exporter."""

import json
import subprocess
from unittest.mock import patch

import pytest

from kong2tyk.errors import ExportError
from kong2tyk.kong import KongExporter, load_dump


def _make_exporter():
    return KongExporter("https://eu.api.konghq.com/", "prod-cp", "kpat_secret")


def test_build_command(tmp_path):
    cmd = _make_exporter().build_command(tmp_path / "dump.json")
    assert cmd == [
        "deck",
        "--konnect-addr", "https://eu.api.konghq.com",
        "--konnect-control-plane-name", "prod-cp",
        "--konnect-token", "kpat_secret",
        "--format", "json",
        "-o", str(tmp_path / "dump.json"),
        "gateway", "dump", "--yes",
    ]


def test_export_success(tmp_path):
    out = tmp_path / "nested" / "dump.json"

    def fake_run(cmd, **kwargs):
        out.write_text(json.dumps({"services": []}))
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    with patch("kong2tyk.kong.exporter.subprocess.run", side_effect=fake_run) as run:
        assert _make_exporter().export(out) == out
    run.assert_called_once()


def test_export_failure_masks_token(tmp_path):
    failed = subprocess.CompletedProcess([], 1, stdout="", stderr="invalid token kpat_secret")
    with patch("kong2tyk.kong.exporter.subprocess.run", return_value=failed):
        with pytest.raises(ExportError) as excinfo:
            _make_exporter().export(tmp_path / "dump.json")
    assert "kpat_secret" not in str(excinfo.value)
    assert "status 1" in str(excinfo.value)


def test_export_missing_deck(tmp_path):
    with patch("kong2tyk.kong.exporter.subprocess.run", side_effect=FileNotFoundError("deck")):
        with pytest.raises(ExportError, match="deck binary not found"):
            _make_exporter().export(tmp_path / "dump.json")


def test_export_success_without_output_file(tmp_path):
    ok = subprocess.CompletedProcess([], 0, stdout="", stderr="")
    with patch("kong2tyk.kong.exporter.subprocess.run", return_value=ok):
        with pytest.raises(ExportError, match="wrote no dump"):
            _make_exporter().export(tmp_path / "dump.json")


def test_load_dump_reads_services_in_order(write_dump, two_services):
    services = load_dump(write_dump(two_services))
    assert [s.name for s in services] == ["svc-a", "svc-b"]
    assert services[1].routes[0].paths == ["/b"]
    assert [s.index for s in services] == [0, 1]


def test_load_dump_without_services(tmp_path):
    path = tmp_path / "dump.json"
    path.write_text(json.dumps({"_format_version": "3.0"}))
    assert load_dump(path) == []


def test_load_dump_keeps_non_object_entries_as_nameless(write_dump, two_services):
    services = load_dump(write_dump([two_services[0], "garbage"]))
    assert services[1].name is None
    assert services[1].identifier == "services[1]"


@pytest.mark.parametrize("content", ["not json", "[1, 2]", '{"services": {"a": 1}}'])
def test_load_dump_rejects_malformed_documents(tmp_path, content):
    path = tmp_path / "dump.json"
    path.write_text(content)
    with pytest.raises(ExportError):
        load_dump(path)


def test_load_dump_missing_file(tmp_path):
    with pytest.raises(ExportError, match="not found"):
        load_dump(tmp_path / "missing.json")
