"""Tests for kong2tyk.transformer.splitter."""

import json

from kong2tyk.errors import DuplicateTitleError
from kong2tyk.models import TargetDefinition, Unit
from kong2tyk.transformer import Splitter, load_units, sanitize_title


def _definition(title, listen="/x"):
    return TargetDefinition(title=title, listen_path=listen, upstream_url="http://up/")


def test_sanitize_title_keeps_safe_characters():
    assert sanitize_title("svc-a_1.2") == "svc-a_1.2"


def test_sanitize_title_replaces_unsafe_characters():
    assert sanitize_title("team/orders api") == "team_orders_api"
    assert sanitize_title("..") == "__"


def test_one_unit_per_definition():
    result = Splitter().split([_definition("svc-a", "/a"), _definition("svc-b", "/b")])
    assert result.errors == []
    assert [u.key for u in result.units] == ["svc-a", "svc-b"]
    assert [u.routing_key for u in result.units] == ["/a", "/b"]


def test_duplicate_title_is_rejected_not_overwritten():
    first = _definition("svc-a", "/a")
    second = _definition("svc-a", "/a-again")
    result = Splitter().split([first, second, _definition("svc-b", "/b")])

    assert [u.key for u in result.units] == ["svc-a", "svc-b"]
    assert result.units[0].definition is first
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], DuplicateTitleError)
    assert result.errors[0].identifier == "svc-a#2"


def test_titles_colliding_after_sanitizing_are_duplicates():
    result = Splitter().split([_definition("a/b"), _definition("a b"), _definition("a_b")])
    assert [u.key for u in result.units] == ["a_b"]
    assert [e.identifier for e in result.errors] == ["a_b#2", "a_b#3"]


def test_write_artifacts_and_load_units(tmp_path):
    splitter = Splitter()
    units = splitter.split([_definition("svc-a", "/a"), _definition("svc-b", None)]).units

    written = splitter.write_artifacts(units, tmp_path)

    assert sorted(p.name for p in written) == ["oas-svc-a.json", "oas-svc-b.json"]
    doc = json.loads((tmp_path / "oas-svc-a.json").read_text())
    assert doc["x-tyk-api-gateway"]["server"]["listenPath"]["value"] == "/a"

    reloaded = load_units(tmp_path).units
    assert [(u.key, u.routing_key) for u in reloaded] == [("svc-a", "/a"), ("svc-b", None)]


def test_load_units_reports_unreadable_artifacts(tmp_path):
    Splitter().write_artifacts([Unit("svc-a", _definition("svc-a", "/a"))], tmp_path)
    (tmp_path / "oas-bad.json").write_text("{not json")
    (tmp_path / "oas-list.json").write_text('["svc"]')
    (tmp_path / "oas-odd.json").write_text('{"info": "x", "x-tyk-api-gateway": {"server": 1}}')

    result = load_units(tmp_path)

    assert [e.identifier for e in result.errors] == ["oas-bad", "oas-list"]
    assert [(u.key, u.routing_key) for u in result.units] == [("odd", None), ("svc-a", "/a")]
